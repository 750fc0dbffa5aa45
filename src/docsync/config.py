"""Configuration loading.

Settings are loaded in priority order (highest first):
  1. Environment variables  (DOCSYNC__API__PROJECT=my-project)
  2. docsync.yaml           (searched in cwd, then platform config dir)
  3. Hardcoded defaults

The config file is optional, but a real run needs at least the project,
the credential token and the snapshot path.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

import platformdirs
from pydantic import BaseModel
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

_DEFAULT_DATA_DIR = platformdirs.user_data_dir("docsync")
_DEFAULT_SNAPSHOT_PATH = str(Path(_DEFAULT_DATA_DIR) / "registry.json")


def _find_config_file() -> str | None:
    """Return the path of the first docsync.yaml found, or None."""
    candidates = [
        Path("docsync.yaml"),
        Path(platformdirs.user_config_dir("docsync")) / "docsync.yaml",
    ]
    for path in candidates:
        if path.exists():
            return str(path)
    return None


class ApiSettings(BaseModel):
    base_url: str = "https://dash.readme.io"
    project: str = ""
    token: str = ""
    auth_scheme: Literal["cookie", "bearer"] = "cookie"
    cookie_name: str = "connect.sid"


class HttpSettings(BaseModel):
    timeout_seconds: float = 30.0
    max_connections: int = 10
    max_keepalive_connections: int = 5


class SyncSettings(BaseModel):
    snapshot_path: str = _DEFAULT_SNAPSHOT_PATH
    # Relative body references in the snapshot resolve against this directory.
    # Empty means "the directory holding the snapshot".
    docs_root: str = ""
    match_remote: bool = True
    # Rewrite the snapshot after the run so newly created slugs persist.
    write_back: bool = True


class LoggingSettings(BaseModel):
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    format: Literal["json", "text"] = "text"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        # Double-underscore separates nesting: DOCSYNC__HTTP__TIMEOUT_SECONDS=60
        env_prefix="DOCSYNC__",
        env_nested_delimiter="__",
        yaml_file=_find_config_file(),
        yaml_file_encoding="utf-8",
    )

    api: ApiSettings = ApiSettings()
    http: HttpSettings = HttpSettings()
    sync: SyncSettings = SyncSettings()
    logging: LoggingSettings = LoggingSettings()

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
        **kwargs: Any,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,  # Constructor args (highest priority)
            env_settings,  # Environment variables
            YamlConfigSettingsSource(settings_cls),  # YAML file
            # dotenv and file secrets intentionally excluded
        )
