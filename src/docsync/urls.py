"""Request URL layout for the hosted documentation API.

Every resource lives under ``/api/projects/<project>/<version>/``; the
version segment is the version identifier exactly as it appears in the
registry (for example ``v1.0``).
"""

from __future__ import annotations

from typing import TYPE_CHECKING
from urllib.parse import quote

if TYPE_CHECKING:
    from collections.abc import Callable

DEFAULT_BASE_URL = "https://dash.readme.io"


class UrlGenerator:
    """Builds URLs for one (project, version) pair."""

    def __init__(self, project: str, version: str, base_url: str = DEFAULT_BASE_URL) -> None:
        self.project = project
        self.version = version
        self._base_url = base_url.rstrip("/")

    def base(self) -> str:
        return self._base_url

    def _prefix(self) -> str:
        return f"/api/projects/{quote(self.project, safe='')}/{quote(self.version, safe='')}"

    def content_path(self) -> str:
        return f"{self._prefix()}/content"

    def docs_path(self) -> str:
        return f"{self._prefix()}/docs"

    def pages_path(self) -> str:
        return f"{self._prefix()}/pages"

    def doc_categories_post_path(self) -> str:
        return f"{self._prefix()}/doc-categories"

    def doc_categories_put_path(self, slug: str) -> str:
        return f"{self._prefix()}/doc-categories/{quote(slug, safe='')}"

    def docs_post_path(self, category_slug: str) -> str:
        return f"{self._prefix()}/docs/{quote(category_slug, safe='')}"

    def docs_put_path(self, slug: str) -> str:
        return f"{self._prefix()}/docs/{quote(slug, safe='')}"


def url_factory(base_url: str = DEFAULT_BASE_URL) -> Callable[[str, str], UrlGenerator]:
    """Return a ``(project, version) -> UrlGenerator`` factory bound to base_url."""

    def _make(project: str, version: str) -> UrlGenerator:
        return UrlGenerator(project, version, base_url)

    return _make
