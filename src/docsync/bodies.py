"""On-disk body store: resolves doc body references to file text."""

from __future__ import annotations

import asyncio
from pathlib import Path

from docsync.errors import ErrorCode, UploadError


class FileBodyStore:
    """Reads doc bodies from files, relative references resolved against ``root``."""

    def __init__(self, root: Path | str | None = None) -> None:
        self._root = Path(root) if root else None

    def resolve(self, reference: str) -> Path:
        path = Path(reference).expanduser()
        if not path.is_absolute() and self._root is not None:
            path = self._root / path
        return path

    async def read(self, reference: str) -> str:
        """Return the body text. Raises UploadError if the file cannot be read."""
        path = self.resolve(reference)
        try:
            return await asyncio.to_thread(path.read_text, encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise UploadError(
                f"Cannot read doc body {str(path)!r}: {exc}",
                suggestion="Check that the body reference in the snapshot points to a UTF-8 file.",
                code=ErrorCode.BODY_UNREADABLE,
            ) from exc
