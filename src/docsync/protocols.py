"""Protocol interfaces for swappable collaborators.

The Requestor references these protocols, not the concrete implementations.
This allows:
- Tests to use lightweight in-memory body stores and URL layouts
- Other hosting layouts to be plugged in without touching upload logic
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    import asyncio

    from docsync.models.entities import ResourceKind


class UrlGeneratorProtocol(Protocol):
    """Maps (project, version, resource, slug) to request URLs."""

    def base(self) -> str: ...

    def content_path(self) -> str: ...

    def docs_path(self) -> str: ...

    def pages_path(self) -> str: ...

    def doc_categories_post_path(self) -> str: ...

    def doc_categories_put_path(self, slug: str) -> str: ...

    def docs_post_path(self, category_slug: str) -> str: ...

    def docs_put_path(self, slug: str) -> str: ...


class UrlFactoryProtocol(Protocol):
    def __call__(self, project: str, version: str) -> UrlGeneratorProtocol: ...


class BodyStoreProtocol(Protocol):
    """Resolves a doc's body reference to its text."""

    async def read(self, reference: str) -> str: ...


class CacheProtocol(Protocol):
    """Interface for the per-run response cache."""

    def get(self, kind: ResourceKind, version: str, default: Any = None) -> Any: ...

    def set(self, kind: ResourceKind, version: str, payload: Any) -> None: ...

    def lock(self, kind: ResourceKind, version: str) -> asyncio.Lock: ...
