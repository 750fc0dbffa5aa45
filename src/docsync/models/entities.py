from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict


class ResourceKind(StrEnum):
    """Remote listings that the Requestor fetches and caches per version."""

    CONTENT = "content"
    DOCUMENTATION = "documentation"
    PAGES = "pages"

    @property
    def result_key(self) -> str:
        """Key under which the decoded payload appears in a versioned result."""
        return _RESULT_KEYS[self]


_RESULT_KEYS: dict[ResourceKind, str] = {
    ResourceKind.CONTENT: "customContent",
    ResourceKind.DOCUMENTATION: "documentation",
    ResourceKind.PAGES: "customPages",
}


class VersionContext(BaseModel):
    """(project, version) pair that scopes every request and cache entry."""

    model_config = ConfigDict(frozen=True)

    project: str
    version: str


class DocCategory(BaseModel):
    """A documentation category in one version.

    ``slug`` is set only once the category exists remotely.
    """

    key: str  # Local identity, stable for the whole run: "<version>/<index>"
    version: str
    title: str
    slug: str | None = None


class Doc(BaseModel):
    """A single doc page in one version.

    The parent category is referenced by ``category`` (a category key or a
    category slug), never by object. ``category_slug`` is a read-only
    projection filled in by ``Registry.all_docs()``.
    """

    key: str
    version: str
    category: str
    title: str
    excerpt: str = ""
    type: str = "basic"
    body: str  # Reference to the file holding the doc body
    slug: str | None = None
    category_slug: str | None = None
    content: str | None = None  # Body text last confirmed by the remote side
