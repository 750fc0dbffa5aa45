"""Serialized registry snapshot consumed by ``Registry.import_snapshot``.

Layout::

    {"versions": {"v1.0": {
        "categories": [{"title": ..., "slug": ..., "docs": [{...}, ...]}],
        "docs": [{"title": ..., "category": "<category slug>", ...}]}}}

Docs nested under a category belong to it. Docs listed directly under a
version name their category by slug and are resolved lazily.
"""

from __future__ import annotations

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


class SnapshotDoc(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    title: str
    excerpt: str = ""
    type: str = "basic"
    body: str
    slug: str | None = None
    category: str | None = Field(
        default=None,
        validation_alias=AliasChoices("category", "categorySlug"),
    )

    @field_validator("title", "body")
    @classmethod
    def validate_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be blank")
        return v


class SnapshotCategory(BaseModel):
    title: str
    slug: str | None = None
    docs: list[SnapshotDoc] = []

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be blank")
        return v


class SnapshotVersion(BaseModel):
    categories: list[SnapshotCategory] = []
    docs: list[SnapshotDoc] = []

    @field_validator("docs")
    @classmethod
    def validate_loose_docs_reference_category(cls, v: list[SnapshotDoc]) -> list[SnapshotDoc]:
        for doc in v:
            if not doc.category:
                raise ValueError(f"doc {doc.title!r} listed outside a category needs 'category'")
        return v


class Snapshot(BaseModel):
    versions: dict[str, SnapshotVersion]
