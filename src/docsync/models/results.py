from __future__ import annotations

from dataclasses import dataclass, field
from typing import Generic, TypeVar

from pydantic import BaseModel

from docsync.models.entities import Doc, DocCategory

T = TypeVar("T", DocCategory, Doc)


@dataclass
class UploadOutcome(Generic[T]):
    """Aggregate result of one batched upload.

    ``uploaded`` holds new entity values built from the remote responses,
    keyed by the same ``key`` as the inputs. ``failed`` holds the original,
    unmodified inputs whose request failed, in input order.
    """

    uploaded: list[T] = field(default_factory=list)
    failed: list[T] = field(default_factory=list)


class SyncReport(BaseModel):
    """Summary of one sync run, returned by ``run_sync``."""

    uploaded_categories: int = 0
    uploaded_docs: int = 0
    failed_categories: list[DocCategory] = []
    failed_docs: list[Doc] = []
    unfetched_versions: list[str] = []

    @property
    def ok(self) -> bool:
        return not self.failed_categories and not self.failed_docs
