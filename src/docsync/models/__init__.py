from __future__ import annotations

from docsync.models.entities import Doc, DocCategory, ResourceKind, VersionContext
from docsync.models.results import SyncReport, UploadOutcome
from docsync.models.snapshot import Snapshot, SnapshotCategory, SnapshotDoc, SnapshotVersion

__all__ = [
    # entities
    "ResourceKind",
    "VersionContext",
    "DocCategory",
    "Doc",
    # snapshot
    "Snapshot",
    "SnapshotVersion",
    "SnapshotCategory",
    "SnapshotDoc",
    # results
    "UploadOutcome",
    "SyncReport",
]
