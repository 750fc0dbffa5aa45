from __future__ import annotations

from enum import StrEnum


class ErrorCode(StrEnum):
    FETCH_FAILED = "FETCH_FAILED"
    UPLOAD_FAILED = "UPLOAD_FAILED"
    SNAPSHOT_INVALID = "SNAPSHOT_INVALID"
    DANGLING_REFERENCE = "DANGLING_REFERENCE"
    BODY_UNREADABLE = "BODY_UNREADABLE"
    CONFIG_INVALID = "CONFIG_INVALID"
    SNAPSHOT_WRITE_FAILED = "SNAPSHOT_WRITE_FAILED"


class DocSyncError(Exception):
    """Base class for every expected failure in a sync run.

    Per-item failures (fetch, upload) are caught by the Requestor and
    aggregated into the operation result. Structural failures (snapshot,
    dangling references) propagate to the caller and end the run.
    """

    default_code: ErrorCode = ErrorCode.UPLOAD_FAILED

    def __init__(
        self,
        message: str,
        suggestion: str = "",
        recoverable: bool = False,
        *,
        code: ErrorCode | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code or self.default_code
        self.message = message
        self.suggestion = suggestion
        self.recoverable = recoverable

    def to_dict(self) -> dict:
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "suggestion": self.suggestion,
                "recoverable": self.recoverable,
            }
        }


class FetchError(DocSyncError):
    """A versioned GET (content, documentation, pages) failed. Never cached."""

    default_code = ErrorCode.FETCH_FAILED


class UploadError(DocSyncError):
    """A create/update request for one category or doc failed."""

    default_code = ErrorCode.UPLOAD_FAILED


class ParseError(DocSyncError):
    """The registry snapshot is structurally invalid."""

    default_code = ErrorCode.SNAPSHOT_INVALID


class DanglingReferenceError(DocSyncError):
    """A doc's parent category does not resolve to exactly one category."""

    default_code = ErrorCode.DANGLING_REFERENCE


class SnapshotWriteError(DocSyncError):
    """The updated snapshot could not be written back; the old file is intact."""

    default_code = ErrorCode.SNAPSHOT_WRITE_FAILED
