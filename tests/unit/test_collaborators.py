"""Unit tests for the URL layout, the body store and the error envelope."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from docsync.bodies import FileBodyStore
from docsync.errors import (
    DanglingReferenceError,
    DocSyncError,
    ErrorCode,
    FetchError,
    ParseError,
    SnapshotWriteError,
    UploadError,
)
from docsync.urls import UrlGenerator, url_factory

if TYPE_CHECKING:
    from pathlib import Path


class TestUrlGenerator:
    def test_paths_are_scoped_by_project_and_version(self) -> None:
        urls = UrlGenerator("github-upload", "v1.0", "https://docs.example.com/")
        assert urls.base() == "https://docs.example.com"
        assert urls.content_path() == "/api/projects/github-upload/v1.0/content"
        assert urls.docs_path() == "/api/projects/github-upload/v1.0/docs"
        assert urls.pages_path() == "/api/projects/github-upload/v1.0/pages"
        assert urls.doc_categories_post_path() == "/api/projects/github-upload/v1.0/doc-categories"
        assert (
            urls.doc_categories_put_path("guides")
            == "/api/projects/github-upload/v1.0/doc-categories/guides"
        )
        assert urls.docs_post_path("guides") == "/api/projects/github-upload/v1.0/docs/guides"
        assert urls.docs_put_path("intro") == "/api/projects/github-upload/v1.0/docs/intro"

    def test_slugs_are_quoted(self) -> None:
        urls = UrlGenerator("p", "v1.0")
        assert urls.docs_put_path("a/b c").endswith("/docs/a%2Fb%20c")

    def test_factory_binds_base_url(self) -> None:
        urls = url_factory("https://docs.example.com")("p", "v2.0")
        assert urls.base() == "https://docs.example.com"
        assert urls.version == "v2.0"


class TestFileBodyStore:
    async def test_reads_relative_to_root(self, tmp_path: Path) -> None:
        (tmp_path / "intro.md").write_text("# Intro\n", encoding="utf-8")
        store = FileBodyStore(tmp_path)
        assert await store.read("intro.md") == "# Intro\n"

    async def test_absolute_reference_ignores_root(self, tmp_path: Path) -> None:
        body = tmp_path / "abs.md"
        body.write_text("absolute", encoding="utf-8")
        store = FileBodyStore(tmp_path / "elsewhere")
        assert await store.read(str(body)) == "absolute"

    async def test_missing_file_raises_upload_error(self, tmp_path: Path) -> None:
        store = FileBodyStore(tmp_path)
        with pytest.raises(UploadError) as exc_info:
            await store.read("missing.md")
        assert exc_info.value.code == ErrorCode.BODY_UNREADABLE

    async def test_non_utf8_raises_upload_error(self, tmp_path: Path) -> None:
        (tmp_path / "latin1.md").write_bytes("caf\xe9".encode("latin-1"))
        with pytest.raises(UploadError):
            await FileBodyStore(tmp_path).read("latin1.md")


class TestErrors:
    @pytest.mark.parametrize(
        ("error_cls", "code"),
        [
            (FetchError, ErrorCode.FETCH_FAILED),
            (UploadError, ErrorCode.UPLOAD_FAILED),
            (ParseError, ErrorCode.SNAPSHOT_INVALID),
            (DanglingReferenceError, ErrorCode.DANGLING_REFERENCE),
            (SnapshotWriteError, ErrorCode.SNAPSHOT_WRITE_FAILED),
        ],
    )
    def test_subclasses_fix_their_code(self, error_cls: type[DocSyncError], code: ErrorCode) -> None:
        exc = error_cls("boom")
        assert exc.code == code
        assert isinstance(exc, DocSyncError)

    def test_explicit_code_overrides_default(self) -> None:
        exc = UploadError("unreadable", code=ErrorCode.BODY_UNREADABLE)
        assert exc.code == ErrorCode.BODY_UNREADABLE

    def test_to_dict_envelope(self) -> None:
        exc = FetchError("HTTP 503", suggestion="Try later.", recoverable=True)
        assert exc.to_dict() == {
            "error": {
                "code": "FETCH_FAILED",
                "message": "HTTP 503",
                "suggestion": "Try later.",
                "recoverable": True,
            }
        }
