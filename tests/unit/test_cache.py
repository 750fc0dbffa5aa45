"""Unit tests for docsync.cache."""

from __future__ import annotations

from docsync.cache import ResponseCache
from docsync.models.entities import ResourceKind


class TestResponseCache:
    def test_miss_returns_none(self) -> None:
        cache = ResponseCache()
        assert cache.get(ResourceKind.CONTENT, "v1.0") is None
        assert len(cache) == 0

    def test_set_and_get(self) -> None:
        cache = ResponseCache()
        cache.set(ResourceKind.DOCUMENTATION, "v1.0", [{"slug": "a"}])
        assert cache.get(ResourceKind.DOCUMENTATION, "v1.0") == [{"slug": "a"}]
        assert (ResourceKind.DOCUMENTATION, "v1.0") in cache

    def test_first_write_wins(self) -> None:
        cache = ResponseCache()
        cache.set(ResourceKind.CONTENT, "v1.0", {"n": 1})
        cache.set(ResourceKind.CONTENT, "v1.0", {"n": 2})
        assert cache.get(ResourceKind.CONTENT, "v1.0") == {"n": 1}
        assert len(cache) == 1

    def test_keys_are_scoped_by_kind_and_version(self) -> None:
        cache = ResponseCache()
        cache.set(ResourceKind.CONTENT, "v1.0", "content-1")
        cache.set(ResourceKind.CONTENT, "v2.0", "content-2")
        cache.set(ResourceKind.PAGES, "v1.0", "pages-1")

        assert cache.get(ResourceKind.CONTENT, "v1.0") == "content-1"
        assert cache.get(ResourceKind.CONTENT, "v2.0") == "content-2"
        assert cache.get(ResourceKind.PAGES, "v1.0") == "pages-1"
        assert cache.get(ResourceKind.PAGES, "v2.0") is None

    def test_payloads_are_copied_in_and_out(self) -> None:
        cache = ResponseCache()
        payload = [{"slug": "a"}]
        cache.set(ResourceKind.DOCUMENTATION, "v1.0", payload)
        payload.append({"slug": "b"})

        hit = cache.get(ResourceKind.DOCUMENTATION, "v1.0")
        hit[0]["slug"] = "changed"

        assert cache.get(ResourceKind.DOCUMENTATION, "v1.0") == [{"slug": "a"}]

    def test_cached_null_is_a_hit(self) -> None:
        cache = ResponseCache()
        missing = object()
        assert cache.get(ResourceKind.CONTENT, "v1.0", missing) is missing

        cache.set(ResourceKind.CONTENT, "v1.0", None)

        assert cache.get(ResourceKind.CONTENT, "v1.0", missing) is None
        assert (ResourceKind.CONTENT, "v1.0") in cache

    def test_lock_is_stable_per_key(self) -> None:
        cache = ResponseCache()
        lock = cache.lock(ResourceKind.CONTENT, "v1.0")
        assert cache.lock(ResourceKind.CONTENT, "v1.0") is lock
        assert cache.lock(ResourceKind.CONTENT, "v2.0") is not lock
        assert cache.lock(ResourceKind.PAGES, "v1.0") is not lock

    def test_contains_rejects_malformed_keys(self) -> None:
        cache = ResponseCache()
        cache.set(ResourceKind.CONTENT, "v1.0", {})
        assert "content" not in cache
        assert ("content", "v1.0") in cache
        assert ("content", "v1.0", "extra") not in cache


class TestResourceKind:
    def test_result_keys(self) -> None:
        assert ResourceKind.CONTENT.result_key == "customContent"
        assert ResourceKind.DOCUMENTATION.result_key == "documentation"
        assert ResourceKind.PAGES.result_key == "customPages"
