"""Versioned requests against the documentation API.

The Requestor fans out one task per version (for listings) or per entity
(for uploads) and joins them all before returning. Nothing fails fast:
per-item failures are logged and aggregated into the result, and one bad
version or entity never stops the others.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any, Literal

import httpx
import structlog

from docsync.bodies import FileBodyStore
from docsync.cache import ResponseCache
from docsync.errors import FetchError, UploadError
from docsync.models.entities import Doc, DocCategory, ResourceKind, VersionContext
from docsync.models.results import UploadOutcome
from docsync.transport import auth_headers
from docsync.urls import UrlGenerator

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from docsync.protocols import (
        BodyStoreProtocol,
        CacheProtocol,
        UrlFactoryProtocol,
        UrlGeneratorProtocol,
    )

log = structlog.get_logger()

# project -> version -> {result_key: payload}
VersionedResult = dict[str, dict[str, dict[str, Any]]]

_CATEGORY_RESPONSE_FIELDS = ("title", "slug")
_DOC_RESPONSE_FIELDS = ("title", "slug", "excerpt", "body")

# Marks a cache miss or a failed fetch; a JSON null body is a valid payload.
_MISSING: Any = object()


def _listing_path(urls: UrlGeneratorProtocol, kind: ResourceKind) -> str:
    if kind is ResourceKind.CONTENT:
        return urls.content_path()
    if kind is ResourceKind.DOCUMENTATION:
        return urls.docs_path()
    return urls.pages_path()


class Requestor:
    """Fetches per-version remote state and uploads categories and docs."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        token: str,
        project: str,
        *,
        url_factory: UrlFactoryProtocol | None = None,
        cache: CacheProtocol | None = None,
        body_store: BodyStoreProtocol | None = None,
        auth_scheme: Literal["cookie", "bearer"] = "cookie",
        cookie_name: str = "connect.sid",
    ) -> None:
        self._client = client
        self._token = token
        self._project = project
        self._url_factory: UrlFactoryProtocol = url_factory or UrlGenerator
        self._cache: CacheProtocol = cache if cache is not None else ResponseCache()
        self._body_store: BodyStoreProtocol = body_store or FileBodyStore()
        self._headers = auth_headers(token, auth_scheme, cookie_name)

    @property
    def token(self) -> str:
        return self._token

    @property
    def project(self) -> str:
        return self._project

    @property
    def cache(self) -> CacheProtocol:
        return self._cache

    # ------------------------------------------------------------------
    # Versioned listings
    # ------------------------------------------------------------------

    async def custom_content(self, versions: Iterable[VersionContext | str]) -> VersionedResult:
        """Fetch the custom content resource for every version."""
        return await self._fetch_all(ResourceKind.CONTENT, versions)

    async def documentation(self, versions: Iterable[VersionContext | str]) -> VersionedResult:
        """Fetch the docs listing for every version."""
        return await self._fetch_all(ResourceKind.DOCUMENTATION, versions)

    async def custom_pages(self, versions: Iterable[VersionContext | str]) -> VersionedResult:
        """Fetch the custom pages listing for every version."""
        return await self._fetch_all(ResourceKind.PAGES, versions)

    def _contexts(self, versions: Iterable[VersionContext | str]) -> list[VersionContext]:
        contexts: list[VersionContext] = []
        for item in versions:
            ctx = (
                item
                if isinstance(item, VersionContext)
                else VersionContext(project=self._project, version=item)
            )
            if ctx.project != self._project:
                raise ValueError(
                    f"Version context for project {ctx.project!r} passed to a "
                    f"requestor bound to {self._project!r}"
                )
            contexts.append(ctx)
        return contexts

    async def _fetch_all(
        self,
        kind: ResourceKind,
        versions: Iterable[VersionContext | str],
    ) -> VersionedResult:
        contexts = self._contexts(versions)
        payloads = await asyncio.gather(*(self._fetch_one(kind, ctx) for ctx in contexts))

        # Merge by key; versions whose fetch failed are left out.
        result: VersionedResult = {}
        for ctx, payload in zip(contexts, payloads, strict=True):
            if payload is _MISSING:
                continue
            result.setdefault(ctx.project, {})[ctx.version] = {kind.result_key: payload}
        return result

    async def _fetch_one(self, kind: ResourceKind, ctx: VersionContext) -> Any:
        """Return the payload for one (kind, version), from cache when possible.

        Returns ``_MISSING`` when the fetch failed.
        """
        async with self._cache.lock(kind, ctx.version):
            cached = self._cache.get(kind, ctx.version, _MISSING)
            if cached is not _MISSING:
                log.debug("cache_hit", kind=str(kind), version=ctx.version)
                return cached

            try:
                payload = await self._get_json(kind, ctx)
            except FetchError as exc:
                log.warning(
                    "fetch_failed",
                    kind=str(kind),
                    version=ctx.version,
                    code=exc.code,
                    message=exc.message,
                    recoverable=exc.recoverable,
                )
                return _MISSING

            self._cache.set(kind, ctx.version, payload)
            return payload

    async def _get_json(self, kind: ResourceKind, ctx: VersionContext) -> Any:
        urls = self._url_factory(ctx.project, ctx.version)
        url = urls.base() + _listing_path(urls, kind)

        try:
            response = await self._client.get(url, headers=self._headers)
        except httpx.HTTPError as exc:
            raise FetchError(
                f"Network error fetching {url}: {exc}",
                suggestion="The documentation API may be temporarily unavailable.",
                recoverable=True,
            ) from exc

        if not response.is_success:
            raise FetchError(
                f"HTTP {response.status_code} fetching {url}",
                suggestion="Check the project name, the version and the credential token.",
                recoverable=response.status_code >= 500,
            )

        try:
            payload = response.json()
        except ValueError as exc:
            raise FetchError(
                f"Invalid JSON fetching {url}",
                suggestion="The endpoint did not return a JSON document.",
            ) from exc

        log.info("fetch_complete", kind=str(kind), version=ctx.version, url=url)
        return payload

    # ------------------------------------------------------------------
    # Uploads
    # ------------------------------------------------------------------

    async def upload_doc_categories(
        self, categories: Iterable[DocCategory]
    ) -> UploadOutcome[DocCategory]:
        """Create categories without a slug, update the rest.

        Returns updated copies for the successes and the untouched inputs
        for the failures.
        """
        items = list(categories)
        results = await asyncio.gather(*(self._upload_category(c) for c in items))
        return _collect("category", items, results)

    async def upload_docs(self, docs: Iterable[Doc]) -> UploadOutcome[Doc]:
        """Create docs without a slug under their category, update the rest."""
        items = list(docs)
        results = await asyncio.gather(*(self._upload_doc(d) for d in items))
        return _collect("doc", items, results)

    async def _upload_category(self, category: DocCategory) -> DocCategory | None:
        urls = self._url_factory(self._project, category.version)
        if category.slug:
            method, path = "PUT", urls.doc_categories_put_path(category.slug)
        else:
            method, path = "POST", urls.doc_categories_post_path()

        try:
            data = await self._send(
                method,
                urls.base() + path,
                {"title": category.title},
                _CATEGORY_RESPONSE_FIELDS,
            )
        except UploadError as exc:
            _log_upload_failure("category", category, exc)
            return None

        return category.model_copy(update={"title": data["title"], "slug": data["slug"]})

    async def _upload_doc(self, doc: Doc) -> Doc | None:
        urls = self._url_factory(self._project, doc.version)
        try:
            if doc.slug:
                method, path = "PUT", urls.docs_put_path(doc.slug)
            elif doc.category_slug:
                method, path = "POST", urls.docs_post_path(doc.category_slug)
            else:
                raise UploadError(
                    f"Doc {doc.title!r} has no slug and its category has none either",
                    suggestion="Upload the parent category first, then retry the doc.",
                    recoverable=True,
                )

            body = await self._body_store.read(doc.body)
            data = await self._send(
                method,
                urls.base() + path,
                {"title": doc.title, "excerpt": doc.excerpt, "body": body, "type": doc.type},
                _DOC_RESPONSE_FIELDS,
            )
        except UploadError as exc:
            _log_upload_failure("doc", doc, exc)
            return None

        return doc.model_copy(
            update={
                "title": data["title"],
                "slug": data["slug"],
                "excerpt": data["excerpt"],
                "content": data["body"],
            }
        )

    async def _send(
        self,
        method: str,
        url: str,
        body: dict[str, Any],
        required: Sequence[str],
    ) -> dict[str, Any]:
        """Send one create/update request and return the decoded response body."""
        try:
            response = await self._client.request(method, url, json=body, headers=self._headers)
        except httpx.HTTPError as exc:
            raise UploadError(
                f"Network error on {method} {url}: {exc}",
                suggestion="The documentation API may be temporarily unavailable.",
                recoverable=True,
            ) from exc

        if not response.is_success:
            raise UploadError(
                f"HTTP {response.status_code} on {method} {url}",
                suggestion="Inspect the response; the entity was not changed remotely.",
                recoverable=response.status_code >= 500,
            )

        try:
            data = response.json()
        except ValueError as exc:
            raise UploadError(f"Invalid JSON in response to {method} {url}") from exc

        if not isinstance(data, dict) or any(name not in data for name in required):
            raise UploadError(
                f"Response to {method} {url} lacks one of {', '.join(required)}",
            )

        # A slug is the only evidence the entity exists remotely.
        slug = data["slug"]
        if not isinstance(slug, str) or not slug.strip():
            raise UploadError(
                f"Response to {method} {url} carries no usable slug: {slug!r}",
                suggestion="The entity may not have been created; check it remotely.",
            )

        log.debug("upload_complete", method=method, url=url, status_code=response.status_code)
        return data


def _log_upload_failure(entity: str, item: DocCategory | Doc, exc: UploadError) -> None:
    log.warning(
        "upload_failed",
        entity=entity,
        key=item.key,
        version=item.version,
        title=item.title,
        code=exc.code,
        message=exc.message,
        recoverable=exc.recoverable,
    )


def _collect(entity: str, items: list, results: list) -> UploadOutcome:
    outcome: UploadOutcome = UploadOutcome()
    for item, result in zip(items, results, strict=True):
        if result is None:
            outcome.failed.append(item)
        else:
            outcome.uploaded.append(result)
    log.info(
        "upload_batch_complete",
        entity=entity,
        total=len(items),
        uploaded=len(outcome.uploaded),
        failed=len(outcome.failed),
    )
    return outcome
