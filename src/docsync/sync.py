"""Sync orchestration: match local entities to remote state, then upload.

Order matters in one place only: categories are uploaded and applied before
docs are flattened, so a category created in this run lends its new slug to
the docs that are created under it.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import structlog

from docsync.bodies import FileBodyStore
from docsync.errors import DocSyncError, ErrorCode
from docsync.models.results import SyncReport
from docsync.registry import Registry
from docsync.requestor import Requestor
from docsync.transport import build_http_client
from docsync.urls import url_factory

if TYPE_CHECKING:
    from docsync.config import Settings


async def run_sync(
    requestor: Requestor,
    registry: Registry,
    *,
    match_remote: bool = True,
) -> SyncReport:
    """Push every category and doc in ``registry`` to the remote project."""
    log = structlog.get_logger().bind(project=requestor.project)
    contexts = registry.version_contexts(requestor.project)
    log.info("sync_started", versions=[c.version for c in contexts])

    report = SyncReport()

    # Surface dangling category references before anything is written remotely.
    registry.all_docs()

    if match_remote and contexts:
        documentation = await requestor.documentation(contexts)
        fetched = documentation.get(requestor.project, {})
        report.unfetched_versions = [c.version for c in contexts if c.version not in fetched]
        if report.unfetched_versions:
            # Slugs stay unknown for these versions; their entities are created.
            log.warning("sync_versions_unmatched", versions=report.unfetched_versions)
        registry.match_remote(fetched)

    categories = await requestor.upload_doc_categories(registry.all_doc_categories())
    report.uploaded_categories = registry.apply_categories(categories)
    report.failed_categories = categories.failed

    docs = await requestor.upload_docs(registry.all_docs())
    report.uploaded_docs = registry.apply_docs(docs)
    report.failed_docs = docs.failed

    log.info(
        "sync_complete",
        uploaded_categories=report.uploaded_categories,
        failed_categories=len(report.failed_categories),
        uploaded_docs=report.uploaded_docs,
        failed_docs=len(report.failed_docs),
    )
    return report


async def sync_from_settings(settings: Settings) -> SyncReport:
    """Wire client, requestor and registry from configuration and run one sync.

    The snapshot is rewritten afterwards so that entities created in this run
    carry their slugs into the next one.
    """
    if not settings.api.project:
        raise DocSyncError(
            "No project configured",
            suggestion="Set api.project in docsync.yaml or DOCSYNC__API__PROJECT.",
            code=ErrorCode.CONFIG_INVALID,
        )

    snapshot_path = Path(settings.sync.snapshot_path).expanduser()
    registry = Registry.load(snapshot_path)
    docs_root = settings.sync.docs_root or snapshot_path.parent

    async with build_http_client(settings.http) as client:
        requestor = Requestor(
            client,
            settings.api.token,
            settings.api.project,
            url_factory=url_factory(settings.api.base_url),
            body_store=FileBodyStore(docs_root),
            auth_scheme=settings.api.auth_scheme,
            cookie_name=settings.api.cookie_name,
        )
        report = await run_sync(requestor, registry, match_remote=settings.sync.match_remote)

    if settings.sync.write_back:
        try:
            registry.save(snapshot_path)
        except DocSyncError:
            # The remote side already changed; keep the outcome in the log.
            structlog.get_logger().error(
                "registry_write_failed",
                path=str(snapshot_path),
                report=report.model_dump(mode="json"),
            )
            raise

    return report
