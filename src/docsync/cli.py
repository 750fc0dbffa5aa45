"""Console entry point: ``docsync``.

Reads Settings (env + docsync.yaml), runs one sync and prints a JSON summary
to stdout. Exit status: 0 when everything uploaded, 1 when some uploads
failed, 2 when the run could not start or was aborted.
"""

from __future__ import annotations

import asyncio
import json
import sys

import structlog

from docsync import __version__
from docsync.config import Settings
from docsync.errors import DocSyncError
from docsync.logging_setup import setup_logging
from docsync.sync import sync_from_settings

EXIT_OK = 0
EXIT_PARTIAL_FAILURE = 1
EXIT_FATAL = 2


def main() -> int:
    settings = Settings()
    setup_logging(settings)
    log = structlog.get_logger()
    log.info("docsync_starting", version=__version__, project=settings.api.project)

    try:
        report = asyncio.run(sync_from_settings(settings))
    except DocSyncError as exc:
        log.error("sync_aborted", code=exc.code, message=exc.message, suggestion=exc.suggestion)
        print(json.dumps(exc.to_dict(), indent=2))
        return EXIT_FATAL

    print(json.dumps(report.model_dump(mode="json"), indent=2))
    return EXIT_OK if report.ok else EXIT_PARTIAL_FAILURE


if __name__ == "__main__":
    sys.exit(main())
