"""HTTP client construction and credential attachment.

The Requestor receives an httpx.AsyncClient via constructor injection;
whoever builds the client owns its lifecycle.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Literal

import httpx

from docsync import __version__

if TYPE_CHECKING:
    from docsync.config import HttpSettings


def build_http_client(settings: HttpSettings) -> httpx.AsyncClient:
    """Create the shared httpx client. Called once per sync run."""
    return httpx.AsyncClient(
        follow_redirects=False,
        timeout=httpx.Timeout(settings.timeout_seconds),
        headers={"User-Agent": f"docsync/{__version__}", "Accept": "application/json"},
        limits=httpx.Limits(
            max_connections=settings.max_connections,
            max_keepalive_connections=settings.max_keepalive_connections,
        ),
    )


def auth_headers(
    token: str,
    scheme: Literal["cookie", "bearer"] = "cookie",
    cookie_name: str = "connect.sid",
) -> dict[str, str]:
    """Headers that carry the opaque credential on every request."""
    if not token:
        return {}
    if scheme == "bearer":
        return {"Authorization": f"Bearer {token}"}
    return {"Cookie": f"{cookie_name}={token}"}
