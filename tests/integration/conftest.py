"""Integration test fixtures.

Provides an in-memory fake of the documentation API, mounted with respx on
the default base URL, plus a Requestor and Registry wired against it.
Registry and body fixtures come from tests/conftest.py.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import httpx
import pytest
import respx

from docsync.urls import DEFAULT_BASE_URL

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path

_PATH = re.compile(r"^/api/projects/(?P<project>[^/]+)/(?P<version>[^/]+)/(?P<rest>.+)$")


def _slugify(title: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", title.lower()).strip("-")


@dataclass
class FakeDocsApi:
    """Answers listing GETs from fixtures and echoes uploads back with slugs.

    ``fail`` maps a call such as "POST v1.0/doc-categories" to the status
    code to answer with instead.
    """

    listings: dict[tuple[str, str], Any] = field(default_factory=dict)
    fail: dict[str, int] = field(default_factory=dict)
    calls: list[str] = field(default_factory=list)

    def handle(self, request: httpx.Request) -> httpx.Response:
        match = _PATH.match(request.url.path)
        if match is None:
            return httpx.Response(404)
        version, rest = match["version"], match["rest"]
        call = f"{request.method} {version}/{rest}"
        self.calls.append(call)

        status = self.fail.get(call)
        if status is not None:
            return httpx.Response(status, json={"error": "injected"})

        if request.method == "GET":
            listing = self.listings.get((version, rest))
            if listing is None:
                return httpx.Response(404)
            return httpx.Response(200, json=listing)

        body = json.loads(request.content)
        if rest.startswith("doc-categories"):
            slug = rest.split("/", 1)[1] if "/" in rest else _slugify(body["title"])
            return httpx.Response(200, json={"title": body["title"], "slug": slug})

        slug = rest.split("/", 1)[1] if request.method == "PUT" else _slugify(body["title"])
        return httpx.Response(
            200,
            json={
                "title": body["title"],
                "slug": slug,
                "excerpt": body["excerpt"],
                "body": body["body"],
            },
        )

    def uploads(self) -> list[str]:
        return [c for c in self.calls if not c.startswith("GET ")]


@pytest.fixture()
def fake_api(fixtures_dir: Path) -> Iterator[FakeDocsApi]:
    api = FakeDocsApi()
    for version, name in (("v1.0", "docs-v1.json"), ("v2.0", "docs-v2.json")):
        api.listings[(version, "docs")] = json.loads(
            (fixtures_dir / name).read_text(encoding="utf-8")
        )
    with respx.mock(base_url=DEFAULT_BASE_URL, assert_all_called=False) as router:
        router.route().mock(side_effect=api.handle)
        yield api
