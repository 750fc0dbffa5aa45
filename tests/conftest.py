"""Shared test fixtures for the docsync test suite."""

from __future__ import annotations

import json
from pathlib import Path
from typing import TYPE_CHECKING, Any

import httpx
import pytest

from docsync.bodies import FileBodyStore
from docsync.registry import Registry
from docsync.requestor import Requestor
from docsync.urls import UrlGenerator

if TYPE_CHECKING:
    from collections.abc import Callable

FIXTURES = Path(__file__).parent / "fixtures"
PROJECT = "github-upload"
TOKEN = "session-token"


def _read_json(name: str) -> Any:
    return json.loads((FIXTURES / name).read_text(encoding="utf-8"))


@pytest.fixture()
def fixtures_dir() -> Path:
    return FIXTURES


@pytest.fixture()
def load_json() -> Callable[[str], Any]:
    """Return a loader for JSON files under tests/fixtures."""
    return _read_json


@pytest.fixture()
def urls_v1() -> UrlGenerator:
    return UrlGenerator(PROJECT, "v1.0")


@pytest.fixture()
def urls_v2() -> UrlGenerator:
    return UrlGenerator(PROJECT, "v2.0")


@pytest.fixture()
def snapshot_data() -> dict[str, Any]:
    """Two versions: v1.0 mixes new and existing entities, v2.0 only existing."""
    return _read_json("sync-registry.json")


@pytest.fixture()
def registry(snapshot_data: dict[str, Any]) -> Registry:
    return Registry.from_snapshot(snapshot_data)


@pytest.fixture()
def body_store() -> FileBodyStore:
    return FileBodyStore(FIXTURES)


@pytest.fixture()
async def client() -> httpx.AsyncClient:
    async with httpx.AsyncClient() as http_client:
        yield http_client


@pytest.fixture()
def requestor(client: httpx.AsyncClient, body_store: FileBodyStore) -> Requestor:
    return Requestor(client, TOKEN, PROJECT, body_store=body_store)
