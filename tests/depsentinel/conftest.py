"""Shared fixtures for depsentinel tests. No network or package manager required."""

from __future__ import annotations

import json
from collections.abc import Callable

import httpx
import pytest

from depsentinel.core.logging import setup_logging
from depsentinel.engines.advisory.client import AdvisoryClient
from depsentinel.engines.dependency_graph.builder import build_graph
from depsentinel.engines.dependency_graph.models import DependencyGraph, DependencyNode

ADVISORY_URL = "https://advisories.test/bulk"

# express -> body-parser -> qs, and a direct lodash; qs also pulled in by express
NPM_TREE = {
    "name": "myapp",
    "version": "1.0.0",
    "dependencies": {
        "express": {
            "version": "4.18.2",
            "dependencies": {
                "body-parser": {
                    "version": "1.20.1",
                    "dependencies": {"qs": {"version": "6.11.0"}},
                },
                "qs": {"version": "6.11.0"},
            },
        },
        "lodash": {"version": "4.17.20"},
        "left-pad": {"version": "1.3.0"},
    },
}


@pytest.fixture
def npm_tree() -> dict:
    return json.loads(json.dumps(NPM_TREE))


@pytest.fixture
def graph(npm_tree) -> DependencyGraph:
    return build_graph(DependencyNode.from_dict(npm_tree))


@pytest.fixture
def make_client() -> Callable[..., AdvisoryClient]:
    """Factory: AdvisoryClient whose HTTP traffic goes to *handler*."""

    def _make(handler: Callable[[httpx.Request], httpx.Response], timeout: float = 1.0):
        return AdvisoryClient(ADVISORY_URL, timeout, transport=httpx.MockTransport(handler))

    return _make


def _json_handler(body, status_code: int = 200, seen: list | None = None):
    """MockTransport handler answering every request with *body*."""

    def _handler(request: httpx.Request) -> httpx.Response:
        if seen is not None:
            seen.append(json.loads(request.content))
        return httpx.Response(status_code, json=body)

    return _handler


@pytest.fixture
def json_handler():
    return _json_handler


@pytest.fixture(scope="session", autouse=True)
def _structlog_to_stdlib():
    """Route structlog through stdlib logging so caplog sees events."""
    setup_logging("DEBUG")
