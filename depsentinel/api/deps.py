"""Dependency injection — the process-wide health responder."""

from __future__ import annotations

from pathlib import Path

from depsentinel.core.config import Settings
from depsentinel.engines.dependency_graph.writer import load_manifest
from depsentinel.health.responder import HealthResponder

_responder: HealthResponder | None = None


def init_responder(manifest_path: Path, settings: Settings) -> HealthResponder:
    """Load the manifest and build the responder. Called once at app creation."""
    global _responder  # noqa: PLW0603
    _responder = HealthResponder(load_manifest(manifest_path), settings=settings)
    return _responder


def set_responder(responder: HealthResponder | None) -> None:
    """Override the responder (for testing)."""
    global _responder  # noqa: PLW0603
    _responder = responder


def get_health_responder() -> HealthResponder:
    if _responder is None:
        raise RuntimeError("call init_responder() before handling requests")
    return _responder
