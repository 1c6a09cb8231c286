"""Manifest file persistence.

One file holds both halves of the graph::

    {"packages": {"a": ["1.0.0"]}, "reverseDeps": {"b": ["a"]}}

Older flat manifests (``{"a": ["1.0.0"]}``) still load, with an empty
reverse map, so chains degrade to the bare package name.
"""

from __future__ import annotations

import json
from pathlib import Path

from depsentinel.engines.dependency_graph.models import DependencyGraph
from depsentinel.exceptions import ManifestError


def write_manifest(graph: DependencyGraph, output_path: Path) -> Path:
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(json.dumps(graph.to_dict(), indent=2) + "\n", encoding="utf-8")
    return output_path


def load_manifest(path: Path) -> DependencyGraph:
    try:
        raw = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise ManifestError(f"manifest not found: {path}. Run `depsentinel generate` first.") from None

    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ManifestError(f"manifest {path} is not valid JSON: {exc}") from None
    if not isinstance(data, dict):
        raise ManifestError(f"manifest {path} must contain a JSON object")

    if "packages" not in data:
        data = {"packages": data, "reverseDeps": {}}
    try:
        return DependencyGraph.from_dict(data)
    except ValueError as exc:
        raise ManifestError(f"manifest {path} is malformed: {exc}") from None
