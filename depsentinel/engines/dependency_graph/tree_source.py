"""Tree source — ask the project's package manager for its installed tree."""

from __future__ import annotations

import json
import subprocess
from pathlib import Path

import structlog

from depsentinel.engines.dependency_graph.models import DependencyNode
from depsentinel.exceptions import TreeSourceError, UnsupportedPackageManagerError

log = structlog.get_logger("depsentinel.engine")

TREE_COMMANDS: dict[str, list[str]] = {
    "npm": ["npm", "ls", "--json", "--omit=dev", "--all"],
    "pnpm": ["pnpm", "list", "--json", "--prod", "--depth", "Infinity"],
}

_SAMPLE_CHARS = 200


def detect_package_manager(cwd: Path) -> str:
    """Pick the package manager from the lockfile present in *cwd*."""
    if (cwd / "pnpm-lock.yaml").exists():
        return "pnpm"
    if (cwd / "yarn.lock").exists():
        raise UnsupportedPackageManagerError("yarn is not supported. Use pnpm or npm.")
    return "npm"


def run_tree_command(command: list[str], cwd: Path, timeout: float) -> str:
    """Run *command* and return its stdout.

    The exit status is not checked: ``npm ls`` exits 1 when it finds
    extraneous or missing packages but still prints a complete tree.
    """
    label = " ".join(command)
    try:
        proc = subprocess.run(
            command,
            cwd=cwd,
            capture_output=True,
            text=True,
            timeout=timeout,
        )
    except FileNotFoundError:
        raise TreeSourceError(
            f'"{label}" could not be started. Is the package manager installed?'
        ) from None
    except subprocess.TimeoutExpired:
        raise TreeSourceError(f'"{label}" did not finish within {timeout:g}s') from None

    if proc.returncode != 0:
        log.debug("tree.nonzero_exit", command=label, returncode=proc.returncode)
    if not proc.stdout.strip():
        raise TreeSourceError(
            f'"{label}" produced no output. Is the package manager installed?'
        )
    return proc.stdout


def parse_tree(raw: str, command: str) -> DependencyNode:
    """Parse tree JSON: a root object, or a list whose first item is the root (pnpm)."""
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError:
        raise TreeSourceError(
            f'failed to parse "{command}" output ({len(raw)} bytes). '
            f"First {_SAMPLE_CHARS} chars: {raw[:_SAMPLE_CHARS]}"
        ) from None

    if isinstance(parsed, list):
        if not parsed:
            raise TreeSourceError(f'"{command}" returned an empty list')
        parsed = parsed[0]
    if not isinstance(parsed, dict):
        raise TreeSourceError(
            f'"{command}" output is not a dependency tree. '
            f"First {_SAMPLE_CHARS} chars: {raw[:_SAMPLE_CHARS]}"
        )
    return DependencyNode.from_dict(parsed)


def load_tree(cwd: Path, timeout: float = 120.0) -> DependencyNode:
    """Detect the package manager in *cwd*, run it, and return the parsed tree."""
    manager = detect_package_manager(cwd)
    log.info("tree.package_manager", manager=manager)
    command = TREE_COMMANDS[manager]
    raw = run_tree_command(command, cwd, timeout)
    return parse_tree(raw, " ".join(command))
