"""Data models for the dependency graph engine."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any


@dataclass
class DependencyNode:
    """One node of a package manager's nested dependency tree.

    ``version`` is ``None`` for unresolved entries (npm prints those for
    missing optional or peer packages); the graph builder drops them.
    """

    version: str | None = None
    dependencies: dict[str, DependencyNode] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> DependencyNode:
        """Build a typed tree from parsed JSON.

        Children whose value is not an object are skipped, a missing or
        non-string ``version`` becomes ``None``, and a non-object
        ``dependencies`` field is read as empty. Iterative, so deep trees
        cannot exhaust the interpreter stack.
        """
        root = cls(version=_coerce_version(raw.get("version")))
        stack: list[tuple[DependencyNode, Any]] = [(root, raw.get("dependencies"))]
        while stack:
            node, children = stack.pop()
            if not isinstance(children, Mapping):
                continue
            for name, child_raw in children.items():
                if not isinstance(name, str) or not isinstance(child_raw, Mapping):
                    continue
                child = cls(version=_coerce_version(child_raw.get("version")))
                node.dependencies[name] = child
                stack.append((child, child_raw.get("dependencies")))
        return root


def _coerce_version(value: Any) -> str | None:
    if isinstance(value, str) and value.strip():
        return value
    return None


@dataclass
class DependencyGraph:
    """Flattened view of a dependency tree.

    ``packages`` maps every versioned package name to the set of versions
    seen anywhere in the tree. ``reverse_deps`` maps a package name to the
    names of the packages that require it; direct dependencies of the
    project root contribute no parent.
    """

    packages: dict[str, set[str]] = field(default_factory=dict)
    reverse_deps: dict[str, set[str]] = field(default_factory=dict)

    def manifest(self) -> dict[str, list[str]]:
        """Package → sorted versions, keys sorted. This is the advisory request body."""
        return {name: sorted(self.packages[name]) for name in sorted(self.packages)}

    def reverse_map(self) -> dict[str, list[str]]:
        return {name: sorted(self.reverse_deps[name]) for name in sorted(self.reverse_deps)}

    def to_dict(self) -> dict[str, dict[str, list[str]]]:
        return {"packages": self.manifest(), "reverseDeps": self.reverse_map()}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> DependencyGraph:
        """Inverse of :meth:`to_dict`. Shape errors raise ``ValueError``."""
        return cls(
            packages=_read_name_sets(data.get("packages"), "packages"),
            reverse_deps=_read_name_sets(data.get("reverseDeps", {}), "reverseDeps"),
        )

    def __len__(self) -> int:
        return len(self.packages)


def _read_name_sets(value: Any, label: str) -> dict[str, set[str]]:
    if not isinstance(value, Mapping):
        raise ValueError(f"{label} must be an object")
    result: dict[str, set[str]] = {}
    for name, items in value.items():
        if not isinstance(items, list) or not all(isinstance(i, str) for i in items):
            raise ValueError(f"{label}[{name!r}] must be a list of strings")
        if items:
            result[name] = set(items)
    return result
