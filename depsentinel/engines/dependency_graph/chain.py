"""Provenance chains — why is a package in the tree?"""

from __future__ import annotations

from collections import deque
from collections.abc import Collection, Mapping


def resolve_chain(package: str, reverse_deps: Mapping[str, Collection[str]]) -> list[str]:
    """Return the shortest chain from a root-adjacent package down to *package*.

    Breadth-first over child → parent edges. The first package reached
    that has no recorded parents ends the search, and its discovery path
    is returned root-first, e.g. ``["express", "body-parser", "qs"]``.
    Parents are expanded in sorted order so ties resolve the same way on
    every run.

    Never empty: a package with no parents, or one whose ancestry only
    loops back on itself, yields ``[package]``.
    """
    came_from: dict[str, str | None] = {package: None}
    queue: deque[str] = deque([package])

    while queue:
        current = queue.popleft()
        parents = reverse_deps.get(current)
        if not parents:
            return _unwind(current, came_from)
        for parent in sorted(parents):
            if parent in came_from:
                continue
            came_from[parent] = current
            queue.append(parent)

    return [package]


def _unwind(top: str, came_from: Mapping[str, str | None]) -> list[str]:
    chain = [top]
    node = came_from[top]
    while node is not None:
        chain.append(node)
        node = came_from[node]
    return chain
