"""Graph builder — flatten a nested dependency tree into a DependencyGraph."""

from __future__ import annotations

import structlog

from depsentinel.engines.dependency_graph.models import DependencyGraph, DependencyNode

log = structlog.get_logger("depsentinel.engine")


def build_graph(tree: DependencyNode) -> DependencyGraph:
    """Walk *tree* depth-first and collect versions and parent links.

    The root itself is the project and contributes nothing. A node without
    a version is dropped together with its whole subtree. Shared
    subpackages are visited once per occurrence; the walk keeps no
    per-node memo because the tree carries no node identities.
    """
    graph = DependencyGraph()
    # (parent name or None for the project root, children of that parent)
    stack: list[tuple[str | None, dict[str, DependencyNode]]] = [(None, tree.dependencies)]
    skipped = 0

    while stack:
        parent, children = stack.pop()
        # Reversed push keeps the traversal in document order.
        pending: list[tuple[str | None, dict[str, DependencyNode]]] = []
        for name, node in children.items():
            if node.version is None:
                skipped += 1
                continue
            graph.packages.setdefault(name, set()).add(node.version)
            if parent is not None:
                graph.reverse_deps.setdefault(name, set()).add(parent)
            if node.dependencies:
                pending.append((name, node.dependencies))
        stack.extend(reversed(pending))

    log.debug(
        "graph.built",
        packages=len(graph.packages),
        linked=len(graph.reverse_deps),
        unversioned_skipped=skipped,
    )
    return graph
