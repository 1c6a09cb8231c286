"""Dependency graph engine — flatten installed trees and trace provenance."""

from depsentinel.engines.dependency_graph.builder import build_graph
from depsentinel.engines.dependency_graph.chain import resolve_chain
from depsentinel.engines.dependency_graph.models import DependencyGraph, DependencyNode
from depsentinel.engines.dependency_graph.tree_source import load_tree
from depsentinel.engines.dependency_graph.writer import load_manifest, write_manifest

__all__ = [
    "DependencyGraph",
    "DependencyNode",
    "build_graph",
    "load_manifest",
    "load_tree",
    "resolve_chain",
    "write_manifest",
]
