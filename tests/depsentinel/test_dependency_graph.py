"""Tests for the dependency graph engine: typed tree, builder, chains, tree source, files."""

from __future__ import annotations

import json
import subprocess
from unittest.mock import MagicMock, patch

import pytest

from depsentinel.engines.dependency_graph.builder import build_graph
from depsentinel.engines.dependency_graph.chain import resolve_chain
from depsentinel.engines.dependency_graph.models import DependencyGraph, DependencyNode
from depsentinel.engines.dependency_graph.tree_source import (
    TREE_COMMANDS,
    detect_package_manager,
    load_tree,
    parse_tree,
    run_tree_command,
)
from depsentinel.engines.dependency_graph.writer import load_manifest, write_manifest
from depsentinel.exceptions import (
    ManifestError,
    TreeSourceError,
    UnsupportedPackageManagerError,
)


def _build(raw: dict) -> DependencyGraph:
    return build_graph(DependencyNode.from_dict(raw))


# ── DependencyNode.from_dict ─────────────────────────────────────────────


class TestDependencyNode:
    def test_nested_children(self):
        node = DependencyNode.from_dict(
            {"dependencies": {"a": {"version": "1.0.0", "dependencies": {"b": {"version": "2.0.0"}}}}}
        )
        assert node.version is None
        assert node.dependencies["a"].version == "1.0.0"
        assert node.dependencies["a"].dependencies["b"].version == "2.0.0"

    def test_non_object_children_skipped(self):
        node = DependencyNode.from_dict({"dependencies": {"a": "1.0.0", "b": {"version": "1.0.0"}}})
        assert list(node.dependencies) == ["b"]

    def test_bad_version_becomes_none(self):
        node = DependencyNode.from_dict(
            {"dependencies": {"a": {"version": 3}, "b": {"version": ""}}}
        )
        assert node.dependencies["a"].version is None
        assert node.dependencies["b"].version is None

    def test_non_object_dependencies_ignored(self):
        node = DependencyNode.from_dict({"dependencies": ["a", "b"]})
        assert node.dependencies == {}

    def test_deep_tree_does_not_recurse(self):
        raw: dict = {}
        cursor = raw
        for i in range(5000):
            child = {"version": "1.0.0"}
            cursor["dependencies"] = {f"p{i}": child}
            cursor = child
        node = DependencyNode.from_dict(raw)
        assert node.dependencies["p0"].version == "1.0.0"


# ── build_graph ──────────────────────────────────────────────────────────


class TestBuildGraph:
    def test_end_to_end_example(self):
        graph = _build(
            {"dependencies": {"a": {"version": "1.0.0", "dependencies": {"b": {"version": "2.0.0"}}}}}
        )
        assert graph.manifest() == {"a": ["1.0.0"], "b": ["2.0.0"]}
        assert graph.reverse_map() == {"b": ["a"]}
        assert resolve_chain("b", graph.reverse_deps) == ["a", "b"]

    def test_root_contributes_nothing(self, graph):
        assert "myapp" not in graph.packages
        assert "myapp" not in graph.reverse_deps

    def test_direct_dependencies_have_no_parent_entry(self, graph):
        assert "express" not in graph.reverse_deps
        assert "lodash" not in graph.reverse_deps

    def test_diamond_collapses_versions_and_parents(self, graph):
        assert graph.packages["qs"] == {"6.11.0"}
        assert graph.reverse_deps["qs"] == {"body-parser", "express"}

    def test_multiple_versions_recorded(self):
        graph = _build(
            {
                "dependencies": {
                    "a": {"version": "1.0.0", "dependencies": {"c": {"version": "1.0.0"}}},
                    "b": {"version": "1.0.0", "dependencies": {"c": {"version": "2.0.0"}}},
                }
            }
        )
        assert graph.manifest()["c"] == ["1.0.0", "2.0.0"]
        assert graph.reverse_map()["c"] == ["a", "b"]

    def test_unversioned_node_and_subtree_dropped(self):
        graph = _build(
            {
                "dependencies": {
                    "ghost": {"dependencies": {"inner": {"version": "1.0.0"}}},
                    "real": {"version": "1.0.0"},
                }
            }
        )
        assert "ghost" not in graph.packages
        assert "inner" not in graph.packages
        assert "inner" not in graph.reverse_deps
        assert graph.manifest() == {"real": ["1.0.0"]}

    def test_no_empty_version_sets(self, graph):
        assert all(versions for versions in graph.packages.values())

    def test_name_cycle_across_versions(self):
        graph = _build(
            {
                "dependencies": {
                    "a": {
                        "version": "1.0.0",
                        "dependencies": {
                            "b": {"version": "1.0.0", "dependencies": {"a": {"version": "0.9.0"}}}
                        },
                    }
                }
            }
        )
        assert graph.packages["a"] == {"1.0.0", "0.9.0"}
        assert graph.reverse_deps == {"b": {"a"}, "a": {"b"}}

    def test_empty_tree(self):
        graph = _build({})
        assert graph.manifest() == {}
        assert len(graph) == 0


# ── resolve_chain ────────────────────────────────────────────────────────


class TestResolveChain:
    def test_root_adjacent_package(self, graph):
        assert resolve_chain("express", graph.reverse_deps) == ["express"]

    def test_unknown_package(self):
        assert resolve_chain("nope", {}) == ["nope"]

    def test_shortest_path_wins(self, graph):
        # qs is reachable via express directly and via body-parser
        assert resolve_chain("qs", graph.reverse_deps) == ["express", "qs"]

    def test_longer_chain(self):
        reverse = {"d": {"c"}, "c": {"b"}, "b": {"a"}}
        assert resolve_chain("d", reverse) == ["a", "b", "c", "d"]

    def test_two_node_cycle_terminates(self):
        assert resolve_chain("A", {"A": {"B"}, "B": {"A"}}) == ["A"]

    def test_cycle_with_exit(self):
        reverse = {"x": {"y"}, "y": {"x", "top"}}
        assert resolve_chain("x", reverse) == ["top", "y", "x"]

    def test_ends_at_package_without_parents(self, graph):
        for name in graph.packages:
            chain = resolve_chain(name, graph.reverse_deps)
            assert chain[-1] == name
            assert chain == [name] or chain[0] not in graph.reverse_deps

    def test_ties_break_in_sorted_order(self):
        reverse = {"t": {"zeta", "alpha"}}
        assert resolve_chain("t", reverse) == ["alpha", "t"]

    def test_accepts_list_values(self):
        assert resolve_chain("b", {"b": ["a"]}) == ["a", "b"]


# ── Tree source ──────────────────────────────────────────────────────────


class TestTreeSource:
    def test_detect_npm_by_default(self, tmp_path):
        assert detect_package_manager(tmp_path) == "npm"

    def test_detect_pnpm(self, tmp_path):
        (tmp_path / "pnpm-lock.yaml").write_text("lockfileVersion: 9\n")
        assert detect_package_manager(tmp_path) == "pnpm"

    def test_yarn_rejected(self, tmp_path):
        (tmp_path / "yarn.lock").write_text("# yarn\n")
        with pytest.raises(UnsupportedPackageManagerError, match="yarn is not supported"):
            detect_package_manager(tmp_path)

    def test_pnpm_wins_over_yarn(self, tmp_path):
        (tmp_path / "pnpm-lock.yaml").write_text("")
        (tmp_path / "yarn.lock").write_text("")
        assert detect_package_manager(tmp_path) == "pnpm"

    def test_parse_object(self):
        node = parse_tree(json.dumps({"dependencies": {"a": {"version": "1.0.0"}}}), "npm ls")
        assert node.dependencies["a"].version == "1.0.0"

    def test_parse_pnpm_list(self):
        raw = json.dumps([{"name": "app", "dependencies": {"a": {"version": "1.0.0"}}}])
        node = parse_tree(raw, "pnpm list")
        assert node.dependencies["a"].version == "1.0.0"

    def test_parse_garbage_names_command_and_sample(self):
        with pytest.raises(TreeSourceError, match='failed to parse "npm ls".*First 200 chars: oops'):
            parse_tree("oops not json", "npm ls")

    def test_parse_empty_list(self):
        with pytest.raises(TreeSourceError):
            parse_tree("[]", "pnpm list")

    def test_parse_scalar(self):
        with pytest.raises(TreeSourceError):
            parse_tree("42", "npm ls")

    def test_nonzero_exit_with_output_is_accepted(self, tmp_path):
        proc = MagicMock(returncode=1, stdout='{"dependencies": {}}')
        with patch("subprocess.run", return_value=proc) as run:
            out = run_tree_command(["npm", "ls"], tmp_path, timeout=5)
        assert out == '{"dependencies": {}}'
        assert run.call_args.kwargs["timeout"] == 5
        assert run.call_args.kwargs["cwd"] == tmp_path

    def test_empty_output_fails(self, tmp_path):
        proc = MagicMock(returncode=0, stdout="  \n")
        with patch("subprocess.run", return_value=proc):
            with pytest.raises(TreeSourceError, match="produced no output"):
                run_tree_command(["npm", "ls"], tmp_path, timeout=5)

    def test_missing_executable(self, tmp_path):
        with patch("subprocess.run", side_effect=FileNotFoundError("npm")):
            with pytest.raises(TreeSourceError, match="could not be started"):
                run_tree_command(["npm", "ls"], tmp_path, timeout=5)

    def test_timeout(self, tmp_path):
        with patch("subprocess.run", side_effect=subprocess.TimeoutExpired(["npm"], 5)):
            with pytest.raises(TreeSourceError, match="did not finish"):
                run_tree_command(["npm", "ls"], tmp_path, timeout=5)

    def test_load_tree_uses_detected_command(self, tmp_path):
        (tmp_path / "pnpm-lock.yaml").write_text("")
        proc = MagicMock(returncode=0, stdout=json.dumps([{"dependencies": {"a": {"version": "1.0.0"}}}]))
        with patch("subprocess.run", return_value=proc) as run:
            node = load_tree(tmp_path, timeout=5)
        assert run.call_args.args[0] == TREE_COMMANDS["pnpm"]
        assert node.dependencies["a"].version == "1.0.0"


# ── Manifest files ───────────────────────────────────────────────────────


class TestManifestFile:
    def test_write_creates_dirs_and_sorted_shape(self, tmp_path, graph):
        path = write_manifest(graph, tmp_path / "nested" / "deps-manifest.json")
        data = json.loads(path.read_text())
        assert set(data) == {"packages", "reverseDeps"}
        assert list(data["packages"]) == sorted(data["packages"])
        assert data["reverseDeps"]["qs"] == ["body-parser", "express"]
        assert path.read_text().endswith("\n")

    def test_write_then_load(self, tmp_path, graph):
        path = write_manifest(graph, tmp_path / "m.json")
        loaded = load_manifest(path)
        assert loaded.packages == graph.packages
        assert loaded.reverse_deps == graph.reverse_deps

    def test_deterministic_output(self, tmp_path, npm_tree):
        a = write_manifest(_build(npm_tree), tmp_path / "a.json").read_text()
        b = write_manifest(_build(npm_tree), tmp_path / "b.json").read_text()
        assert a == b

    def test_legacy_flat_manifest(self, tmp_path):
        path = tmp_path / "m.json"
        path.write_text(json.dumps({"a": ["1.0.0"]}))
        loaded = load_manifest(path)
        assert loaded.manifest() == {"a": ["1.0.0"]}
        assert loaded.reverse_deps == {}

    def test_missing_file(self, tmp_path):
        with pytest.raises(ManifestError, match="not found"):
            load_manifest(tmp_path / "absent.json")

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "m.json"
        path.write_text("{nope")
        with pytest.raises(ManifestError, match="not valid JSON"):
            load_manifest(path)

    def test_wrong_shape(self, tmp_path):
        path = tmp_path / "m.json"
        path.write_text(json.dumps({"packages": {"a": "1.0.0"}}))
        with pytest.raises(ManifestError, match="malformed"):
            load_manifest(path)
