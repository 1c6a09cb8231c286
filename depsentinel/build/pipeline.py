"""Build-time pipeline — generate the manifest once per build, audit in the background."""

from __future__ import annotations

import asyncio
import threading
from dataclasses import dataclass
from pathlib import Path

import structlog

from depsentinel.build.lock import BuildLock, scope_key_for
from depsentinel.core.config import Settings
from depsentinel.engines.advisory.client import AdvisoryClient
from depsentinel.engines.advisory.models import AuditReport
from depsentinel.engines.advisory.report import CHAIN_SEPARATOR, audit
from depsentinel.engines.dependency_graph.builder import build_graph
from depsentinel.engines.dependency_graph.models import DependencyGraph
from depsentinel.engines.dependency_graph.tree_source import load_tree
from depsentinel.engines.dependency_graph.writer import write_manifest
from depsentinel.exceptions import AdvisoryQueryError

log = structlog.get_logger("depsentinel.build")

# Extra seconds to wait for an audit beyond its HTTP timeout.
AUDIT_GRACE = 2.0


def generate_manifest(
    output_path: Path,
    cwd: Path,
    *,
    settings: Settings,
    lock: BuildLock | None = None,
) -> DependencyGraph | None:
    """Build and write the manifest unless another process already is.

    Returns ``None`` when the lock for *output_path* is held. Tree source
    and write failures propagate; a build without a manifest is broken.
    """
    lock = lock or BuildLock()
    scope_key = scope_key_for(output_path)
    if not lock.try_acquire(scope_key, settings.lock_ttl):
        log.debug("lock.skipped", output=str(output_path), scope_key=scope_key)
        return None

    tree = load_tree(cwd, timeout=settings.tree_timeout)
    graph = build_graph(tree)
    write_manifest(graph, output_path)
    log.info(
        "manifest.written",
        packages=len(graph),
        output=str(output_path),
        health_url=settings.public_health_url(),
    )
    return graph


class BackgroundAudit:
    """Run one advisory audit on a daemon thread.

    The build does not wait for it. ``done`` is set when the thread
    finishes, after which ``report`` or ``error`` tells what happened.
    """

    def __init__(self, graph: DependencyGraph, client: AdvisoryClient) -> None:
        self._graph = graph
        self._client = client
        self.done = threading.Event()
        self.report: AuditReport | None = None
        self.error: BaseException | None = None
        self._thread = threading.Thread(
            target=self._run, name="depsentinel-audit", daemon=True
        )

    def start(self) -> BackgroundAudit:
        self._thread.start()
        return self

    @property
    def budget(self) -> float:
        """Seconds a caller should allow for the audit to finish."""
        return self._client.timeout + AUDIT_GRACE

    def wait(self, timeout: float | None = None) -> bool:
        """Block up to *timeout* seconds; True if the audit finished."""
        return self.done.wait(timeout)

    def _run(self) -> None:
        try:
            self.report = asyncio.run(audit(self._graph, self._client))
        except AdvisoryQueryError as exc:
            self.error = exc
            log.warning("audit.unavailable", reason=str(exc))
        except Exception as exc:
            self.error = exc
            log.exception("audit.crashed")
        else:
            _log_report(self.report)
        finally:
            self.done.set()


def _log_report(report: AuditReport) -> None:
    if report.ok:
        log.info("audit.clean")
        return
    for vuln in report.vulnerabilities:
        log.warning(
            "audit.critical",
            package=vuln.package,
            installed=list(vuln.installed_versions),
            title=vuln.title,
            url=vuln.url,
            vulnerable_versions=vuln.vulnerable_versions,
            via=CHAIN_SEPARATOR.join(vuln.dependency_chain),
        )
    log.warning("audit.summary", critical=report.critical_count)


@dataclass
class BuildOutcome:
    graph: DependencyGraph | None
    audit: BackgroundAudit | None = None

    @property
    def skipped(self) -> bool:
        return self.graph is None


def prepare_build(
    output_path: Path,
    cwd: Path,
    *,
    settings: Settings,
    lock: BuildLock | None = None,
    check: bool = True,
    client: AdvisoryClient | None = None,
) -> BuildOutcome:
    """Generate the manifest and, if *check*, start a background audit of it."""
    graph = generate_manifest(output_path, cwd, settings=settings, lock=lock)
    if graph is None or not check:
        return BuildOutcome(graph=graph)
    client = client or AdvisoryClient(settings.advisory_url, settings.advisory_timeout)
    return BuildOutcome(graph=graph, audit=BackgroundAudit(graph, client).start())
