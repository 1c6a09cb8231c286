"""Audit a generated graph against the advisory feed and render the outcome."""

from __future__ import annotations

from depsentinel.engines.advisory.client import AdvisoryClient
from depsentinel.engines.advisory.correlator import correlate
from depsentinel.engines.advisory.models import AuditReport
from depsentinel.engines.dependency_graph.models import DependencyGraph

CHAIN_SEPARATOR = " → "


async def audit(graph: DependencyGraph, client: AdvisoryClient) -> AuditReport:
    """Query the feed for *graph* and correlate. Advisory errors propagate."""
    advisories = await client.query_bulk(graph.manifest())
    return AuditReport(correlate(graph.packages, advisories, graph.reverse_deps))


def format_report(report: AuditReport) -> str:
    if report.ok:
        return "No critical npm vulnerabilities found."
    lines = [f"{report.critical_count} critical npm vulnerabilit{'y' if report.critical_count == 1 else 'ies'}:"]
    for vuln in report.vulnerabilities:
        lines.append(f"  {vuln.package}@{', '.join(vuln.installed_versions) or '?'}  {vuln.title}")
        if vuln.vulnerable_versions:
            lines.append(f"    vulnerable: {vuln.vulnerable_versions}")
        if len(vuln.dependency_chain) > 1:
            lines.append(f"    via: {CHAIN_SEPARATOR.join(vuln.dependency_chain)}")
        if vuln.url:
            lines.append(f"    {vuln.url}")
    return "\n".join(lines)
