"""Advisory engine — bulk advisory queries and critical-severity correlation."""

from depsentinel.engines.advisory.client import AdvisoryClient
from depsentinel.engines.advisory.correlator import correlate, parse_advisory_response
from depsentinel.engines.advisory.models import AdvisoryEntry, AuditReport, VulnerabilityRecord
from depsentinel.engines.advisory.report import audit, format_report

__all__ = [
    "AdvisoryClient",
    "AdvisoryEntry",
    "AuditReport",
    "VulnerabilityRecord",
    "audit",
    "correlate",
    "format_report",
    "parse_advisory_response",
]
