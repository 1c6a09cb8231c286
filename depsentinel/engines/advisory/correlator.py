"""Advisory correlator — keep critical advisories and attach provenance.

Pure functions; the HTTP request that produced the advisory data is made
by the caller.
"""

from __future__ import annotations

from collections.abc import Collection, Mapping
from typing import Any

from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from depsentinel.engines.advisory.models import CRITICAL, AdvisoryEntry, VulnerabilityRecord
from depsentinel.engines.dependency_graph.chain import resolve_chain
from depsentinel.exceptions import AdvisoryParseError

AdvisoryResponse = dict[str, list[AdvisoryEntry]]

_response_adapter: TypeAdapter[AdvisoryResponse] = TypeAdapter(AdvisoryResponse)


def parse_advisory_response(data: Any) -> AdvisoryResponse:
    """Validate decoded JSON as ``{package: [advisory, ...]}``."""
    try:
        return _response_adapter.validate_python(data)
    except PydanticValidationError as exc:
        raise AdvisoryParseError(
            f"Failed to parse npm advisory response ({exc.error_count()} errors)"
        ) from exc


def correlate(
    manifest: Mapping[str, Collection[str]],
    advisories: Mapping[str, list[AdvisoryEntry]],
    reverse_deps: Mapping[str, Collection[str]],
) -> list[VulnerabilityRecord]:
    """Return one record per critical advisory, in the feed's package order.

    Installed versions are everything the manifest recorded for the package;
    the feed already matched them against ``vulnerable_versions``, which is
    passed through unchanged.
    """
    records: list[VulnerabilityRecord] = []
    for package, entries in advisories.items():
        criticals = [e for e in entries if e.severity == CRITICAL]
        if not criticals:
            continue
        installed = tuple(sorted(manifest.get(package, ())))
        chain = tuple(resolve_chain(package, reverse_deps))
        for entry in criticals:
            records.append(
                VulnerabilityRecord(
                    package=package,
                    installed_versions=installed,
                    title=entry.title,
                    url=entry.url,
                    vulnerable_versions=entry.vulnerable_versions,
                    dependency_chain=chain,
                )
            )
    return records
