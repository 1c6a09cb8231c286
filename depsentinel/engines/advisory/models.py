"""Data models for the advisory correlation engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator

CRITICAL = "critical"


class AdvisoryEntry(BaseModel):
    """One advisory as returned by the bulk advisory feed."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    severity: str
    title: str = ""
    url: str = ""
    vulnerable_versions: str = ""

    @field_validator("title", "url", "vulnerable_versions", mode="before")
    @classmethod
    def _null_as_empty(cls, value: Any) -> Any:
        return "" if value is None else value


@dataclass(frozen=True)
class VulnerabilityRecord:
    """A critical advisory joined with what is installed and how it got there."""

    package: str
    installed_versions: tuple[str, ...]
    title: str
    url: str
    vulnerable_versions: str
    dependency_chain: tuple[str, ...]

    def to_dict(self) -> dict[str, Any]:
        return {
            "package": self.package,
            "installedVersions": list(self.installed_versions),
            "title": self.title,
            "url": self.url,
            "vulnerableVersions": self.vulnerable_versions,
            "dependencyChain": list(self.dependency_chain),
        }


@dataclass
class AuditReport:
    """Result of one audit pass over a manifest."""

    vulnerabilities: list[VulnerabilityRecord] = field(default_factory=list)

    @property
    def critical_count(self) -> int:
        return len(self.vulnerabilities)

    @property
    def ok(self) -> bool:
        return not self.vulnerabilities
