"""Health check response schemas (monitoring-system wire format)."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

CheckStatus = Literal["ok", "warning", "failed", "crashed"]


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class HealthCheckResult(_CamelModel):
    name: str
    label: str
    status: CheckStatus
    notification_message: str
    short_summary: str
    meta: dict[str, Any] = Field(default_factory=dict)


class HealthCheckResponse(_CamelModel):
    finished_at: int
    check_results: list[HealthCheckResult]

    def to_json_dict(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)
