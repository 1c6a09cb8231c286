"""Health check endpoint logic."""

from depsentinel.health.responder import HealthResponder
from depsentinel.health.schemas import HealthCheckResponse, HealthCheckResult

__all__ = ["HealthCheckResponse", "HealthCheckResult", "HealthResponder"]
