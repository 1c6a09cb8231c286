"""Health responder — authenticate, re-query advisories, report in monitor format.

Flow per request::

    secret wrong/unset  -> AuthenticationError (HTTP 401), no query made
    query fails         -> status "warning"
    no criticals        -> status "ok"
    criticals           -> status "failed", records in meta

"crashed" is never produced here; the monitor assigns it when the
endpoint itself is unreachable.
"""

from __future__ import annotations

import hmac
import os
import time
from collections.abc import Callable, Mapping

import structlog

from depsentinel.core.config import Settings
from depsentinel.engines.advisory.client import AdvisoryClient
from depsentinel.engines.advisory.correlator import correlate
from depsentinel.engines.advisory.models import VulnerabilityRecord
from depsentinel.engines.dependency_graph.models import DependencyGraph
from depsentinel.exceptions import AdvisoryQueryError, AuthenticationError
from depsentinel.health.schemas import HealthCheckResponse, HealthCheckResult

CHECK_NAME = "npm_vulnerabilities"
CHECK_LABEL = "NPM Critical Vulnerabilities"

log = structlog.get_logger("depsentinel.health").bind(check=CHECK_NAME)


class HealthResponder:
    """Answers health-check requests for one generated manifest.

    Owns the only cross-request state: whether the "secret not configured"
    warning has been logged yet. Build a fresh instance to reset it.
    """

    def __init__(
        self,
        graph: DependencyGraph,
        *,
        settings: Settings | None = None,
        client: AdvisoryClient | None = None,
        environ: Mapping[str, str] | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._graph = graph
        self._manifest = graph.manifest()
        self._settings = settings or Settings()
        self._client = client or AdvisoryClient(
            self._settings.advisory_url, self._settings.advisory_timeout
        )
        self._environ = environ
        self._clock = clock
        self._warned_missing_secret = False

    @property
    def secret_header(self) -> str:
        return self._settings.secret_header

    def authorize(self, provided: str | None) -> None:
        """Raise AuthenticationError unless *provided* matches the configured secret.

        The error message is the same whether the secret is wrong or unset.
        """
        env = os.environ if self._environ is None else self._environ
        expected = env.get(self._settings.secret_env_var) or ""
        if not expected and not self._warned_missing_secret:
            log.warning(
                "health.secret_not_configured",
                env_var=self._settings.secret_env_var,
                detail="all health check requests will be rejected with 401",
            )
            self._warned_missing_secret = True
        if not expected or not provided or not hmac.compare_digest(
            provided.encode(), expected.encode()
        ):
            log.info("health.unauthorized")
            raise AuthenticationError("Unauthorized")

    async def respond(self, provided_secret: str | None) -> HealthCheckResponse:
        self.authorize(provided_secret)
        return await self.check()

    async def check(self) -> HealthCheckResponse:
        """Query the advisory feed and classify. Never raises on feed trouble."""
        try:
            advisories = await self._client.query_bulk(self._manifest)
        except AdvisoryQueryError as exc:
            return self._result("warning", str(exc), "check error")

        records = correlate(self._graph.packages, advisories, self._graph.reverse_deps)
        if not records:
            return self._result("ok", "No critical npm vulnerabilities found.", "0 critical")

        log.warning("health.critical_found", critical=len(records))
        return self._result(
            "failed",
            f"Critical vulnerabilities in: {_package_list(records)}",
            f"{len(records)} critical",
            meta={"vulnerabilities": [r.to_dict() for r in records]},
        )

    def _result(
        self,
        status: str,
        message: str,
        summary: str,
        meta: dict | None = None,
    ) -> HealthCheckResponse:
        return HealthCheckResponse(
            finished_at=int(self._clock()),
            check_results=[
                HealthCheckResult(
                    name=CHECK_NAME,
                    label=CHECK_LABEL,
                    status=status,
                    notification_message=message,
                    short_summary=summary,
                    meta=meta or {},
                )
            ],
        )


def _package_list(records: list[VulnerabilityRecord]) -> str:
    # One package can carry several critical advisories.
    return ", ".join(dict.fromkeys(r.package for r in records))
