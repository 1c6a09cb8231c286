"""Async client for the npm bulk advisory endpoint."""

from __future__ import annotations

import asyncio
from collections.abc import Collection, Mapping

import httpx
import structlog

from depsentinel.core.config import NPM_BULK_ADVISORY_URL
from depsentinel.engines.advisory.correlator import AdvisoryResponse, parse_advisory_response
from depsentinel.exceptions import (
    AdvisoryHTTPError,
    AdvisoryParseError,
    AdvisoryTimeoutError,
    AdvisoryTransportError,
)

log = structlog.get_logger("depsentinel.engine")


class AdvisoryClient:
    """One POST per query, bounded by a single timeout, no retries.

    *transport* is passed to :class:`httpx.AsyncClient`; tests use it to
    plug in an ``httpx.MockTransport``.
    """

    def __init__(
        self,
        url: str = NPM_BULK_ADVISORY_URL,
        timeout: float = 8.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._url = url
        self._timeout = timeout
        self._transport = transport

    @property
    def timeout(self) -> float:
        return self._timeout

    async def query_bulk(self, manifest: Mapping[str, Collection[str]]) -> AdvisoryResponse:
        """POST *manifest* and return the validated advisory mapping.

        Raises a subclass of ``AdvisoryQueryError`` on timeout, transport
        failure, non-2xx status or an unparsable body.
        """
        payload = {name: list(versions) for name, versions in manifest.items()}
        try:
            response = await asyncio.wait_for(self._post(payload), timeout=self._timeout)
        except (asyncio.TimeoutError, httpx.TimeoutException):
            log.warning("advisory.timeout", url=self._url, timeout=self._timeout)
            raise AdvisoryTimeoutError("npm advisory API timed out") from None
        except httpx.HTTPError as exc:
            log.warning("advisory.request_failed", url=self._url, error=str(exc))
            raise AdvisoryTransportError("npm advisory API request failed") from exc

        if not response.is_success:
            log.warning("advisory.http_error", url=self._url, status_code=response.status_code)
            raise AdvisoryHTTPError(response.status_code)

        try:
            data = response.json()
        except ValueError:
            raise AdvisoryParseError("Failed to parse npm advisory response") from None
        advisories = parse_advisory_response(data)
        log.debug("advisory.received", packages=len(payload), flagged=len(advisories))
        return advisories

    async def _post(self, payload: dict[str, list[str]]) -> httpx.Response:
        async with httpx.AsyncClient(
            timeout=self._timeout, transport=self._transport
        ) as client:
            return await client.post(self._url, json=payload)
