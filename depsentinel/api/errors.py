"""Error handling — map domain errors to JSON responses."""

from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from depsentinel.exceptions import AuthenticationError


async def _authentication_error_handler(
    _request: Request, _exc: AuthenticationError
) -> JSONResponse:
    # Same body for a wrong secret and an unconfigured one.
    return JSONResponse(status_code=401, content={"error": "Unauthorized"})


def register_error_handlers(app: FastAPI) -> None:
    """Register exception handlers on the app."""
    app.add_exception_handler(AuthenticationError, _authentication_error_handler)  # type: ignore[arg-type]
