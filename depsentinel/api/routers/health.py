"""Health router — the endpoint polled by the uptime monitor."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from depsentinel.api.deps import get_health_responder
from depsentinel.health.responder import HealthResponder

router = APIRouter()


@router.get("/health")
async def health_check(
    request: Request,
    responder: HealthResponder = Depends(get_health_responder),
) -> JSONResponse:
    secret = request.headers.get(responder.secret_header)
    result = await responder.respond(secret)
    return JSONResponse(result.to_json_dict())
