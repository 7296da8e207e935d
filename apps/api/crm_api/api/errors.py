from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import Any

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from starlette.requests import Request

from crm_api.context import get_correlation_id
from crm_api.errors import ServiceError
from crm_api.metrics import observe_service_error

logger = logging.getLogger("crm_api.errors")


@dataclass
class ErrorEnvelope:
    code: str
    message: str
    details: Any
    correlation_id: str | None


def error_response(
    request: Request,
    *,
    status_code: int,
    code: str,
    message: str,
    details: Any = None,
) -> JSONResponse:
    correlation_id = get_correlation_id() or getattr(request.state, "correlation_id", None)
    payload = ErrorEnvelope(
        code=code,
        message=message,
        details=details,
        correlation_id=correlation_id,
    )
    return JSONResponse(status_code=status_code, content=jsonable_encoder(asdict(payload)))


async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    observe_service_error(exc.code)
    log = logger.error if exc.status_code >= 500 else logger.info
    log("http.service_error", extra={"error_code": exc.code, "error": exc.message, "status_code": exc.status_code})
    return error_response(
        request,
        status_code=exc.status_code,
        code=exc.code,
        message=exc.message,
        details=exc.details,
    )
