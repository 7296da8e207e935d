from __future__ import annotations

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from crm_api.metrics import http_path_label, observe_http_request

logger = logging.getLogger("crm_api.request")


def _record(request: Request, status_code: int, started: float) -> dict[str, object]:
    # Resolved after routing so the route template is known.
    duration_ms = round((time.perf_counter() - started) * 1000, 2)
    path = http_path_label(request)
    observe_http_request(method=request.method, path=path, status=status_code, duration=duration_ms / 1000)
    return {"method": request.method, "path": path, "status_code": status_code, "duration_ms": duration_ms}


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """One ``http.request`` line and one metrics observation per request."""

    async def dispatch(self, request: Request, call_next):  # type: ignore[no-untyped-def]
        started = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            logger.error("http.error", exc_info=True, extra=_record(request, 500, started))
            raise

        logger.info("http.request", extra=_record(request, response.status_code, started))
        return response
