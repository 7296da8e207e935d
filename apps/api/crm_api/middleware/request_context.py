from __future__ import annotations

import uuid

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from crm_api.context import bind_request_context, reset_request_context
from crm_api.otel import annotate_current_span

CORRELATION_HEADER = "x-correlation-id"


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Bind the correlation id and the caller's organization label to the request.

    A caller-supplied ``X-Correlation-Id`` is kept, otherwise a fresh one is
    generated; either way it is echoed on the response.
    """

    async def dispatch(self, request: Request, call_next):  # type: ignore[no-untyped-def]
        correlation_id = request.headers.get(CORRELATION_HEADER) or str(uuid.uuid4())
        organization = request.headers.get("organization")
        request.state.correlation_id = correlation_id

        annotate_current_span(correlation_id=correlation_id, organization=organization)
        token = bind_request_context(correlation_id, organization)
        try:
            response = await call_next(request)
        finally:
            reset_request_context(token)

        response.headers[CORRELATION_HEADER] = correlation_id
        return response
