"""Per-request context carried through contextvars.

The context is bound by ``RequestContextMiddleware`` before routing, so it is
visible to endpoint code running in the worker thread pool, to log records and
to spans. ``organization`` is the raw ``Organization`` header; it is not
validated here and only serves as a log and trace label.
"""

from __future__ import annotations

from contextvars import ContextVar, Token
from dataclasses import dataclass


@dataclass(frozen=True)
class RequestContext:
    correlation_id: str | None = None
    organization: str | None = None


_EMPTY = RequestContext()

request_context_var: ContextVar[RequestContext] = ContextVar("crm_request_context", default=_EMPTY)


def bind_request_context(correlation_id: str | None, organization: str | None = None) -> Token[RequestContext]:
    return request_context_var.set(RequestContext(correlation_id=correlation_id, organization=organization or None))


def reset_request_context(token: Token[RequestContext]) -> None:
    request_context_var.reset(token)


def current_request_context() -> RequestContext:
    return request_context_var.get()


def get_correlation_id() -> str | None:
    return request_context_var.get().correlation_id
