from __future__ import annotations

import re

from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest
from starlette.requests import Request

HTTP_REQUESTS = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "path", "status"],
)

HTTP_REQUEST_DURATION = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "path"],
)

ENTITY_WRITES = Counter(
    "crm_entity_writes_total",
    "Committed writes by entity type and operation",
    ["entity_type", "operation"],
)

SERVICE_ERRORS = Counter(
    "crm_service_errors_total",
    "Service errors returned to clients by error code",
    ["code"],
)

PAGE_ROWS = Histogram(
    "crm_page_rows",
    "Rows returned per paginated list call",
    ["entity"],
    buckets=(0, 1, 5, 10, 25, 50, 100, 250),
)

# "{prefix}_{uuid}" typed ids, or bare uuids, in raw request paths.
_TYPED_ID_RE = re.compile(
    r"\b(?:[a-z]+_)?[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}\b"
)
_ROUTE_PARAM_RE = re.compile(r"\{(\w+)\}")


def _collapse_id_param(match: re.Match[str]) -> str:
    name = match.group(1)
    return "{id}" if name.endswith("id") else match.group(0)


def http_path_label(request: Request) -> str:
    """Low-cardinality path label: the matched route template, ids collapsed to ``{id}``."""
    route = request.scope.get("route")
    template = getattr(route, "path_format", None) or getattr(route, "path", None)
    if isinstance(template, str) and template:
        return _ROUTE_PARAM_RE.sub(_collapse_id_param, template)
    return _TYPED_ID_RE.sub("{id}", request.url.path)


def observe_http_request(method: str, path: str, status: int, duration: float) -> None:
    HTTP_REQUESTS.labels(method=method, path=path, status=str(status)).inc()
    HTTP_REQUEST_DURATION.labels(method=method, path=path).observe(duration)


def observe_entity_write(entity_type: str, operation: str) -> None:
    ENTITY_WRITES.labels(entity_type=entity_type, operation=operation).inc()


def observe_service_error(code: str) -> None:
    SERVICE_ERRORS.labels(code=code).inc()


def observe_page(entity: str, rows: int) -> None:
    PAGE_ROWS.labels(entity=entity).observe(rows)


def render_metrics() -> tuple[bytes, str]:
    return generate_latest(), CONTENT_TYPE_LATEST
