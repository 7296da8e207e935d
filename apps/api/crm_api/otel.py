"""OpenTelemetry wiring for the API process.

A single tracer provider is installed globally the first time tracing is set
up. Server spans come from the FastAPI instrumentation; request spans are
labelled with the correlation id and the ``Organization`` header, and the
pagination helper opens its own ``crm.paginate`` span.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from fastapi import FastAPI
from opentelemetry import trace
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import ConsoleSpanExporter, SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter

from crm_api.core.config import Settings

SERVICE_NAME = "crm-api"
SERVICE_VERSION = "0.1.0"


@dataclass
class _TracingState:
    provider: TracerProvider | None = None
    console_attached: bool = False


_state = _TracingState()


def _tracer_provider(service_name: str, environment: str | None = None) -> TracerProvider:
    if _state.provider is None:
        attributes: dict[str, str] = {"service.name": service_name, "service.version": SERVICE_VERSION}
        if environment:
            attributes["deployment.environment"] = environment
        _state.provider = TracerProvider(resource=Resource.create(attributes))
        trace.set_tracer_provider(_state.provider)
    return _state.provider


def setup_otel(settings: Settings) -> TracerProvider | None:
    if not settings.otel_enabled:
        return None

    provider = _tracer_provider(SERVICE_NAME, settings.app_env)
    if settings.otel_console_exporter and not _state.console_attached:
        provider.add_span_processor(SimpleSpanProcessor(ConsoleSpanExporter()))
        _state.console_attached = True
    return provider


def setup_inmemory_otel(service_name: str = SERVICE_NAME) -> InMemorySpanExporter:
    """Collect finished spans in memory; used by the test suite."""
    exporter = InMemorySpanExporter()
    _tracer_provider(service_name).add_span_processor(SimpleSpanProcessor(exporter))
    return exporter


def get_tracer(name: str) -> trace.Tracer:
    return trace.get_tracer(name)


def _label_span(span: Any, correlation_id: str | None, organization: str | None) -> None:
    if span is None or not span.is_recording():
        return
    if correlation_id:
        span.set_attribute("correlation_id", correlation_id)
    if organization:
        span.set_attribute("crm.org_id", organization)


def annotate_current_span(*, correlation_id: str | None, organization: str | None) -> None:
    _label_span(trace.get_current_span(), correlation_id, organization)


def _server_request_hook(span: Any, scope: dict[str, Any]) -> None:
    headers = dict(scope.get("headers") or [])
    correlation_raw = headers.get(b"x-correlation-id")
    organization_raw = headers.get(b"organization")
    _label_span(
        span,
        correlation_raw.decode("latin-1") if correlation_raw else None,
        organization_raw.decode("latin-1") if organization_raw else None,
    )


def instrument_app(app: FastAPI) -> None:
    if getattr(app, "_is_instrumented_by_opentelemetry", False):
        return
    FastAPIInstrumentor.instrument_app(app, server_request_hook=_server_request_hook)
