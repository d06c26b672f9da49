"""
OpenTelemetry tracing.

Tracing is opt-in (`OTEL_ENABLED`). Until `configure_tracing()` installs a
provider the global tracer is a no-op, so the spans opened by
`TracingMiddleware` and `traced` cost next to nothing.

Span layout per request:
- `GET /cars/{car_id}` (SERVER), opened by the middleware
- `cars.get_car_by_id` (INTERNAL), the service call
- `cars.repository.get_car_by_id` (CLIENT, `db.system=postgresql`)
"""

from __future__ import annotations

import functools
import logging
from typing import Any, Awaitable, Callable, Mapping, TypeVar

from opentelemetry import propagate, trace
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, SpanExporter
from opentelemetry.sdk.trace.sampling import TraceIdRatioBased
from opentelemetry.trace import SpanKind, Status, StatusCode
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from . import settings

logger = logging.getLogger(__name__)

TRACER_NAME = "carzone"
DB_ATTRIBUTES = {"db.system": "postgresql"}

F = TypeVar("F", bound=Callable[..., Awaitable[Any]])


def tracing_enabled() -> bool:
    return settings.env_bool("OTEL_ENABLED", False)


def otlp_endpoint() -> str:
    return settings.env_str("OTEL_EXPORTER_OTLP_ENDPOINT", "http://jaeger:4318/v1/traces")


def service_name() -> str:
    return settings.env_str("OTEL_SERVICE_NAME", "carzone")


def sample_ratio() -> float:
    return min(1.0, max(0.0, settings.env_float("OTEL_SAMPLE_RATIO", 1.0)))


def tracer() -> trace.Tracer:
    # Resolved per call: the global provider may be installed after import.
    return trace.get_tracer(TRACER_NAME)


def configure_tracing(*, exporter: SpanExporter | None = None) -> TracerProvider:
    """
    Install a global TracerProvider that batches spans to `exporter`
    (OTLP/HTTP by default). OpenTelemetry allows one global provider per
    process; later calls only log a warning.
    """
    provider = TracerProvider(
        resource=Resource.create({"service.name": service_name()}),
        sampler=TraceIdRatioBased(sample_ratio()),
    )
    if exporter is None:
        exporter = OTLPSpanExporter(endpoint=otlp_endpoint())
    provider.add_span_processor(BatchSpanProcessor(exporter))
    trace.set_tracer_provider(provider)
    logger.info("tracing_configured service=%s ratio=%s", service_name(), sample_ratio())
    return provider


def shutdown_tracing(provider: TracerProvider | None) -> None:
    if provider is None:
        return None
    provider.shutdown()
    logger.info("tracing_shutdown")


def traced(
    name: str,
    *,
    kind: SpanKind = SpanKind.INTERNAL,
    attributes: Mapping[str, Any] | None = None,
) -> Callable[[F], F]:
    """
    Run the decorated coroutine inside a child span named `name`.

    Exceptions are recorded on the span, which is marked ERROR, and re-raised
    unchanged.
    """

    def decorator(func: F) -> F:
        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            with tracer().start_as_current_span(name, kind=kind, attributes=attributes):
                return await func(*args, **kwargs)

        return wrapper  # type: ignore[return-value]

    return decorator


def traced_query(name: str) -> Callable[[F], F]:
    return traced(name, kind=SpanKind.CLIENT, attributes=DB_ATTRIBUTES)


def _carrier(scope: Scope) -> dict[str, str]:
    return {key.decode("latin-1"): value.decode("latin-1") for key, value in scope.get("headers", [])}


class TracingMiddleware:
    """
    Open one SERVER span per HTTP request, continuing any incoming
    `traceparent`. The span is renamed to the matched route template once
    routing has happened.
    """

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        method = scope["method"]
        status_code = 500

        async def send_wrapper(message: Message) -> None:
            nonlocal status_code
            if message["type"] == "http.response.start":
                status_code = int(message["status"])
            await send(message)

        with tracer().start_as_current_span(
            method,
            context=propagate.extract(_carrier(scope)),
            kind=SpanKind.SERVER,
        ) as span:
            try:
                await self.app(scope, receive, send_wrapper)
            finally:
                route = getattr(scope.get("route"), "path", None)
                if route is not None:
                    span.update_name(f"{method} {route}")
                    span.set_attribute("http.route", route)
                span.set_attribute("http.method", method)
                span.set_attribute("http.status_code", status_code)
                if status_code >= 500:
                    span.set_status(Status(StatusCode.ERROR))
