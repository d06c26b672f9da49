"""Unit tests for request, service and repository spans."""

from unittest.mock import AsyncMock

import pytest
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter
from opentelemetry.trace import SpanKind, StatusCode

from cars import service as car_service
from core import db, tracing
from core.errors import NotFoundError, PersistenceError

from conftest import CAR_ID

TRACE_ID = "4bf92f3577b34da6a3ce929d0e0e4736"
PARENT_SPAN_ID = "00f067aa0ba902b7"


@pytest.fixture(scope="module")
def tracer_provider():
    # OpenTelemetry accepts one global provider per process; install it once.
    exporter = InMemorySpanExporter()
    provider = tracing.configure_tracing(exporter=exporter)
    return provider, exporter


@pytest.fixture
def spans(tracer_provider):
    """Return a callable giving the finished spans by name."""
    provider, exporter = tracer_provider
    exporter.clear()

    def finished():
        provider.force_flush()
        return {span.name: span for span in exporter.get_finished_spans()}

    return finished


@pytest.fixture
def fetch_one(monkeypatch, car_row):
    mock = AsyncMock(return_value=car_row)
    monkeypatch.setattr(db, "fetch_one", mock)
    return mock


class TestSettings:
    """Tests for the OTEL_* settings."""

    def test_disabled_by_default(self, monkeypatch):
        monkeypatch.delenv("OTEL_ENABLED", raising=False)
        assert tracing.tracing_enabled() is False

    @pytest.mark.parametrize("raw", ["1", "true", "YES", "on"])
    def test_enabled_spellings(self, monkeypatch, raw):
        monkeypatch.setenv("OTEL_ENABLED", raw)
        assert tracing.tracing_enabled() is True

    @pytest.mark.parametrize("raw, expected", [("0.25", 0.25), ("7", 1.0), ("-1", 0.0), ("nope", 1.0)])
    def test_sample_ratio_is_clamped(self, monkeypatch, raw, expected):
        monkeypatch.setenv("OTEL_SAMPLE_RATIO", raw)
        assert tracing.sample_ratio() == expected


class TestServiceSpans:
    """Spans opened around service and repository calls."""

    @pytest.mark.asyncio
    async def test_repository_span_is_a_child_of_the_service_span(self, spans, fetch_one):
        await car_service.get_car_by_id(CAR_ID)

        finished = spans()
        service_span = finished["cars.get_car_by_id"]
        repository_span = finished["cars.repository.get_car_by_id"]
        assert repository_span.parent.span_id == service_span.context.span_id
        assert repository_span.kind == SpanKind.CLIENT
        assert repository_span.attributes["db.system"] == "postgresql"

    @pytest.mark.asyncio
    async def test_errors_are_recorded_and_reraised(self, spans, fetch_one):
        fetch_one.return_value = None
        with pytest.raises(NotFoundError):
            await car_service.get_car_by_id(CAR_ID)

        service_span = spans()["cars.get_car_by_id"]
        assert service_span.status.status_code == StatusCode.ERROR
        assert any(event.name == "exception" for event in service_span.events)


class TestTracingMiddleware:
    """One SERVER span per HTTP request."""

    def test_span_is_named_after_the_route_template(self, spans, fetch_one, client, auth_headers):
        response = client.get(f"/cars/{CAR_ID}", headers=auth_headers)
        assert response.status_code == 200

        finished = spans()
        server_span = finished["GET /cars/{car_id}"]
        assert server_span.kind == SpanKind.SERVER
        assert server_span.attributes["http.route"] == "/cars/{car_id}"
        assert server_span.attributes["http.status_code"] == 200
        assert finished["cars.get_car_by_id"].parent.span_id == server_span.context.span_id

    def test_incoming_trace_context_is_continued(self, spans, fetch_one, client, auth_headers):
        headers = {**auth_headers, "traceparent": f"00-{TRACE_ID}-{PARENT_SPAN_ID}-01"}
        client.get(f"/cars/{CAR_ID}", headers=headers)

        server_span = spans()["GET /cars/{car_id}"]
        assert server_span.context.trace_id == int(TRACE_ID, 16)
        assert server_span.parent.span_id == int(PARENT_SPAN_ID, 16)

    def test_server_errors_mark_the_span(self, spans, fetch_one, client, auth_headers):
        fetch_one.side_effect = PersistenceError("Query failed: OSError")
        response = client.get(f"/cars/{CAR_ID}", headers=auth_headers)
        assert response.status_code == 500

        server_span = spans()["GET /cars/{car_id}"]
        assert server_span.attributes["http.status_code"] == 500
        assert server_span.status.status_code == StatusCode.ERROR

    def test_unmatched_path_keeps_a_bounded_name(self, spans, client):
        client.get("/random/12345")

        server_span = spans()["GET"]
        assert server_span.attributes["http.status_code"] == 404
        assert "http.route" not in server_span.attributes
