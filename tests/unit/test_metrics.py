"""Unit tests for the metrics recorder and middleware."""

import asyncio
from concurrent.futures import ThreadPoolExecutor

import httpx
import pytest
from fastapi import APIRouter, Depends, FastAPI
from fastapi.responses import JSONResponse

from auth.dependencies import require_principal
from core.errors import register_exception_handlers
from metrics.middleware import MetricsMiddleware
from metrics.recorder import MetricsRecorder


def _total_requests(recorder: MetricsRecorder) -> float:
    return sum(
        sample.value
        for family in recorder.registry.collect()
        for sample in family.samples
        if sample.name == "http_requests_total"
    )


@pytest.fixture
def instrumented_app(recorder):
    app = FastAPI()
    app.add_middleware(MetricsMiddleware, recorder=recorder)
    register_exception_handlers(app)

    gated = APIRouter(dependencies=[Depends(require_principal)])

    @gated.get("/ping")
    async def ping():
        await asyncio.sleep(0)
        return {"ok": True}

    @gated.get("/items/{item_id}")
    async def item(item_id: int):
        return {"id": item_id}

    @gated.get("/teapot")
    async def teapot():
        return JSONResponse(status_code=418, content={"short": "stout"})

    @gated.get("/boom")
    async def boom():
        raise RuntimeError("handler crashed")

    app.include_router(gated)

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    return app


def _client(app, headers=None) -> httpx.AsyncClient:
    transport = httpx.ASGITransport(app=app, raise_app_exceptions=False)
    return httpx.AsyncClient(transport=transport, base_url="http://test", headers=headers)


@pytest.fixture
def async_client(instrumented_app, auth_headers):
    return _client(instrumented_app, headers=auth_headers)


@pytest.fixture
def anonymous_client(instrumented_app):
    return _client(instrumented_app)


class TestMetricsRecorder:
    """Tests for MetricsRecorder."""

    def test_record_updates_all_instruments(self, recorder):
        recorder.record("/cars", "GET", 200, 0.25)
        assert recorder.request_count("/cars", "GET") == 1
        assert recorder.status_count("/cars", "GET", 200) == 1
        observed = recorder.registry.get_sample_value(
            "http_requests_duration_seconds_sum", {"path": "/cars", "method": "GET"}
        )
        assert observed == pytest.approx(0.25)

    def test_labels_are_independent(self, recorder):
        recorder.record("/cars", "GET", 200, 0.01)
        recorder.record("/cars", "POST", 400, 0.01)
        assert recorder.request_count("/cars", "GET") == 1
        assert recorder.request_count("/cars", "POST") == 1
        assert recorder.status_count("/cars", "POST", 200) == 0

    def test_recorders_do_not_share_state(self):
        first, second = MetricsRecorder(), MetricsRecorder()
        first.record("/cars", "GET", 200, 0.01)
        assert second.request_count("/cars", "GET") == 0

    def test_no_lost_updates_across_threads(self, recorder):
        n = 500
        with ThreadPoolExecutor(max_workers=16) as pool:
            list(pool.map(lambda _: recorder.record("/cars", "GET", 200, 0.001), range(n)))
        assert recorder.request_count("/cars", "GET") == n
        assert recorder.status_count("/cars", "GET", 200) == n

    def test_render_exposes_prometheus_text(self, recorder):
        recorder.record("/cars", "GET", 200, 0.01)
        body, content_type = recorder.render()
        assert b"http_requests_total" in body
        assert content_type.startswith("text/plain")

    def test_recording_failure_is_swallowed_and_logged(self, recorder, monkeypatch, caplog):
        def broken_labels(**_):
            raise ValueError("bad label")

        monkeypatch.setattr(recorder.requests, "labels", broken_labels)
        recorder.record("/cars", "GET", 200, 0.01)
        assert "metrics_record_failed" in caplog.text


class TestMetricsMiddleware:
    """Tests for MetricsMiddleware."""

    @pytest.mark.asyncio
    async def test_concurrent_requests_are_all_counted(self, async_client, recorder):
        n = 50
        async with async_client as client:
            responses = await asyncio.gather(*(client.get("/ping") for _ in range(n)))
        assert all(r.status_code == 200 for r in responses)
        assert recorder.request_count("/ping", "GET") == n
        assert recorder.status_count("/ping", "GET", 200) == n

    @pytest.mark.asyncio
    async def test_status_is_captured_from_response(self, async_client, recorder):
        async with async_client as client:
            response = await client.get("/teapot")
        assert response.status_code == 418
        assert recorder.status_count("/teapot", "GET", 418) == 1

    @pytest.mark.asyncio
    async def test_unhandled_error_is_recorded_as_500(self, async_client, recorder):
        async with async_client as client:
            response = await client.get("/boom")
        assert response.status_code == 500
        assert recorder.request_count("/boom", "GET") == 1
        assert recorder.status_count("/boom", "GET", 500) == 1

    @pytest.mark.asyncio
    async def test_path_label_is_the_route_template(self, async_client, recorder):
        async with async_client as client:
            for item_id in range(20):
                await client.get(f"/items/{item_id}")
        assert recorder.request_count("/items/{item_id}", "GET") == 20
        assert recorder.request_count("/items/7", "GET") == 0

    @pytest.mark.asyncio
    async def test_rejected_requests_are_not_recorded(self, anonymous_client, recorder):
        async with anonymous_client as client:
            response = await client.get("/ping")
        assert response.status_code == 401
        assert _total_requests(recorder) == 0

    @pytest.mark.asyncio
    async def test_unknown_paths_are_not_recorded(self, async_client, recorder):
        async with async_client as client:
            responses = [await client.get(f"/random/{n}") for n in range(10)]
        assert all(r.status_code == 404 for r in responses)
        assert _total_requests(recorder) == 0

    @pytest.mark.asyncio
    async def test_public_routes_are_not_recorded(self, async_client, recorder):
        async with async_client as client:
            await client.get("/health")
        assert _total_requests(recorder) == 0
