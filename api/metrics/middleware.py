"""
ASGI middleware that times resource requests and records their final status.

Only requests that matched a route and passed the auth gate are recorded;
the gate leaves a `Principal` in the request state. 401s, unknown paths and
the public endpoints (`/login`, `/metrics`, `/health`, `/`) never create a
series. The path label is the route template (`/cars/{car_id}`), so label
cardinality is bounded by the route table.

The status is captured from the `http.response.start` message on its way to
the server. Recording happens after the downstream app returns and is
synchronous, so it never delays or drops a response.
"""

from __future__ import annotations

import time

from starlette.types import ASGIApp, Message, Receive, Scope, Send

from auth.schemas import Principal

from .recorder import MetricsRecorder


def _authenticated(scope: Scope) -> bool:
    state = scope.get("state") or {}
    return isinstance(state.get("principal"), Principal)


def _route_path(scope: Scope) -> str | None:
    route = scope.get("route")
    return getattr(route, "path", None)


class MetricsMiddleware:
    def __init__(self, app: ASGIApp, *, recorder: MetricsRecorder) -> None:
        self.app = app
        self.recorder = recorder

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        # Anything that escapes without sending a status is a server error.
        status_code = 500
        start = time.perf_counter()

        async def send_wrapper(message: Message) -> None:
            nonlocal status_code
            if message["type"] == "http.response.start":
                status_code = int(message["status"])
            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        finally:
            path = _route_path(scope)
            if path is not None and _authenticated(scope):
                self.recorder.record(
                    path=path,
                    method=scope["method"],
                    status_code=status_code,
                    duration_s=time.perf_counter() - start,
                )
