from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from auth import router as auth_router
from cars import router as cars_router
from core import db, log, settings, tracing
from core.errors import register_exception_handlers
from engines import router as engines_router
from metrics import router as metrics_router
from metrics.middleware import MetricsMiddleware
from metrics.recorder import MetricsRecorder


@asynccontextmanager
async def lifespan(_: FastAPI):
    # Initialize tracing and the DB pool, then apply the schema once per
    # process. Any failure here aborts startup.
    provider = tracing.configure_tracing() if tracing.tracing_enabled() else None
    try:
        await db.init_pool()
        try:
            await db.run_schema_file()
            yield
        finally:
            await db.close_pool()
    finally:
        tracing.shutdown_tracing(provider)


def create_app(*, metrics: MetricsRecorder | None = None) -> FastAPI:
    app = FastAPI(title="carzone", lifespan=lifespan)

    # One registry per app, shared by the middleware and /metrics.
    app.state.metrics = metrics if metrics is not None else MetricsRecorder()
    app.add_middleware(MetricsMiddleware, recorder=app.state.metrics)
    # Added last, so the request span also covers metrics recording.
    app.add_middleware(tracing.TracingMiddleware)
    register_exception_handlers(app)

    app.include_router(auth_router.router, tags=["auth"])
    app.include_router(cars_router.router, tags=["cars"])
    app.include_router(engines_router.router, tags=["engines"])
    app.include_router(metrics_router.router, tags=["metrics"])

    @app.get("/health")
    def health() -> dict:
        return {"status": "ok"}

    @app.get("/")
    def root() -> dict:
        return {"message": "carzone api"}

    return app


log.configure_logging()
app = create_app()


if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=settings.port())
