"""
Prometheus scrape endpoint.
"""

from __future__ import annotations

from fastapi import APIRouter, Request, Response

router = APIRouter()


@router.get("/metrics", include_in_schema=False)
async def prometheus_metrics(request: Request) -> Response:
    data, content_type = request.app.state.metrics.render()
    return Response(content=data, media_type=content_type)
