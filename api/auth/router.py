"""
Login endpoint. Not gated and not instrumented.
"""

from __future__ import annotations

from fastapi import APIRouter, Response

from . import schemas, service

router = APIRouter()


@router.post("/login", response_model=schemas.TokenResponse)
async def login(payload: schemas.LoginRequest, response: Response) -> schemas.TokenResponse:
    result = service.login(payload)
    response.headers["Authorization"] = f"Bearer {result.token}"
    return result
