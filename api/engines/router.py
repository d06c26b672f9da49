"""
Engine API endpoints. Every route is gated by the bearer-token dependency.
"""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, status

from auth import dependencies as auth_dependencies

from . import schemas, service

router = APIRouter(
    prefix="/engine",
    dependencies=[Depends(auth_dependencies.require_principal)],
)


@router.get("/{engine_id}", response_model=schemas.EngineResponse)
async def get_engine(engine_id: UUID) -> schemas.EngineResponse:
    return await service.get_engine_by_id(engine_id)


@router.post("", response_model=schemas.EngineResponse, status_code=status.HTTP_201_CREATED)
async def create_engine(request: schemas.EngineRequest) -> schemas.EngineResponse:
    return await service.create_engine(request)


@router.put("/{engine_id}", response_model=schemas.EngineResponse)
async def update_engine(engine_id: UUID, request: schemas.EngineRequest) -> schemas.EngineResponse:
    return await service.update_engine(engine_id, request)


@router.delete("/{engine_id}", response_model=schemas.EngineResponse)
async def delete_engine(engine_id: UUID) -> schemas.EngineResponse:
    """
    Delete an engine and return what was deleted. 404 if it did not exist.
    """
    return await service.delete_engine(engine_id)
