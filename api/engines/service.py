"""
Engine business logic: validate, then persist.
"""

from __future__ import annotations

import logging
from uuid import UUID

from core.errors import NotFoundError
from core.tracing import traced

from . import repository, schemas, validation

logger = logging.getLogger(__name__)


@traced("engines.get_engine_by_id")
async def get_engine_by_id(engine_id: UUID) -> schemas.EngineResponse:
    row = await repository.get_engine_by_id(engine_id)
    if row is None:
        raise NotFoundError("Engine not found.")
    return schemas.to_engine_response(row)


@traced("engines.create_engine")
async def create_engine(request: schemas.EngineRequest) -> schemas.EngineResponse:
    validation.validate_engine_request(request)

    row = await repository.create_engine(
        displacement=request.displacement,
        no_of_cylinders=request.no_of_cylinders,
        car_range=request.car_range,
    )
    logger.info("engine_created engine_id=%s", row["id"])
    return schemas.to_engine_response(row)


@traced("engines.update_engine")
async def update_engine(engine_id: UUID, request: schemas.EngineRequest) -> schemas.EngineResponse:
    validation.validate_engine_request(request)

    row = await repository.update_engine(
        engine_id,
        displacement=request.displacement,
        no_of_cylinders=request.no_of_cylinders,
        car_range=request.car_range,
    )
    if row is None:
        raise NotFoundError("Engine not found.")
    logger.info("engine_updated engine_id=%s", engine_id)
    return schemas.to_engine_response(row)


@traced("engines.delete_engine")
async def delete_engine(engine_id: UUID) -> schemas.EngineResponse:
    row = await repository.delete_engine(engine_id)
    if row is None:
        raise NotFoundError("Engine not found.")
    logger.info("engine_deleted engine_id=%s", engine_id)
    return schemas.to_engine_response(row)
