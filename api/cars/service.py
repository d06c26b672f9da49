"""
Car business logic.

Mutations run in a fixed order:
- validate and normalize the request (no store access)
- check the referenced engine exists
- persist the normalized request

Errors from any step propagate unchanged; the routers never see asyncpg.
"""

from __future__ import annotations

from uuid import UUID

from core.errors import NotFoundError, ValidationError
from core.tracing import traced
from engines import repository as engine_repository

from . import repository, schemas, validation


async def _ensure_engine_exists(engine_id: UUID) -> None:
    if await engine_repository.get_engine_by_id(engine_id) is None:
        raise ValidationError(f"engine {engine_id} does not exist")


def _car_fields(request: schemas.CarRequest) -> dict:
    return {
        "name": request.name,
        "year": request.year,
        "brand": request.brand,
        "fuel_type": request.fuel_type,
        "engine_id": request.engine.id,
        "price": request.price,
    }


@traced("cars.get_car_by_id")
async def get_car_by_id(car_id: UUID) -> schemas.CarResponse:
    row = await repository.get_car_by_id(car_id)
    if row is None:
        raise NotFoundError("Car not found.")
    return schemas.to_car_response(row)


@traced("cars.get_cars_by_brand")
async def get_cars_by_brand(brand: str, *, include_engine: bool = False) -> list[schemas.CarResponse]:
    rows = await repository.list_cars_by_brand(brand)
    return [schemas.to_car_response(row, include_engine=include_engine) for row in rows]


@traced("cars.create_car")
async def create_car(request: schemas.CarRequest) -> schemas.CarResponse:
    request = validation.validate_car_request(request)
    await _ensure_engine_exists(request.engine.id)

    row = await repository.create_car(**_car_fields(request))
    return schemas.to_car_response(row)


@traced("cars.update_car")
async def update_car(car_id: UUID, request: schemas.CarRequest) -> schemas.CarResponse:
    request = validation.validate_car_request(request)
    await _ensure_engine_exists(request.engine.id)

    row = await repository.update_car(car_id, **_car_fields(request))
    if row is None:
        raise NotFoundError("Car not found.")
    return schemas.to_car_response(row)


@traced("cars.delete_car")
async def delete_car(car_id: UUID) -> schemas.CarResponse:
    row = await repository.delete_car(car_id)
    if row is None:
        raise NotFoundError("Car not found.")
    return schemas.to_car_response(row)
