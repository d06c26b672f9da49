"""
Car API endpoints. Every route is gated by the bearer-token dependency.
"""

from __future__ import annotations

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from auth import dependencies as auth_dependencies
from auth.schemas import Principal

from . import schemas, service

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/cars",
    dependencies=[Depends(auth_dependencies.require_principal)],
)


@router.get("/{car_id}", response_model=schemas.CarResponse)
async def get_car(car_id: UUID) -> schemas.CarResponse:
    return await service.get_car_by_id(car_id)


@router.get("", response_model=list[schemas.CarResponse], response_model_exclude_none=True)
async def list_cars(
    brand: str = Query(default="", max_length=255),
    engine: bool = Query(default=False),
) -> list[schemas.CarResponse]:
    """
    List cars of a brand. `engine=true` embeds full engine detail, otherwise
    only the engine id is returned.
    """
    return await service.get_cars_by_brand(brand, include_engine=engine)


@router.post("", response_model=schemas.CarResponse, status_code=status.HTTP_201_CREATED)
async def create_car(
    request: schemas.CarRequest,
    principal: Principal = Depends(auth_dependencies.current_principal),
) -> schemas.CarResponse:
    car = await service.create_car(request)
    logger.info("car_write action=create subject=%s car_id=%s", principal.subject, car.id)
    return car


@router.put("/{car_id}", response_model=schemas.CarResponse)
async def update_car(
    car_id: UUID,
    request: schemas.CarRequest,
    principal: Principal = Depends(auth_dependencies.current_principal),
) -> schemas.CarResponse:
    car = await service.update_car(car_id, request)
    logger.info("car_write action=update subject=%s car_id=%s", principal.subject, car_id)
    return car


@router.delete("/{car_id}", response_model=schemas.CarResponse)
async def delete_car(
    car_id: UUID,
    principal: Principal = Depends(auth_dependencies.current_principal),
) -> schemas.CarResponse:
    """
    Delete a car and return what was deleted. 404 if it did not exist.
    """
    car = await service.delete_car(car_id)
    logger.info("car_write action=delete subject=%s car_id=%s", principal.subject, car_id)
    return car
