"""
Pydantic schemas for car endpoints.

Request models are deliberately permissive (empty defaults, no numeric
bounds): field rules live in `cars.validation` so a bad value is reported as
a validation error with a readable message instead of a schema error.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator


class FuelType(str, Enum):
    PETROL = "Petrol"
    DIESEL = "Diesel"
    ELECTRIC = "Electric"
    HYBRID = "Hybrid"


class CarEngine(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: UUID | None = None
    displacement: int = 0
    no_of_cylinders: int = Field(default=0, alias="noOfCylinders")
    car_range: int = Field(default=0, alias="carRange")


class CarRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str = ""
    year: str = ""
    brand: str = ""
    fuel_type: str = Field(default="", alias="fuelType")
    engine: CarEngine = Field(default_factory=CarEngine)
    price: float = 0.0

    @field_validator("year", mode="before")
    @classmethod
    def _year_as_text(cls, value: object) -> object:
        # Clients send the year either as "2021" or 2021.
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value


class CarEngineView(BaseModel):
    """
    Engine as embedded in a car response. Only `id` is set when engine
    detail was not requested.
    """

    model_config = ConfigDict(populate_by_name=True)

    id: UUID
    displacement: int | None = None
    no_of_cylinders: int | None = Field(default=None, alias="noOfCylinders")
    car_range: int | None = Field(default=None, alias="carRange")


class CarResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: UUID
    name: str
    year: str
    brand: str
    fuel_type: str = Field(alias="fuelType")
    engine: CarEngineView
    price: float
    created_at: datetime
    updated_at: datetime


def to_car_response(row: dict, *, include_engine: bool = True) -> CarResponse:
    engine = CarEngineView(id=row["engine_id"])
    if include_engine:
        engine = CarEngineView(
            id=row["engine_id"],
            displacement=int(row["displacement"]),
            no_of_cylinders=int(row["no_of_cylinders"]),
            car_range=int(row["car_range"]),
        )

    return CarResponse(
        id=row["id"],
        name=str(row["name"]),
        year=str(row["year"]),
        brand=str(row["brand"]),
        fuel_type=str(row["fuel_type"]),
        engine=engine,
        price=float(row["price"]),
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )
