"""
Pydantic schemas for engine endpoints.
"""

from __future__ import annotations

from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class EngineRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    displacement: int = 0
    no_of_cylinders: int = Field(default=0, alias="noOfCylinders")
    car_range: int = Field(default=0, alias="carRange")


class EngineResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: UUID
    displacement: int
    no_of_cylinders: int = Field(alias="noOfCylinders")
    car_range: int = Field(alias="carRange")


def to_engine_response(row: dict) -> EngineResponse:
    return EngineResponse(
        id=row["id"],
        displacement=int(row["displacement"]),
        no_of_cylinders=int(row["no_of_cylinders"]),
        car_range=int(row["car_range"]),
    )
