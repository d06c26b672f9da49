"""
Engine field rules. Each rule raises `ValidationError` or returns None.
"""

from __future__ import annotations

from core.errors import ValidationError

from . import schemas

# Engine columns are Postgres INT.
MAX_INT = 2_147_483_647


def _validate_positive(value: int, field: str) -> None:
    if value <= 0:
        raise ValidationError(f"{field} must be greater than zero")
    if value > MAX_INT:
        raise ValidationError(f"{field} must be at most {MAX_INT}")


def validate_displacement(displacement: int) -> None:
    _validate_positive(displacement, "displacement")


def validate_cylinders(no_of_cylinders: int) -> None:
    _validate_positive(no_of_cylinders, "noOfCylinders")


def validate_range(car_range: int) -> None:
    _validate_positive(car_range, "carRange")


def validate_engine_request(request: schemas.EngineRequest) -> None:
    validate_displacement(request.displacement)
    validate_cylinders(request.no_of_cylinders)
    validate_range(request.car_range)
