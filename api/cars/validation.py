"""
Car request rules.

Every rule is pure: it raises `ValidationError` with a message meant for the
client, or returns the value to store. `validate_car_request` stops at the
first failure and returns the normalized request.
"""

from __future__ import annotations

from datetime import date

from core.errors import ValidationError
from engines import validation as engine_validation

from . import schemas

MIN_YEAR = 1900
MAX_TEXT_LENGTH = 255
# car.price is NUMERIC(12, 2).
MAX_PRICE = 9_999_999_999.99
FUEL_TYPES = tuple(fuel.value for fuel in schemas.FuelType)


def _validate_text(value: str, field: str) -> str:
    text = (value or "").strip()
    if not text:
        raise ValidationError(f"{field} is required")
    if len(text) > MAX_TEXT_LENGTH:
        raise ValidationError(f"{field} must be at most {MAX_TEXT_LENGTH} characters")
    return text


def validate_name(name: str) -> str:
    return _validate_text(name, "name")


def validate_year(year: str, *, current_year: int | None = None) -> str:
    raw = (year or "").strip()
    if not raw:
        raise ValidationError("year is required")
    try:
        value = int(raw)
    except ValueError as exc:
        raise ValidationError("year must be a valid number") from exc

    if current_year is None:
        current_year = date.today().year
    if value < MIN_YEAR or value > current_year:
        raise ValidationError(f"year must be between {MIN_YEAR} and {current_year}")
    # "+2021", "02021" and "2_021" are all stored as "2021".
    return str(value)


def validate_brand(brand: str) -> str:
    return _validate_text(brand, "brand")


def validate_fuel_type(fuel_type: str) -> None:
    if fuel_type not in FUEL_TYPES:
        raise ValidationError(f"fuelType must be one of {', '.join(FUEL_TYPES)}")


def validate_engine(engine: schemas.CarEngine) -> None:
    if engine.id is None or engine.id.int == 0:
        raise ValidationError("engine id is required")
    engine_validation.validate_displacement(engine.displacement)
    engine_validation.validate_cylinders(engine.no_of_cylinders)
    engine_validation.validate_range(engine.car_range)


def validate_price(price: float) -> None:
    # `not price > 0` also rejects NaN.
    if not price > 0:
        raise ValidationError("price must be greater than zero")
    if price > MAX_PRICE:
        raise ValidationError(f"price must be at most {MAX_PRICE:.2f}")


def validate_car_request(
    request: schemas.CarRequest,
    *,
    current_year: int | None = None,
) -> schemas.CarRequest:
    name = validate_name(request.name)
    year = validate_year(request.year, current_year=current_year)
    brand = validate_brand(request.brand)
    validate_fuel_type(request.fuel_type)
    validate_engine(request.engine)
    validate_price(request.price)
    return request.model_copy(update={"name": name, "year": year, "brand": brand})
