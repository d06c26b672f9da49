"""
Car persistence (raw SQL).

Car rows only store `engine_id`; reads join the engine table so callers get
the embedded engine detail in one row.
"""

from __future__ import annotations

from uuid import UUID

import asyncpg

from core import db
from core.tracing import traced_query
from core.errors import PersistenceError

CAR_SELECT = """
    SELECT c.id, c.name, c.year, c.brand, c.fuel_type, c.engine_id, c.price,
           c.created_at, c.updated_at,
           e.displacement, e.no_of_cylinders, e.car_range
    FROM car c
    JOIN engine e ON e.id = c.engine_id
"""


@traced_query("cars.repository.get_car_by_id")
async def get_car_by_id(car_id: UUID, *, conn: asyncpg.Connection | None = None) -> dict | None:
    return await db.fetch_one(
        CAR_SELECT
        + """
        WHERE c.id = $1
        """,
        car_id,
        conn=conn,
    )


@traced_query("cars.repository.list_cars_by_brand")
async def list_cars_by_brand(brand: str) -> list[dict]:
    """
    Cars of one brand (exact match), or every car when `brand` is empty.
    """
    return await db.fetch_all(
        CAR_SELECT
        + """
        WHERE ($1 = '' OR c.brand = $1)
        ORDER BY c.created_at DESC, c.id
        """,
        (brand or "").strip(),
    )


@traced_query("cars.repository.create_car")
async def create_car(
    *,
    name: str,
    year: str,
    brand: str,
    fuel_type: str,
    engine_id: UUID,
    price: float,
) -> dict:
    async with db.transaction() as conn:
        inserted = await db.fetch_one(
            """
            INSERT INTO car (name, year, brand, fuel_type, engine_id, price)
            VALUES ($1, $2, $3, $4, $5, $6)
            RETURNING id
            """,
            name,
            year,
            brand,
            fuel_type,
            engine_id,
            price,
            conn=conn,
        )
        if inserted is None:
            raise PersistenceError("Failed to create car.")
        row = await get_car_by_id(inserted["id"], conn=conn)

    if row is None:
        raise PersistenceError("Failed to read back created car.")
    return row


@traced_query("cars.repository.update_car")
async def update_car(
    car_id: UUID,
    *,
    name: str,
    year: str,
    brand: str,
    fuel_type: str,
    engine_id: UUID,
    price: float,
) -> dict | None:
    async with db.transaction() as conn:
        updated = await db.fetch_one(
            """
            UPDATE car
            SET name = $2,
                year = $3,
                brand = $4,
                fuel_type = $5,
                engine_id = $6,
                price = $7,
                updated_at = now()
            WHERE id = $1
            RETURNING id
            """,
            car_id,
            name,
            year,
            brand,
            fuel_type,
            engine_id,
            price,
            conn=conn,
        )
        if updated is None:
            return None
        return await get_car_by_id(car_id, conn=conn)


@traced_query("cars.repository.delete_car")
async def delete_car(car_id: UUID) -> dict | None:
    """
    Delete a car and return its prior state (None if it did not exist).

    Single statement: the returned row is exactly the row the DELETE removed.
    """
    return await db.fetch_one(
        """
        WITH deleted AS (
            DELETE FROM car
            WHERE id = $1
            RETURNING id, name, year, brand, fuel_type, engine_id, price,
                      created_at, updated_at
        )
        SELECT d.id, d.name, d.year, d.brand, d.fuel_type, d.engine_id, d.price,
               d.created_at, d.updated_at,
               e.displacement, e.no_of_cylinders, e.car_range
        FROM deleted d
        JOIN engine e ON e.id = d.engine_id
        """,
        car_id,
    )
