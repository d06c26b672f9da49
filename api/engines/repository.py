"""
Engine persistence (raw SQL).
"""

from __future__ import annotations

from uuid import UUID

import asyncpg

from core import db
from core.tracing import traced_query
from core.errors import PersistenceError

ENGINE_COLUMNS = "id, displacement, no_of_cylinders, car_range"


@traced_query("engines.repository.get_engine_by_id")
async def get_engine_by_id(engine_id: UUID, *, conn: asyncpg.Connection | None = None) -> dict | None:
    return await db.fetch_one(
        f"""
        SELECT {ENGINE_COLUMNS}
        FROM engine
        WHERE id = $1
        """,
        engine_id,
        conn=conn,
    )


@traced_query("engines.repository.create_engine")
async def create_engine(*, displacement: int, no_of_cylinders: int, car_range: int) -> dict:
    row = await db.fetch_one(
        f"""
        INSERT INTO engine (displacement, no_of_cylinders, car_range)
        VALUES ($1, $2, $3)
        RETURNING {ENGINE_COLUMNS}
        """,
        displacement,
        no_of_cylinders,
        car_range,
    )
    if row is None:
        raise PersistenceError("Failed to create engine.")
    return row


@traced_query("engines.repository.update_engine")
async def update_engine(
    engine_id: UUID,
    *,
    displacement: int,
    no_of_cylinders: int,
    car_range: int,
) -> dict | None:
    return await db.fetch_one(
        f"""
        UPDATE engine
        SET displacement = $2,
            no_of_cylinders = $3,
            car_range = $4
        WHERE id = $1
        RETURNING {ENGINE_COLUMNS}
        """,
        engine_id,
        displacement,
        no_of_cylinders,
        car_range,
    )


@traced_query("engines.repository.delete_engine")
async def delete_engine(engine_id: UUID) -> dict | None:
    """
    Delete an engine and return its prior state (None if it did not exist).
    """
    return await db.fetch_one(
        f"""
        DELETE FROM engine
        WHERE id = $1
        RETURNING {ENGINE_COLUMNS}
        """,
        engine_id,
    )
