"""Pytest configuration and shared fixtures."""

from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict
from uuid import UUID

import pytest
from fastapi.testclient import TestClient

from auth import security
from main import create_app
from metrics.recorder import MetricsRecorder

ENGINE_ID = UUID("3f2b8a64-9c1e-4f5a-8d7b-2e6c1a9f0b11")
CAR_ID = UUID("c1d2e3f4-a5b6-4c7d-8e9f-0a1b2c3d4e5f")
TEST_SECRET = "test-secret-that-is-long-enough-for-hs256"


@pytest.fixture(autouse=True)
def auth_env(monkeypatch):
    """Pin auth settings so tests never depend on the caller's environment."""
    monkeypatch.setenv("JWT_SECRET", TEST_SECRET)
    monkeypatch.setenv("JWT_ALG", "HS256")
    monkeypatch.setenv("ACCESS_TOKEN_TTL_HOURS", "24")
    monkeypatch.setenv("AUTH_USERNAME", "admin")
    monkeypatch.setenv("AUTH_PASSWORD", "admin123")


@pytest.fixture
def recorder() -> MetricsRecorder:
    return MetricsRecorder()


@pytest.fixture
def app(recorder):
    return create_app(metrics=recorder)


@pytest.fixture
def client(app) -> TestClient:
    # Not used as a context manager, so the DB lifespan never runs.
    return TestClient(app)


@pytest.fixture
def token() -> str:
    return security.build_access_token("admin")


@pytest.fixture
def auth_headers(token) -> Dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def engine_row() -> Dict[str, Any]:
    """Engine row as returned by engines.repository."""
    return {
        "id": ENGINE_ID,
        "displacement": 2000,
        "no_of_cylinders": 4,
        "car_range": 600,
    }


@pytest.fixture
def car_row() -> Dict[str, Any]:
    """Joined car + engine row as returned by cars.repository."""
    created = datetime(2024, 1, 15, 10, 30, tzinfo=timezone.utc)
    return {
        "id": CAR_ID,
        "name": "Model S",
        "year": "2021",
        "brand": "Tesla",
        "fuel_type": "Electric",
        "engine_id": ENGINE_ID,
        "price": Decimal("79999.00"),
        "created_at": created,
        "updated_at": created,
        "displacement": 2000,
        "no_of_cylinders": 4,
        "car_range": 600,
    }


@pytest.fixture
def car_payload() -> Dict[str, Any]:
    """Valid create/update body as a client would send it."""
    return {
        "name": "Model S",
        "year": "2021",
        "brand": "Tesla",
        "fuelType": "Electric",
        "engine": {
            "id": str(ENGINE_ID),
            "displacement": 2000,
            "noOfCylinders": 4,
            "carRange": 600,
        },
        "price": 79999.0,
    }


@pytest.fixture
def engine_payload() -> Dict[str, Any]:
    return {"displacement": 2000, "noOfCylinders": 4, "carRange": 600}
