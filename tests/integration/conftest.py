from __future__ import annotations

import sys
from pathlib import Path
from typing import Callable, Iterator

import pytest
from fastapi.testclient import TestClient

sys.path.insert(0, str(Path(__file__).resolve().parents[2] / "src"))

from rms.infrastructure.db import session as db_session
from rms.infrastructure.db.schema import create_schema, drop_schema
from rms.tools.seed import seed

SEED_PASSWORD = "password123"


@pytest.fixture
def database_url() -> str:
    return "sqlite:///:memory:"


@pytest.fixture(autouse=True)
def integration_environment(
    monkeypatch: pytest.MonkeyPatch, database_url: str
) -> Iterator[None]:
    monkeypatch.setenv("DATABASE_URL", database_url)
    monkeypatch.setenv("JWT_SECRET", "integration-secret")
    monkeypatch.setenv("BCRYPT_ROUNDS", "4")
    monkeypatch.setenv("APP_ENV", "test")
    monkeypatch.setenv("OTEL_EXPORTER_OTLP_ENDPOINT", "")
    monkeypatch.delenv("REDIS_URL", raising=False)

    db_session._build_engine.cache_clear()
    engine = db_session.get_engine()
    create_schema(engine)
    seed(engine, password=SEED_PASSWORD)
    yield
    drop_schema(engine)
    engine.dispose()
    db_session._build_engine.cache_clear()


@pytest.fixture
def client() -> Iterator[TestClient]:
    from rms.api.main import app

    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def auth_headers(client: TestClient) -> Callable[[str], dict[str, str]]:
    def login(email: str) -> dict[str, str]:
        response = client.post(
            "/api/auth/login",
            json={"email": email, "password": SEED_PASSWORD},
        )
        assert response.status_code == 200, response.text
        token = response.json()["data"]["token"]
        return {"Authorization": f"Bearer {token}"}

    return login


@pytest.fixture
def table_id(client: TestClient) -> Callable[[str], str]:
    def lookup(table_number: str) -> str:
        tables = client.get("/api/tables").json()["data"]
        return next(t["tableId"] for t in tables if t["tableNumber"] == table_number)

    return lookup
