"""
tests/conftest.py — Shared pytest fixtures
SQLite in-memory store with foreign keys enforced, seeded with a small catalog.
"""
from __future__ import annotations

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.pool import StaticPool

from order_api.config import Settings
from order_api.db.models import Customer, Product
from order_api.db.session import build_session_factory, init_db
from order_api.main import create_app

CUSTOMER_TOKEN = "test-customer-secret"
ADMIN_TOKEN = "test-admin-secret"


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        _env_file=None,
        environment="testing",
        customer_token=CUSTOMER_TOKEN,
        admin_token=ADMIN_TOKEN,
        request_rate_limit="100/minute",
        reminder_enabled=False,
        report_path=str(tmp_path / "order_report.csv"),
    )


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine, "connect")
    def _enable_foreign_keys(dbapi_connection, _record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    factory = build_session_factory(engine)
    with factory() as db:
        db.add_all([
            Customer(id=7, name="Ada", email="ada@example.com", password="x"),
            Customer(id=8, name="Grace", email="grace@example.com", password="x"),
            Product(id=3, name="Keyboard", price=Decimal("49.90"),
                    description="Mechanical", image_url="https://img.example.com/3.png"),
            Product(id=5, name="Mouse", price=Decimal("19.99"),
                    description="Wireless", image_url="https://img.example.com/5.png"),
            Product(id=9, name="Monitor", price=Decimal("199.00"),
                    description="27 inch", image_url="https://img.example.com/9.png"),
        ])
        db.commit()
    return factory


@pytest.fixture
def db(session_factory):
    with session_factory() as session:
        yield session


@pytest.fixture
def app(settings, session_factory):
    return create_app(settings=settings, session_factory=session_factory)


@pytest.fixture
def client(app) -> TestClient:
    # Not used as a context manager: lifespan (and the scheduler) stay off
    return TestClient(app)


@pytest.fixture
def customer_headers() -> dict[str, str]:
    return {"Authorization": CUSTOMER_TOKEN}


@pytest.fixture
def admin_headers() -> dict[str, str]:
    return {"Authorization": ADMIN_TOKEN}
