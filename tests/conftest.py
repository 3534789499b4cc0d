"""Shared fixtures: a throwaway SQLite database behind the real models."""

import os
import tempfile
from pathlib import Path

_DB_DIR = tempfile.mkdtemp(prefix="custrack-tests-")
os.environ["POSTGRES_DSN"] = f"sqlite+pysqlite:///{Path(_DB_DIR) / 'customers.db'}"
os.environ["API_KEY"] = "test-api-key"
os.environ["TRACING_ENABLED"] = "false"

import pytest

from custrack.common.db import Base, SessionLocal, engine
from custrack.services.customers.schemas import CustomerCreateRequest
from custrack.services.customers.service import CustomerService

API_HEADERS = {"x-api-key": "test-api-key", "x-actor": "agent1"}


@pytest.fixture(autouse=True)
def schema():
    Base.metadata.create_all(engine)
    yield
    Base.metadata.drop_all(engine)


@pytest.fixture
def service():
    return CustomerService(SessionLocal)


@pytest.fixture
def make_customer(service):
    """Create a customer through the service with sensible defaults."""

    def _make(actor: str = "agent1", **overrides):
        data = {"name": "Alice Zhang", "phone": "13800000000"}
        data.update(overrides)
        return service.create_customer(CustomerCreateRequest(**data), actor)

    return _make


@pytest.fixture
def client():
    from fastapi.testclient import TestClient

    from custrack.services.customers.main import app

    with TestClient(app) as test_client:
        yield test_client
