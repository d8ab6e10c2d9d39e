import pytest
from fastapi.testclient import TestClient

from app.db import get_store
from app.incident_store import IncidentStore
from app.main import app


@pytest.fixture()
def store():
    # fresh copy of the seed data for every test
    return IncidentStore.from_fixtures()


@pytest.fixture()
def client(store):
    app.dependency_overrides[get_store] = lambda: store
    yield TestClient(app)
    app.dependency_overrides.clear()
