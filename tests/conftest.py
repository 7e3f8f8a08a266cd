# tests/conftest.py
import pytest
from fastapi.testclient import TestClient

from condora.adapters.memory_repo import InMemoryPropertyRepository
from condora.api.http import app, get_property_repo  # run tests from repo root


@pytest.fixture(scope="session")
def client():
    return TestClient(app)


@pytest.fixture
def repo():
    return InMemoryPropertyRepository()


@pytest.fixture(autouse=True)
def _api_repo(repo):
    # each test sees an empty store through the API
    app.dependency_overrides[get_property_repo] = lambda: repo
    yield
    app.dependency_overrides.pop(get_property_repo, None)


@pytest.fixture
def scraped():
    return {
        "title": "Skyline Residences",
        "project_name": "Skyline Residences",
        "description": "Freehold condominium at Holland Road.",
        "developer_name": "Skyline Land Pte Ltd",
        "address": "12 Holland Road",
        "district": "District 10",
        "tenure": "Freehold",
        "property_type": "Condominium",
        "price_from": "1280000",
        "psf_from": "2150",
        "no_of_units": "320",
        "nearby_mrt": ["Holland Village MRT"],
    }
