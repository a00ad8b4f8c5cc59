import os

# Must be set before the app is imported
os.environ.setdefault("MONGODB_URI", "mongodb://localhost:27017")
os.environ.setdefault("STRIPE_SECRET_KEY", "sk_test_dummy")

import pytest
from fastapi.testclient import TestClient
from mongomock_motor import AsyncMongoMockClient

from main import app
from loanlink.api.dependencies import get_store
from loanlink.core.config import Settings


class FakeStore:
    """Stands in for StoreHandle over an in-memory database."""

    def __init__(self, database):
        self.database = database
        self.is_connected = True

    async def get_database(self):
        return self.database

    async def get_collection(self, name):
        return self.database[name]


@pytest.fixture
def database():
    return AsyncMongoMockClient()["loanlink_test"]


@pytest.fixture
def store(database):
    return FakeStore(database)


@pytest.fixture
def test_settings():
    test_settings = Settings()
    test_settings.MONGODB_URI = "mongodb://localhost:27017"
    test_settings.MONGODB_DB_NAME = "loanlink_test"
    test_settings.STRIPE_SECRET_KEY = "sk_test_dummy"
    test_settings.DEFAULT_USER_ROLE = "borrower"
    test_settings.LOAN_SEARCH_ENABLED = True
    test_settings.AUTHORIZATION_MODE = "disabled"
    test_settings.JWT_SECRET_KEY = "test-jwt-secret"
    test_settings.JWT_ALGORITHM = "HS256"
    return test_settings


@pytest.fixture
def client(store, test_settings):
    original_settings = app.state.settings
    app.state.settings = test_settings
    app.dependency_overrides[get_store] = lambda: store
    yield TestClient(app)
    app.dependency_overrides = {}
    app.state.settings = original_settings
