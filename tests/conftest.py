"""
Shared test fixtures.

MongoDB is replaced by mongomock-motor (Beanie runs on top of it unchanged),
the Dragonfly cache by an in-memory dict.
"""

import os
import uuid

# Settings are read at import time; provide them before any app import
os.environ.setdefault("PROJECT_NAME", "Production Summary API (test)")
os.environ.setdefault("API_V1_STR", "/api/v1")
os.environ.setdefault("MONGODB_URL", "mongodb://localhost:27017")
os.environ.setdefault("DATABASE_NAME", "test_db")
os.environ.setdefault("SECRET_KEY", "test-secret")
os.environ.setdefault("REDIS_HOST", "localhost")
os.environ.setdefault("REDIS_PORT", "6379")

import pytest
from unittest.mock import patch
from beanie import init_beanie
from mongomock_motor import AsyncMongoMockClient

from app.core.db.mongodb import DOCUMENT_MODELS
from app.core.schemas.auth import CurrentUser
from tests.factories import CompanyFactory, CatalogItemFactory, UserAccountFactory, make_user


# ===================
# IN-MEMORY CACHE
# ===================

class FakeDragonfly:
    """Subset of the redis client used by the cache helpers."""

    def __init__(self):
        self.store = {}
        self.ttls = {}

    def get(self, key):
        return self.store.get(key)

    def setex(self, key, ttl, value):
        self.store[key] = value
        self.ttls[key] = ttl
        return True

    def delete(self, *keys):
        removed = 0
        for key in keys:
            if self.store.pop(key, None) is not None:
                removed += 1
            self.ttls.pop(key, None)
        return removed


@pytest.fixture(autouse=True)
def fake_cache():
    """
    Patch the cache client everywhere it is looked up.

    Usage:
        def test_something(fake_cache):
            assert "production_groups:<id>" in fake_cache.store
    """
    cache = FakeDragonfly()
    with patch("app.shared.cache_manager.get_dragonfly_client", return_value=cache):
        yield cache


# ===================
# DATABASE
# ===================

@pytest.fixture
async def db():
    """Fresh in-memory database with every document model registered."""
    client = AsyncMongoMockClient()
    database = client[f"test_{uuid.uuid4().hex[:8]}"]
    await init_beanie(database=database, document_models=DOCUMENT_MODELS)
    yield database
    await client.drop_database(database.name)


# ===================
# DOMAIN DATA
# ===================

@pytest.fixture
async def company(db):
    return await CompanyFactory.create(name="Sunrise Bakery")


@pytest.fixture
async def other_company(db):
    return await CompanyFactory.create(name="Moonlight Foods")


@pytest.fixture
async def product(company):
    return await CatalogItemFactory.create(company_id=company.id, name="Milk Bread 400g", qty_per_batch=8)


@pytest.fixture
async def sales_person(company):
    return await UserAccountFactory.create(company_id=company.id, full_name="Asha Rao")


@pytest.fixture
def manager(company) -> CurrentUser:
    return make_user(role="Unit Manager", company_id=company.id, emp_id="MGR001", full_name="Ravi Kumar")


@pytest.fixture
def super_admin() -> CurrentUser:
    return make_user(role="Super Admin", emp_id="ADMIN001", full_name="Admin")
