# ==============================================================================
# CONFTEST - Pytest Fixtures and Configuration
# ==============================================================================
# Shared fixtures for all tests
# ==============================================================================

from __future__ import annotations

import os
from typing import AsyncGenerator, Tuple
from uuid import uuid4

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from tests.helpers import register_user

# Set test environment before importing app
os.environ["ENVIRONMENT"] = "development"
os.environ["DEBUG"] = "false"
os.environ["DATABASE_TYPE"] = "relational"
os.environ["KEYVALUE_DRIVER"] = "memory"
os.environ["SECRET_KEY"] = "test-secret-key-for-testing-only-32chars!"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["PASSWORD_HASH_ROUNDS"] = "4"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["S3_BUCKET_NAME"] = "test-bucket"
os.environ["AWS_REGION"] = "us-east-1"
os.environ["AWS_ACCESS_KEY_ID"] = "testing"
os.environ["AWS_SECRET_ACCESS_KEY"] = "testing"


# ==============================================================================
# STORAGE FIXTURES
# ==============================================================================

@pytest_asyncio.fixture(params=["relational", "keyvalue"])
async def adapter(request, tmp_path):
    """
    Initialized storage adapter, once per backend.

    ASGITransport does not run the lifespan, so the factory is
    initialized here directly.
    """
    from product_api.core.settings import DatabaseType
    from product_api.database.factory import DatabaseFactory
    from product_api.database.keyvalue import MemoryKeyValueTable

    DatabaseFactory.reset()

    if request.param == "relational":
        adapter = await DatabaseFactory.initialize(
            DatabaseType.RELATIONAL,
            database_url=f"sqlite+aiosqlite:///{tmp_path / 'test_app.db'}",
        )
    else:
        adapter = await DatabaseFactory.initialize(
            DatabaseType.KEYVALUE,
            table=MemoryKeyValueTable("test-table"),
        )

    yield adapter

    await DatabaseFactory.shutdown()
    DatabaseFactory.reset()


# ==============================================================================
# HTTP CLIENT FIXTURES
# ==============================================================================

@pytest_asyncio.fixture
async def client(adapter) -> AsyncGenerator[AsyncClient, None]:
    """Create async HTTP client for API testing."""
    from product_api.main import app

    transport = ASGITransport(app=app)
    async with AsyncClient(
        transport=transport,
        base_url="http://test",
        timeout=30.0,
    ) as async_client:
        yield async_client

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def auth_client(client: AsyncClient) -> AsyncGenerator[Tuple[AsyncClient, str, dict], None]:
    """
    Create authenticated client with test user.

    Returns:
        Tuple of (client, user_id, user_data)
    """
    user_id, headers, user_data = await register_user(client)
    client.headers.update(headers)

    yield client, user_id, user_data

    client.headers.pop("Authorization", None)


# ==============================================================================
# HELPER FIXTURES
# ==============================================================================

@pytest.fixture
def sample_user_data() -> dict:
    """Generate sample user registration data."""
    return {
        "email": f"user_{uuid4().hex[:8]}@example.com",
        "password": "SecurePass123",
        "firstName": "Sample",
        "lastName": "User",
    }


@pytest.fixture
def sample_product_data() -> dict:
    """Generate sample product data."""
    return {
        "name": f"Widget {uuid4().hex[:6]}",
        "description": "A test widget",
        "price": 19.99,
        "category": "tools",
        "stock": 5,
    }
