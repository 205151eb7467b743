"""
Pytest configuration and shared fixtures.

This module provides:
- Environment variable setup for tests
- In-memory SQLite engine with the identity schema
- Entity factories
"""

import os

import pytest


# Set test environment variables BEFORE any imports
# This must happen first to ensure settings load with test values
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["ENABLE_DB_CREATE_ALL"] = "true"
os.environ["LOG_LEVEL"] = "DEBUG"
os.environ["LOG_JSON_FORMAT"] = "false"


TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture(scope="function")
async def engine():
    """
    Provide an in-memory engine with all identity tables created.

    Tables are dropped and the engine disposed after each test.
    """
    from identity_store.core.database import get_async_engine
    from identity_store.models import create_schema, drop_schema

    engine = get_async_engine(TEST_DATABASE_URL)

    async with engine.begin() as conn:
        await create_schema(conn)

    yield engine

    async with engine.begin() as conn:
        await drop_schema(conn)
    await engine.dispose()


@pytest.fixture(scope="function")
async def connection(engine):
    """Provide an open AsyncConnection on the test database."""
    async with engine.connect() as conn:
        yield conn


@pytest.fixture
def repo():
    """Provide an IdentityRepository instance."""
    from identity_store.repositories import IdentityRepository

    return IdentityRepository()


@pytest.fixture
def make_user():
    """
    Factory for unsaved users.

    Returns:
        Callable accepting field overrides
    """
    from identity_store.models import User

    def _make_user(**overrides):
        fields = {
            "username": "Mr Smith",
            "email": "agent.smith@matrix.com",
            "password_hash": "123456789",
        }
        fields.update(overrides)
        return User(**fields)

    return _make_user


@pytest.fixture
def make_role():
    """Factory for unsaved roles (type defaults to "Admin")."""
    from identity_store.models import Role

    def _make_role(type: str = "Admin"):
        return Role(type=type)

    return _make_role
