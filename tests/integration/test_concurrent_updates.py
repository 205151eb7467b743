"""
Concurrency tests: two writers on separate connections.

Uses a file-backed SQLite database so each connection is a distinct
store session; the in-memory database shares a single connection.
"""

import asyncio

import pytest

from identity_store.core.database import get_async_engine
from identity_store.models import User, create_schema
from identity_store.repositories import IdentityRepository


@pytest.fixture
async def file_engine(tmp_path):
    engine = get_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'identity.db'}")
    async with engine.begin() as conn:
        await create_schema(conn)
    yield engine
    await engine.dispose()


@pytest.fixture
async def persisted_user(file_engine):
    repo = IdentityRepository()
    user = User(username="Mr Smith", email="agent.smith@matrix.com", password_hash="123456789")
    async with file_engine.begin() as conn:
        await repo.insert_user(user, conn)
    return user


async def _fetch(engine, user_id):
    repo = IdentityRepository()
    async with engine.connect() as conn:
        return await repo.get_user_by_id(user_id, conn)


async def _update(engine, user):
    repo = IdentityRepository()
    async with engine.begin() as conn:
        return await repo.update_user(user, conn)


class TestConcurrentUpdates:
    @pytest.mark.asyncio
    async def test_second_writer_on_other_connection_is_rejected(self, file_engine, persisted_user):
        """
        Arrange: Two copies of the same user read on separate connections
        Act: Commit an update from the second copy, then update the first
        Assert: First update returns False and the stored row keeps the
            second writer's values and token
        """
        first_copy = await _fetch(file_engine, persisted_user.user_id)
        second_copy = await _fetch(file_engine, persisted_user.user_id)
        assert first_copy.concurrency_token == second_copy.concurrency_token

        second_copy.username = "second"
        first_copy.username = "first"

        assert await _update(file_engine, second_copy) is True
        assert await _update(file_engine, first_copy) is False

        stored = await _fetch(file_engine, persisted_user.user_id)
        assert stored.username == "second"
        assert stored.concurrency_token == second_copy.concurrency_token

    @pytest.mark.asyncio
    async def test_racing_writers_have_exactly_one_winner(self, file_engine, persisted_user):
        """
        Arrange: Two copies holding the same token
        Act: Run both updates concurrently, each in its own transaction
        Assert: Exactly one succeeds and the store holds the winner's token
        """
        copies = [
            await _fetch(file_engine, persisted_user.user_id),
            await _fetch(file_engine, persisted_user.user_id),
        ]
        copies[0].email = "a@matrix.com"
        copies[1].email = "b@matrix.com"

        results = await asyncio.gather(*(_update(file_engine, copy) for copy in copies))

        assert sorted(results) == [False, True]
        winner = copies[results.index(True)]
        stored = await _fetch(file_engine, persisted_user.user_id)
        assert stored.email == winner.email
        assert stored.concurrency_token == winner.concurrency_token
