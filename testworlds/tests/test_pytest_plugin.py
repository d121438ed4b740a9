"""Tests for the pytest plugin fixtures, run against the memory world_store."""

from __future__ import annotations

import pytest

from testworlds.pytest_plugin import worker_id
from testworlds.repos.store import ARTIFACTS, USERS
from testworlds.repos.world_repo import WorldRepo

pytestmark = pytest.mark.asyncio(loop_scope="session")


async def test_test_world_is_seeded(test_world, world_store):
    assert test_world.world_id.startswith(f"TEST_W{worker_id()}_")
    assert test_world.source_world_id == "CLEAN_USER_WORKSPACE"
    assert "test_pytest_plugin.py" in test_world.assigned_tests
    assert await world_store.count_world(USERS, test_world.world_id) == 1
    assert await world_store.count_world(ARTIFACTS, test_world.world_id) == 2


async def test_world_is_shared_within_the_worker(test_world, world_allocator):
    assert world_allocator.world_for(worker_id()) is test_world


async def test_world_context_reads_only_its_world(world_context, world_store):
    repo = WorldRepo(world_store)
    users = await repo.list_users(world_context)
    assert [u["email"] for u in users] == ["sarah@example.com"]
    assert {u["world_id"] for u in users} == {world_context.world_id}


async def test_worker_id(monkeypatch):
    monkeypatch.setenv("PYTEST_XDIST_WORKER", "gw3")
    assert worker_id() == "3"
    monkeypatch.delenv("PYTEST_XDIST_WORKER")
    assert worker_id() == "0"
