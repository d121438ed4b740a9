"""
pytest plugin: one seeded world per worker.

Load with `-p testworlds.pytest_plugin` (or list it in a root
conftest's pytest_plugins). Under pytest-xdist every worker gets
its own world; without xdist the whole run is worker "0". Worlds are cleaned
up when the session ends.

Override `world_store` in a conftest to seed somewhere other than Postgres.
"""

from __future__ import annotations

import os

import pytest
import pytest_asyncio

from testworlds import db
from testworlds.models.allocation import WorkerWorldInfo
from testworlds.models.context import WorldContext
from testworlds.repos.postgres_store import PostgresWorldStore
from testworlds.services.allocator import WorldAllocator
from testworlds.services.seed_engine import SeedEngine


def worker_id() -> str:
    """xdist worker number ("gw3" -> "3"), or "0" outside xdist."""
    return os.environ.get("PYTEST_XDIST_WORKER", "gw0").removeprefix("gw")


@pytest_asyncio.fixture(scope="session", loop_scope="session")
async def world_store():
    """Postgres store over a pool opened for the session."""
    await db.init_pool()
    yield PostgresWorldStore()
    await db.close_pool()


@pytest_asyncio.fixture(scope="session", loop_scope="session")
async def world_allocator(world_store):
    """Session allocator. Releases every world at teardown."""
    allocator = WorldAllocator(SeedEngine(world_store))
    yield allocator
    await allocator.release_all()


@pytest_asyncio.fixture(loop_scope="session")
async def test_world(world_allocator, request) -> WorkerWorldInfo:
    """This worker's world, allocated for the requesting test file."""
    return await world_allocator.allocate(worker_id(), request.path.name)


@pytest.fixture
def world_context(test_world) -> WorldContext:
    return WorldContext.for_world(test_world.world_id)
