"""
Tests for PostgresWorldStore and row-level world scoping.

Need a migrated database (alembic upgrade head); skipped without DATABASE_URL.
"""

from __future__ import annotations

from uuid import uuid4

import pytest
import pytest_asyncio

from testworlds import db
from testworlds.config import settings
from testworlds.models.context import WorldContext
from testworlds.repos.postgres_store import PostgresWorldStore
from testworlds.repos.store import ARTIFACTS, MESSAGES, USERS
from testworlds.services.seed_engine import SeedEngine

pytestmark = [
    pytest.mark.asyncio(loop_scope="session"),
    pytest.mark.skipif(not settings.DATABASE_URL, reason="DATABASE_URL not set"),
]


@pytest_asyncio.fixture(scope="module", loop_scope="session")
async def pg_store():
    await db.init_pool()
    yield PostgresWorldStore()
    await db.close_pool()


@pytest_asyncio.fixture(loop_scope="session")
async def seeded(pg_store, loader):
    world_id = f"TEST_PG_{uuid4().hex[:8]}"
    engine = SeedEngine(pg_store, loader=loader)
    result = await engine.seed(world_id, engine.registry.get("DEMO_PREPARATION"))
    yield world_id, result
    await engine.cleanup(world_id)


async def test_seed_counts_match_database(pg_store, seeded):
    world_id, result = seeded
    assert await pg_store.count_world(USERS, world_id) == 1
    assert await pg_store.count_world(ARTIFACTS, world_id) == result.counts()["artifacts"]
    assert await pg_store.count_world(MESSAGES, world_id) == result.counts()["messages"]


async def test_select_world_returns_string_ids(pg_store, seeded):
    world_id, result = seeded
    rows = await pg_store.select_world(USERS, world_id)
    assert [r["id"] for r in rows] == result.created.users


async def test_rls_scopes_world_connections(seeded):
    world_id, result = seeded

    async with db.world_conn(WorldContext.for_world(world_id)) as conn:
        visible = await conn.fetch("SELECT id, world_id FROM users")
    assert {str(r["id"]) for r in visible} == set(result.created.users)
    assert {r["world_id"] for r in visible} == {world_id}

    async with db.world_conn(WorldContext.production()) as conn:
        leaked = await conn.fetchval("SELECT count(*) FROM users WHERE world_id = $1", world_id)
    assert leaked == 0


async def test_cleanup_removes_every_row(pg_store, loader):
    world_id = f"TEST_PG_{uuid4().hex[:8]}"
    engine = SeedEngine(pg_store, loader=loader)
    seeded = await engine.seed(world_id, engine.registry.get("DEMO_PREPARATION"))

    result = await engine.cleanup(world_id)

    assert result.total == sum(seeded.counts().values())
    counts = await engine.count(world_id)
    assert all(n == 0 for n in counts.values())


async def test_unknown_column_is_rejected_before_sql(pg_store):
    with pytest.raises(ValueError, match="Unknown columns"):
        await pg_store.select_world(USERS, None, password="x")
