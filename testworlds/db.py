"""
Connection pool and world-scoped connections.

Seeding and cleanup use system_conn(); anything reading as a request would
use world_conn(context), where row-level security admits only the context's
world. pool.acquire() is never called outside this module.
"""

from __future__ import annotations

import json
from contextlib import asynccontextmanager
from uuid import UUID

import asyncpg

from testworlds.config import settings
from testworlds.models.context import WorldContext

pool: asyncpg.Pool | None = None


async def init_pool(dsn: str | None = None) -> None:
    """
    Open the pool. Once per test session, or at dev-server startup.

    Raises:
        RuntimeError: If neither dsn nor DATABASE_URL is set
    """
    global pool
    dsn = dsn or settings.DATABASE_URL
    if not dsn:
        raise RuntimeError("DATABASE_URL environment variable is required")
    pool = await asyncpg.create_pool(
        dsn=dsn,
        min_size=settings.DB_POOL_MIN_SIZE,
        max_size=settings.DB_POOL_MAX_SIZE,
        command_timeout=60,
        init=_register_codecs,
    )


async def close_pool() -> None:
    global pool
    if pool is not None:
        await pool.close()
        pool = None


async def _register_codecs(conn: asyncpg.Connection) -> None:
    """uuid columns come back as UUID; json/jsonb round-trip as Python objects."""
    await conn.set_type_codec("uuid", encoder=str, decoder=UUID, schema="pg_catalog")
    for type_name in ("json", "jsonb"):
        await conn.set_type_codec(type_name, encoder=json.dumps, decoder=json.loads, schema="pg_catalog")


def _require_pool() -> asyncpg.Pool:
    if pool is None:
        raise RuntimeError("Database pool not initialized. Call init_pool() first.")
    return pool


@asynccontextmanager
async def world_conn(context: WorldContext | None):
    """
    Connection whose row-level security is scoped to one world.

    The policies compare world_id with app.world_id; an empty setting (the
    production context) admits only untagged rows.

    Usage:
        async with world_conn(ctx) as conn:
            rows = await conn.fetch("SELECT * FROM artifacts WHERE user_id = $1", user_id)
    """
    world_id = context.world_id if context is not None and context.is_test_mode else None
    async with _require_pool().acquire() as conn:
        async with conn.transaction():
            await conn.execute("SELECT set_config('app.world_id', $1, true)", world_id or "")
            yield conn


@asynccontextmanager
async def system_conn():
    """
    Connection that sees every world.

    For seeding, cleanup and migrations only. Every statement issued through
    it must carry its own world_id predicate. The bypass flag is transaction
    local, so it never leaks back into the pool.
    """
    async with _require_pool().acquire() as conn:
        async with conn.transaction():
            await conn.execute("SELECT set_config('app.bypass_world', 'on', true)")
            yield conn
