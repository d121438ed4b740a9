"""
World context: which world a request may see, and the isolation predicate.

filter_for(), tag() and can_access() are the only isolation primitives.
Every world-scoped read applies filter_for(), every insert goes through tag().

The context comes from a signed token (cookie first, then header). Anything
missing, unsigned, expired or malformed resolves to production. A broken
token never selects a test world and never fails the request.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime, timedelta
from typing import Any

import jwt
from fastapi import Request

from testworlds.config import settings
from testworlds.errors import IsolationViolation
from testworlds.models.context import WORLD_COLUMN, WorldContext, WorldFilter

logger = logging.getLogger(__name__)


def filter_for(context: WorldContext | None) -> WorldFilter:
    """Equality predicate on world_id. None (production) when there is no test world."""
    if context is None or not context.is_test_mode:
        return WorldFilter(value=None)
    return WorldFilter(value=context.world_id)


def tag(row: dict[str, Any], context: WorldContext | None) -> dict[str, Any]:
    """Return a copy of row carrying the context's world_id."""
    world_id = context.world_id if context is not None and context.is_test_mode else None
    return {**row, WORLD_COLUMN: world_id}


def can_access(row_world_id: str | None, context: WorldContext | None) -> bool:
    """True only when the row's world tag equals the context's (None == None for production)."""
    return row_world_id == filter_for(context).value


def check_isolation(rows: list[dict[str, Any]], context: WorldContext | None) -> list[dict[str, Any]]:
    """
    Raise IsolationViolation if any row lies outside the context.

    Rows reaching this check already went through filter_for(); a failure
    means some query path lost its filter.
    """
    for row in rows:
        if not can_access(row.get(WORLD_COLUMN), context):
            raise IsolationViolation(
                f"Row {row.get('id')} tagged {row.get(WORLD_COLUMN)!r} "
                f"returned to context {filter_for(context).value!r}"
            )
    return rows


def encode_world_token(world_id: str, ttl_hours: int | None = None) -> str:
    """
    Sign a token selecting world_id.

    Raises:
        RuntimeError: If WORLD_TOKEN_SECRET is not configured
    """
    if not settings.WORLD_TOKEN_SECRET:
        raise RuntimeError("WORLD_TOKEN_SECRET environment variable is required to issue world tokens")
    now = datetime.now(UTC)
    payload = {
        "world_id": world_id,
        "iat": now,
        "exp": now + timedelta(hours=ttl_hours or settings.WORLD_TOKEN_TTL_HOURS),
    }
    return jwt.encode(payload, settings.WORLD_TOKEN_SECRET, algorithm=settings.WORLD_TOKEN_ALGORITHM)


def context_from_token(token: str | None) -> WorldContext:
    """Decode a world token. Every failure gives the production context."""
    if not token or not settings.TEST_WORLDS_ENABLED or not settings.WORLD_TOKEN_SECRET:
        return WorldContext.production()
    try:
        payload = jwt.decode(
            token,
            settings.WORLD_TOKEN_SECRET,
            algorithms=[settings.WORLD_TOKEN_ALGORITHM],
            options={"require": ["exp", "world_id"]},
        )
    except jwt.InvalidTokenError as e:
        logger.warning("world_context: rejecting world token: %s", e)
        return WorldContext.production()

    world_id = payload.get("world_id")
    if not isinstance(world_id, str) or not world_id.strip():
        logger.warning("world_context: world token carries no usable world_id")
        return WorldContext.production()
    return WorldContext.for_world(world_id.strip())


def context_from_request(request: Request) -> WorldContext:
    """Derive the context once per request from the world cookie or header."""
    token = request.cookies.get(settings.WORLD_COOKIE_NAME) or request.headers.get(settings.WORLD_HEADER_NAME)
    return context_from_token(token)


async def get_world_context(request: Request) -> WorldContext:
    """FastAPI dependency returning the request's WorldContext."""
    return context_from_request(request)
