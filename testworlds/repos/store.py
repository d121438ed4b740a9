"""
Backing store contract.

Narrow on purpose: bulk insert, bulk delete, select and count, all keyed by
equality on the nullable world_id column.
"""

from __future__ import annotations

from typing import Any, Protocol

USERS = "users"
ARTIFACTS = "artifacts"
CHATS = "chats"
MESSAGES = "messages"
SUGGESTIONS = "suggestions"

# Columns each world-scoped table accepts. Anything else is rejected before SQL is built.
TABLE_COLUMNS: dict[str, tuple[str, ...]] = {
    USERS: ("id", "email", "name", "role", "created_at", "world_id"),
    ARTIFACTS: (
        "id",
        "title",
        "kind",
        "user_id",
        "author_id",
        "content_text",
        "content_url",
        "content_site_definition",
        "summary",
        "tags",
        "is_published",
        "published_until",
        "created_at",
        "deleted_at",
        "world_id",
    ),
    CHATS: ("id", "title", "user_id", "is_published", "published_until", "created_at", "deleted_at", "world_id"),
    MESSAGES: ("id", "chat_id", "role", "parts", "attachments", "created_at", "world_id"),
    SUGGESTIONS: ("id", "document_id", "user_id", "original_text", "suggested_text", "created_at", "world_id"),
}

# child table -> (column, parent table)
FOREIGN_KEYS: dict[str, tuple[tuple[str, str], ...]] = {
    ARTIFACTS: (("user_id", USERS), ("author_id", USERS)),
    CHATS: (("user_id", USERS),),
    MESSAGES: (("chat_id", CHATS),),
    SUGGESTIONS: (("document_id", ARTIFACTS), ("user_id", USERS)),
}

# Reverse dependency order. Deleting in this order never violates a foreign key.
CLEANUP_ORDER: tuple[str, ...] = (MESSAGES, SUGGESTIONS, ARTIFACTS, CHATS, USERS)


def check_columns(table: str, columns: list[str] | tuple[str, ...]) -> None:
    """Raise ValueError for an unknown table or column."""
    allowed = TABLE_COLUMNS.get(table)
    if allowed is None:
        raise ValueError(f"Unknown table: {table}")
    unknown = [c for c in columns if c not in allowed]
    if unknown:
        raise ValueError(f"Unknown columns for {table}: {unknown}")


class WorldStore(Protocol):
    """What the seed engine and world-scoped queries need from a database."""

    async def insert_many(self, table: str, rows: list[dict[str, Any]]) -> list[str]:
        """Insert all rows in one round trip. Returns the inserted ids in order."""
        ...

    async def delete_world(self, table: str, world_id: str) -> int:
        """Delete every row tagged with world_id. Returns the number deleted."""
        ...

    async def select_world(self, table: str, world_id: str | None, **equals: Any) -> list[dict[str, Any]]:
        """Rows whose world_id equals world_id (None matches NULL) and every extra equality."""
        ...

    async def count_world(self, table: str, world_id: str | None) -> int:
        ...
