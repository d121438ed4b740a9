"""
World-scoped queries.

Every read applies filter_for(context); every write goes through tag(). Reads
are then passed through check_isolation() so a lost filter fails loudly.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any
from uuid import uuid4

from testworlds.models.context import WorldContext
from testworlds.repos.store import ARTIFACTS, CHATS, MESSAGES, USERS, WorldStore
from testworlds.services.world_context import check_isolation, filter_for, tag


def _newest_first(rows: list[dict[str, Any]]) -> list[dict[str, Any]]:
    return sorted(rows, key=lambda r: r.get("created_at") or datetime.min.replace(tzinfo=UTC), reverse=True)


class WorldRepo:
    """Reads and writes confined to one WorldContext."""

    def __init__(self, store: WorldStore):
        self.store = store

    async def _select(self, table: str, context: WorldContext, **equals: Any) -> list[dict[str, Any]]:
        rows = await self.store.select_world(table, filter_for(context).value, **equals)
        return check_isolation(rows, context)

    async def _insert(self, table: str, row: dict[str, Any], context: WorldContext) -> dict[str, Any]:
        tagged = tag({"id": str(uuid4()), "created_at": datetime.now(UTC), **row}, context)
        await self.store.insert_many(table, [tagged])
        return tagged

    async def list_users(self, context: WorldContext) -> list[dict[str, Any]]:
        """Users of the context's world, ordered by email."""
        rows = await self._select(USERS, context)
        return sorted(rows, key=lambda r: r.get("email") or "")

    async def get_user(self, context: WorldContext, user_id: str) -> dict[str, Any] | None:
        rows = await self._select(USERS, context, id=user_id)
        return rows[0] if rows else None

    async def create_user(self, context: WorldContext, email: str, name: str | None = None) -> dict[str, Any]:
        return await self._insert(USERS, {"email": email, "name": name, "role": "hr-manager"}, context)

    async def list_chats(self, context: WorldContext, user_id: str) -> list[dict[str, Any]]:
        """Non-deleted chats of a user, newest first."""
        rows = await self._select(CHATS, context, user_id=user_id)
        return _newest_first([r for r in rows if r.get("deleted_at") is None])

    async def get_chat(self, context: WorldContext, chat_id: str) -> dict[str, Any] | None:
        rows = await self._select(CHATS, context, id=chat_id)
        rows = [r for r in rows if r.get("deleted_at") is None]
        return rows[0] if rows else None

    async def create_chat(self, context: WorldContext, user_id: str, title: str) -> dict[str, Any]:
        return await self._insert(CHATS, {"title": title, "user_id": user_id, "is_published": False}, context)

    async def list_messages(self, context: WorldContext, chat_id: str) -> list[dict[str, Any]]:
        """Messages of a chat, oldest first."""
        rows = await self._select(MESSAGES, context, chat_id=chat_id)
        return list(reversed(_newest_first(rows)))

    async def list_artifacts(self, context: WorldContext, user_id: str, kind: str | None = None) -> list[dict[str, Any]]:
        """Non-deleted artifacts of a user, newest first, optionally of one kind."""
        equals: dict[str, Any] = {"user_id": user_id}
        if kind is not None:
            equals["kind"] = kind
        rows = await self._select(ARTIFACTS, context, **equals)
        return _newest_first([r for r in rows if r.get("deleted_at") is None])

    async def get_artifact(self, context: WorldContext, artifact_id: str) -> dict[str, Any] | None:
        rows = await self._select(ARTIFACTS, context, id=artifact_id)
        rows = [r for r in rows if r.get("deleted_at") is None]
        return rows[0] if rows else None

    async def create_artifact(
        self,
        context: WorldContext,
        user_id: str,
        title: str,
        kind: str,
        content_text: str | None = None,
    ) -> dict[str, Any]:
        return await self._insert(
            ARTIFACTS,
            {
                "title": title,
                "kind": kind,
                "user_id": user_id,
                "author_id": user_id,
                "content_text": content_text,
            },
            context,
        )
