"""
Seed engine: materializes a world definition with one bulk write per phase.

Phases run strictly in order (users → artifacts → chats → messages) because
each phase references ids from the one before. Ids are derived, never read
back, so no phase needs an extra round trip.

Phases are not wrapped in one transaction. A failure raises SeedError with
the phases that did commit; the caller cleans up and reseeds, or abandons
the world. A partially seeded world is never handed to a test.
"""

from __future__ import annotations

import asyncio
import json
import logging
import time
from datetime import UTC, datetime, timedelta
from typing import Any
from uuid import NAMESPACE_URL, uuid5

from testworlds.config import settings
from testworlds.errors import IsolationViolation, SeedError
from testworlds.models.context import WorldContext
from testworlds.models.seed import CleanupResult, PhaseStats, SeedResult
from testworlds.models.world import WorldArtifact, WorldChat, WorldDefinition
from testworlds.repos.store import ARTIFACTS, CHATS, CLEANUP_ORDER, MESSAGES, USERS, WorldStore
from testworlds.services.fixture_loader import FixtureLoader
from testworlds.services.message_transform import MessageShapeError, convert_history
from testworlds.services.registry import WorldRegistry
from testworlds.services.world_context import tag

logger = logging.getLogger(__name__)

SEED_NAMESPACE = uuid5(NAMESPACE_URL, "https://testworlds.local/seed")

TEXT_KINDS = ("text", "code", "sheet")


def _elapsed_ms(start: float) -> int:
    return int((time.monotonic() - start) * 1000)


def _parse_time(value: Any) -> datetime | None:
    if not value:
        return None
    if isinstance(value, datetime):
        return value
    try:
        parsed = datetime.fromisoformat(str(value))
    except ValueError:
        return None
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=UTC)


def content_columns(kind: str, content: str | None) -> dict[str, Any]:
    """
    Sparse content columns for an artifact kind.

    text/code/sheet → content_text, image → content_url, site → parsed
    content_site_definition (None when the JSON does not parse).
    """
    site_definition = None
    if kind == "site" and content:
        try:
            site_definition = json.loads(content)
        except json.JSONDecodeError:
            logger.warning("seed_engine: site content is not valid JSON, storing no definition")
    return {
        "content_text": content if kind in TEXT_KINDS else None,
        "content_url": content if kind == "image" else None,
        "content_site_definition": site_definition,
    }


class SeedEngine:
    """
    Seeds and cleans up worlds in a WorldStore.

    Usage:
        engine = SeedEngine(store)
        result = await engine.seed("CLEAN_USER_WORKSPACE")
        ...
        await engine.cleanup("CLEAN_USER_WORKSPACE")
    """

    def __init__(
        self,
        store: WorldStore,
        registry: WorldRegistry | None = None,
        loader: FixtureLoader | None = None,
        session_ts: int | None = None,
        strict_fixtures: bool = False,
    ):
        """
        Args:
            store: Backing store to write to
            registry: World catalog (defaults to the compiled-in one)
            loader: Fixture loader (defaults to FIXTURES_ROOT)
            session_ts: Millisecond timestamp mixed into generated ids
            strict_fixtures: Fail on a missing fixture instead of seeding placeholder content
        """
        self.store = store
        self.registry = registry or WorldRegistry.default()
        self.loader = loader or FixtureLoader(settings.WORLD_FIXTURES_DIR)
        self.session_ts = session_ts if session_ts is not None else int(time.time() * 1000)
        self.strict_fixtures = strict_fixtures

    def entity_id(self, entity: str, world_id: str, test_id: str, index: int) -> str:
        """Deterministic UUID for one seeded entity."""
        return str(uuid5(SEED_NAMESPACE, f"{entity}:{world_id}:{test_id}:{self.session_ts}:{index}"))

    def user_id(self, world: WorldDefinition, world_id: str, test_id: str) -> str:
        return self.entity_id("user", world_id, test_id, world.user_index(test_id))

    async def seed(self, world_id: str, definition: WorldDefinition | None = None) -> SeedResult:
        """
        Seed one world.

        Args:
            world_id: Tag written on every row. Also the catalog id to seed
                when definition is not given.
            definition: Definition to materialize under world_id

        Returns:
            SeedResult with per-phase counts, timings and created ids

        Raises:
            IsolationViolation: If world_id is empty (production)
            UnknownWorldError: If no definition is given and world_id is not registered
            StructuralError: If the definition is invalid
            SeedError: If a bulk write fails; carries the partial result
        """
        if not world_id:
            raise IsolationViolation("Refusing to seed the production partition")
        world = definition or self.registry.get(world_id)
        self.registry.validate_definition(world)
        context = WorldContext.for_world(world_id)

        result = SeedResult(world_id=world_id, source_world_id=world.id)
        start = time.monotonic()
        logger.info("seed_engine: seeding world %s from %s", world_id, world.id)

        phase = USERS
        try:
            await self._seed_users(world, context, result)
            phase = ARTIFACTS
            await self._seed_artifacts(world, context, result)
            phase = CHATS
            await self._seed_chats(world, context, result)
            phase = MESSAGES
            await self._seed_messages(world, context, result)
        except Exception as e:
            result.total_ms = _elapsed_ms(start)
            logger.error("seed_engine: world %s failed in %s phase: %s", world_id, phase, e)
            raise SeedError(world_id, phase, result) from e

        result.total_ms = _elapsed_ms(start)
        logger.info(
            "seed_engine: world %s seeded in %dms (%s)",
            world_id,
            result.total_ms,
            ", ".join(f"{k}={v}" for k, v in result.counts().items()),
        )
        return result

    async def _load(self, world: WorldDefinition, relative_path: str, kind: str) -> tuple[str, bool]:
        if self.strict_fixtures:
            return await self.loader.load_text(world, relative_path), False
        return await self.loader.load_or_placeholder(world, relative_path, kind)

    async def _insert_phase(self, table: str, rows: list[dict[str, Any]], result: SeedResult) -> None:
        if not rows:
            return
        start = time.monotonic()
        ids = await self.store.insert_many(table, rows)
        setattr(result.operations, table, PhaseStats(count=len(ids), elapsed_ms=_elapsed_ms(start)))
        getattr(result.created, table).extend(ids)

    async def _seed_users(self, world: WorldDefinition, context: WorldContext, result: SeedResult) -> None:
        now = datetime.now(UTC)
        rows = [
            tag(
                {
                    "id": self.entity_id("user", result.world_id, user.test_id, index),
                    "email": user.email,
                    "name": user.name,
                    "role": user.role,
                    "created_at": now,
                },
                context,
            )
            for index, user in enumerate(world.users)
        ]
        await self._insert_phase(USERS, rows, result)

    async def _artifact_row(
        self,
        world: WorldDefinition,
        context: WorldContext,
        result: SeedResult,
        artifact: WorldArtifact,
        index: int,
        now: datetime,
    ) -> dict[str, Any]:
        content = None
        if artifact.content_path:
            content, substituted = await self._load(world, artifact.content_path, artifact.kind)
            if substituted:
                result.placeholders.append(artifact.content_path)
        owner = self.user_id(world, result.world_id, artifact.owner_id)
        return tag(
            {
                "id": self.entity_id("artifact", result.world_id, artifact.test_id, index),
                "title": artifact.title,
                "kind": artifact.kind,
                "user_id": owner,
                "author_id": owner,
                **content_columns(artifact.kind, content),
                "summary": f"Test fixture: {artifact.title}",
                "tags": list(artifact.tags),
                "is_published": artifact.is_published,
                "published_until": _parse_time(artifact.published_until),
                "created_at": now,
                "deleted_at": None,
            },
            context,
        )

    async def _seed_artifacts(self, world: WorldDefinition, context: WorldContext, result: SeedResult) -> None:
        now = datetime.now(UTC)
        # Content loads concurrently; the insert is still a single bulk write.
        rows = await asyncio.gather(
            *(
                self._artifact_row(world, context, result, artifact, index, now)
                for index, artifact in enumerate(world.artifacts)
            )
        )
        await self._insert_phase(ARTIFACTS, list(rows), result)

    async def _seed_chats(self, world: WorldDefinition, context: WorldContext, result: SeedResult) -> None:
        now = datetime.now(UTC)
        rows = [
            tag(
                {
                    "id": self.chat_id(result.world_id, chat, index),
                    "title": chat.title,
                    "user_id": self.user_id(world, result.world_id, chat.owner_id),
                    "is_published": chat.is_published,
                    "published_until": _parse_time(chat.published_until),
                    "created_at": now,
                    "deleted_at": None,
                },
                context,
            )
            for index, chat in enumerate(world.chats)
        ]
        await self._insert_phase(CHATS, rows, result)

    def chat_id(self, world_id: str, chat: WorldChat, index: int) -> str:
        return self.entity_id("chat", world_id, chat.test_id, index)

    async def _chat_history(self, world: WorldDefinition, chat: WorldChat, result: SeedResult) -> list[dict[str, Any]]:
        text, substituted = await self._load(world, chat.messages_path, "messages")
        if substituted:
            result.placeholders.append(chat.messages_path)
            return []
        try:
            return convert_history(json.loads(text))
        except (json.JSONDecodeError, MessageShapeError) as e:
            logger.warning("seed_engine: chat %s messages fixture unusable (%s), seeding no messages", chat.test_id, e)
            result.placeholders.append(chat.messages_path)
            return []

    async def _seed_messages(self, world: WorldDefinition, context: WorldContext, result: SeedResult) -> None:
        chats = [(index, chat) for index, chat in enumerate(world.chats) if chat.messages_path]
        histories = await asyncio.gather(*(self._chat_history(world, chat, result) for _, chat in chats))

        base = datetime.now(UTC)
        rows: list[dict[str, Any]] = []
        for (chat_index, chat), history in zip(chats, histories, strict=True):
            chat_id = self.chat_id(result.world_id, chat, chat_index)
            for ordinal, message in enumerate(history):
                rows.append(
                    tag(
                        {
                            "id": self.entity_id("message", result.world_id, f"{chat.test_id}#{ordinal}", ordinal),
                            "chat_id": chat_id,
                            "role": message["role"],
                            "parts": message["parts"],
                            "attachments": message["attachments"],
                            # Keep fixture order even when timestamps are absent
                            "created_at": _parse_time(message["timestamp"]) or base + timedelta(milliseconds=ordinal),
                        },
                        context,
                    )
                )
        await self._insert_phase(MESSAGES, rows, result)

    async def cleanup(self, world_id: str) -> CleanupResult:
        """
        Delete every row tagged with world_id, children before parents.

        Safe to call repeatedly and on a world that was never seeded.

        Raises:
            IsolationViolation: If world_id is empty (production)
        """
        if not world_id:
            raise IsolationViolation("Refusing to clean up the production partition")
        result = CleanupResult(world_id=world_id)
        for table in CLEANUP_ORDER:
            result.deleted[table] = await self.store.delete_world(table, world_id)
        if result.total:
            logger.info("seed_engine: cleaned up world %s (%d rows)", world_id, result.total)
        else:
            logger.debug("seed_engine: world %s already empty", world_id)
        return result

    async def count(self, world_id: str | None) -> dict[str, int]:
        """Rows per table tagged with world_id."""
        return {table: await self.store.count_world(table, world_id) for table in CLEANUP_ORDER}
