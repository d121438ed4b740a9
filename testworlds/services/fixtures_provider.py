"""
AI fixtures provider: record, replay or pass through language-model calls.

Wrapping a model returns a FixtureModel with the same generate()/stream()
contract. Each call is keyed by a content hash of (normalized prompt, model
id, fixture context), so the same input always maps to the same file:

    {fixtures_dir}/{useCaseId | worldId | "general"}/{fixture id}.json

Modes:
    passthrough       delegate to the live model, record nothing
    record            call the live model under a deadline, persist, return
    replay            serve the stored result; a miss raises ReplayMissError
    record-or-replay  replay when recorded, record otherwise
"""

from __future__ import annotations

import asyncio
import json
import logging
import time
from collections.abc import AsyncIterator
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, Literal, get_args

from pydantic import ValidationError

from testworlds.config import settings
from testworlds.errors import FixtureFormatError, RecordTimeoutError, ReplayMissError
from testworlds.models.fixture import AIFixture, FixtureContext, FixtureInput, FixtureMetadata, FixtureOutput
from testworlds.services.anthropic_client import AnthropicModel
from testworlds.services.fixture_loader import FixtureLoader
from testworlds.services.llm import (
    GenerateOptions,
    GenerateResult,
    LanguageModel,
    StreamEvent,
    finish_event,
    text_delta,
)
from testworlds.utils import fixture_hash

logger = logging.getLogger(__name__)

FixtureMode = Literal["passthrough", "record", "replay", "record-or-replay"]
FIXTURE_MODES: tuple[str, ...] = get_args(FixtureMode)


def _as_context(context: FixtureContext | dict[str, Any] | None) -> FixtureContext:
    if context is None:
        return FixtureContext()
    if isinstance(context, FixtureContext):
        return context
    return FixtureContext.model_validate(context)


class AIFixturesProvider:
    """Owns the fixture directory, the in-process cache and the mode."""

    def __init__(
        self,
        mode: FixtureMode = "passthrough",
        fixtures_dir: Path | str | None = None,
        record_timeout_s: float | None = None,
        replay_chunk_size: int | None = None,
        replay_delay_ms: int | None = None,
    ):
        """
        Args:
            mode: One of FIXTURE_MODES
            fixtures_dir: Root of the AI fixture tree (defaults to FIXTURES_ROOT/ai)
            record_timeout_s: Deadline for one live call while recording
            replay_chunk_size: Characters per replayed text-delta
            replay_delay_ms: Pause before each replayed text-delta

        Raises:
            ValueError: For an unknown mode or a non-positive chunk size
        """
        if mode not in FIXTURE_MODES:
            raise ValueError(f"Unknown AI fixtures mode: {mode!r} (expected one of {', '.join(FIXTURE_MODES)})")
        self.mode: FixtureMode = mode
        self.fixtures_dir = Path(fixtures_dir) if fixtures_dir is not None else settings.AI_FIXTURES_DIR
        self.record_timeout_s = (
            record_timeout_s if record_timeout_s is not None else settings.AI_RECORD_TIMEOUT_SECONDS
        )
        self.replay_chunk_size = replay_chunk_size if replay_chunk_size is not None else settings.REPLAY_CHUNK_SIZE
        self.replay_delay_ms = replay_delay_ms if replay_delay_ms is not None else settings.REPLAY_DELAY_MS
        if self.replay_chunk_size < 1:
            raise ValueError("replay_chunk_size must be positive")

        self.files = FixtureLoader(self.fixtures_dir)
        self._cache: dict[str, AIFixture] = {}

    def wrap(self, model: LanguageModel, context: FixtureContext | dict[str, Any] | None = None) -> FixtureModel:
        """Wrap a model. The result is used exactly like the model itself."""
        return FixtureModel(self, model, _as_context(context))

    # Ids and paths ---------------------------------------------------------

    def fixture_id(self, options: GenerateOptions, model_id: str, context: FixtureContext) -> str:
        return fixture_hash.fixture_id(options.prompt_text(), model_id, context.key())

    @staticmethod
    def relative_path(fixture_id: str, context: FixtureContext) -> str:
        scope = context.use_case_id or context.world_id or "general"
        return f"{scope}/{fixture_id}.json"

    def path_for(self, fixture_id: str, context: FixtureContext) -> Path:
        return self.files.path_for(".", self.relative_path(fixture_id, context))

    # Storage ---------------------------------------------------------------

    async def load(self, fixture_id: str, context: FixtureContext) -> AIFixture | None:
        """
        Stored fixture, from cache or disk. None when never recorded.

        Raises:
            FixtureFormatError: If the file exists but is not a valid fixture
        """
        cached = self._cache.get(fixture_id)
        if cached is not None:
            return cached

        relative = self.relative_path(fixture_id, context)
        try:
            data = await asyncio.to_thread(self.files.read_json, relative)
        except json.JSONDecodeError as e:
            raise FixtureFormatError(self.path_for(fixture_id, context), [f"invalid JSON: {e}"]) from e
        if data is None:
            return None
        try:
            fixture = AIFixture.model_validate(data)
        except ValidationError as e:
            raise FixtureFormatError(self.path_for(fixture_id, context), [str(e)]) from e

        self._cache[fixture_id] = fixture
        return fixture

    async def save(
        self,
        fixture_id: str,
        options: GenerateOptions,
        model_id: str,
        context: FixtureContext,
        result: GenerateResult,
        duration_ms: int,
    ) -> AIFixture:
        now = datetime.now(UTC).isoformat()
        fixture_input = FixtureInput(
            prompt=options.prompt_text(),
            model=model_id,
            settings=options.recorded_settings() or None,
            context=context.key(),
        )
        fixture = AIFixture(
            id=fixture_id,
            name=f"AI fixture: {fixture_id}",
            use_case_id=context.use_case_id,
            world_id=context.world_id,
            input=fixture_input,
            output=FixtureOutput(
                content=result.content,
                usage=result.usage,
                finish_reason=result.finish_reason,
                timestamp=now,
                duration=duration_ms,
            ),
            metadata=FixtureMetadata(
                created_at=now,
                hash=fixture_hash.input_hash(fixture_input.model_dump(mode="json", by_alias=True)),
                tags=[context.use_case_id] if context.use_case_id else None,
            ),
        )
        path = await asyncio.to_thread(
            self.files.write_json, self.relative_path(fixture_id, context), fixture.to_json_dict()
        )
        self._cache[fixture_id] = fixture
        logger.info("fixtures_provider: recorded %s (%dms) to %s", fixture_id, duration_ms, path)
        return fixture

    async def replay_stream(self, fixture: AIFixture) -> AsyncIterator[StreamEvent]:
        """Re-chunk recorded text into text-delta events, then a finish event."""
        content = fixture.output.content
        for start in range(0, len(content), self.replay_chunk_size):
            if self.replay_delay_ms:
                await asyncio.sleep(self.replay_delay_ms / 1000)
            yield text_delta(content[start : start + self.replay_chunk_size])
        yield finish_event(fixture.output.usage, fixture.output.finish_reason)

    def clear_cache(self) -> None:
        self._cache.clear()
        logger.debug("fixtures_provider: cache cleared")

    def stats(self) -> dict[str, Any]:
        return {
            "mode": self.mode,
            "cache_size": len(self._cache),
            "fixtures_dir": str(self.fixtures_dir),
        }


class FixtureModel:
    """A language model routed through an AIFixturesProvider."""

    def __init__(self, provider: AIFixturesProvider, model: LanguageModel, context: FixtureContext):
        self.provider = provider
        self.model = model
        self.context = context

    @property
    def model_id(self) -> str:
        return self.model.model_id

    async def _recorded(self, fixture_id: str) -> AIFixture | None:
        """Stored fixture for replay modes. Raises ReplayMissError on a strict replay miss."""
        fixture = await self.provider.load(fixture_id, self.context)
        if fixture is None and self.provider.mode == "replay":
            raise ReplayMissError(fixture_id, self.provider.path_for(fixture_id, self.context))
        return fixture

    async def generate(self, options: GenerateOptions) -> GenerateResult:
        if self.provider.mode == "passthrough":
            return await self.model.generate(options)

        fid = self.provider.fixture_id(options, self.model_id, self.context)
        if self.provider.mode in ("replay", "record-or-replay"):
            fixture = await self._recorded(fid)
            if fixture is not None:
                logger.debug("fixtures_provider: replaying %s", fid)
                return GenerateResult(
                    content=fixture.output.content,
                    usage=fixture.output.usage,
                    finish_reason=fixture.output.finish_reason,
                )

        timeout = self.provider.record_timeout_s
        start = time.monotonic()
        try:
            result = await asyncio.wait_for(self.model.generate(options), timeout)
        except TimeoutError as e:
            raise RecordTimeoutError(fid, timeout) from e
        await self.provider.save(fid, options, self.model_id, self.context, result, int((time.monotonic() - start) * 1000))
        return result

    async def stream(self, options: GenerateOptions) -> AsyncIterator[StreamEvent]:
        if self.provider.mode == "passthrough":
            async for event in self.model.stream(options):
                yield event
            return

        fid = self.provider.fixture_id(options, self.model_id, self.context)
        if self.provider.mode in ("replay", "record-or-replay"):
            fixture = await self._recorded(fid)
            if fixture is not None:
                logger.debug("fixtures_provider: replaying stream %s", fid)
                async for event in self.provider.replay_stream(fixture):
                    yield event
                return

        async for event in self._record_stream(fid, options):
            yield event

    async def _record_stream(self, fid: str, options: GenerateOptions) -> AsyncIterator[StreamEvent]:
        """Yield live events while accumulating them; persist once the stream ends."""
        loop = asyncio.get_running_loop()
        timeout = self.provider.record_timeout_s
        start = time.monotonic()
        deadline = loop.time() + timeout

        chunks: list[str] = []
        usage: dict[str, int] | None = None
        finish_reason: str | None = None
        iterator = aiter(self.model.stream(options))
        while True:
            try:
                event = await asyncio.wait_for(anext(iterator), max(deadline - loop.time(), 0))
            except StopAsyncIteration:
                break
            except TimeoutError as e:
                aclose = getattr(iterator, "aclose", None)
                if aclose is not None:
                    await aclose()
                raise RecordTimeoutError(fid, timeout) from e

            if event.get("type") == "text-delta":
                chunks.append(event.get("text", ""))
            elif event.get("type") == "finish":
                usage = event.get("usage")
                finish_reason = event.get("finish_reason")
            yield event

        result = GenerateResult(content="".join(chunks), usage=usage, finish_reason=finish_reason)
        await self.provider.save(fid, options, self.model_id, self.context, result, int((time.monotonic() - start) * 1000))


def get_fixtures_provider() -> AIFixturesProvider:
    """
    Provider configured from settings.

    - AI_FIXTURES_MODE           → mode (default passthrough)
    - AI_RECORD_TIMEOUT_SECONDS  → record deadline
    - REPLAY_CHUNK_SIZE / REPLAY_DELAY_MS → stream replay pacing
    """
    return AIFixturesProvider(
        mode=settings.AI_FIXTURES_MODE,  # type: ignore[arg-type]
        fixtures_dir=settings.AI_FIXTURES_DIR,
        record_timeout_s=settings.AI_RECORD_TIMEOUT_SECONDS,
        replay_chunk_size=settings.REPLAY_CHUNK_SIZE,
        replay_delay_ms=settings.REPLAY_DELAY_MS,
    )


def get_model(context: FixtureContext | dict[str, Any] | None = None, model: str | None = None) -> FixtureModel:
    """The configured Anthropic model, routed through get_fixtures_provider()."""
    live = AnthropicModel(api_key=settings.ANTHROPIC_API_KEY, model=model or settings.DEFAULT_MODEL)
    return get_fixtures_provider().wrap(live, context)
