"""
Language-model contract.

Anything with generate(), stream() and model_id can be wrapped by the AI
fixtures provider. Stream events are plain dicts:

    {"type": "text-delta", "text": "..."}
    {"type": "finish", "usage": {...} | None, "finish_reason": "..." | None}
"""

from __future__ import annotations

import json
from collections.abc import AsyncIterator
from typing import Any, Protocol

from pydantic import BaseModel, Field

StreamEvent = dict[str, Any]


class GenerateOptions(BaseModel):
    """One model call. Either prompt or messages is set."""

    prompt: str | None = None
    messages: list[dict[str, Any]] = Field(default_factory=list)
    system: str | None = None
    max_tokens: int = 4096
    temperature: float | None = None

    def prompt_text(self) -> str:
        """Text identifying the call: the prompt, or system + serialized messages."""
        if self.prompt is not None:
            return self.prompt
        parts = [self.system or ""]
        parts.extend(json.dumps(m, sort_keys=True, ensure_ascii=False) for m in self.messages)
        return "\n".join(parts)

    def api_messages(self) -> list[dict[str, Any]]:
        if self.messages:
            return self.messages
        return [{"role": "user", "content": self.prompt or ""}]

    def recorded_settings(self) -> dict[str, Any]:
        return self.model_dump(exclude={"prompt", "messages"}, exclude_none=True)


class GenerateResult(BaseModel):
    content: str
    usage: dict[str, int] | None = None
    finish_reason: str | None = None


def text_delta(text: str) -> StreamEvent:
    return {"type": "text-delta", "text": text}


def finish_event(usage: dict[str, int] | None, finish_reason: str | None) -> StreamEvent:
    return {"type": "finish", "usage": usage, "finish_reason": finish_reason}


class LanguageModel(Protocol):
    @property
    def model_id(self) -> str: ...

    async def generate(self, options: GenerateOptions) -> GenerateResult: ...

    def stream(self, options: GenerateOptions) -> AsyncIterator[StreamEvent]: ...
