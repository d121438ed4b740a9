"""
Anthropic language model.

Wraps the Anthropic Messages API behind the LanguageModel contract so the
fixtures provider can record it.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from typing import Any

import anthropic

from testworlds.services.llm import GenerateOptions, GenerateResult, StreamEvent, finish_event, text_delta


def _usage(message: Any) -> dict[str, int] | None:
    usage = getattr(message, "usage", None)
    if usage is None:
        return None
    return {
        "input_tokens": usage.input_tokens,
        "output_tokens": usage.output_tokens,
    }


def _text(message: Any) -> str:
    return "".join(block.text for block in message.content if getattr(block, "type", None) == "text")


class AnthropicModel:
    """Generates and streams from one Anthropic model."""

    def __init__(self, api_key: str, model: str):
        """
        Args:
            api_key: Anthropic API key
            model: Model identifier
        """
        self.client = anthropic.AsyncAnthropic(api_key=api_key)
        self._model = model

    @property
    def model_id(self) -> str:
        return self._model

    def _kwargs(self, options: GenerateOptions) -> dict[str, Any]:
        kwargs: dict[str, Any] = {
            "model": self._model,
            "max_tokens": options.max_tokens,
            "messages": options.api_messages(),
        }
        if options.system is not None:
            kwargs["system"] = options.system
        if options.temperature is not None:
            kwargs["temperature"] = options.temperature
        return kwargs

    async def generate(self, options: GenerateOptions) -> GenerateResult:
        message = await self.client.messages.create(**self._kwargs(options))
        return GenerateResult(content=_text(message), usage=_usage(message), finish_reason=message.stop_reason)

    async def stream(self, options: GenerateOptions) -> AsyncIterator[StreamEvent]:
        """
        Stream a response.

        Yields:
            text-delta events as text arrives, then one finish event with
            usage from the final message
        """
        async with self.client.messages.stream(**self._kwargs(options)) as stream:
            async for text in stream.text_stream:
                yield text_delta(text)
            final_message = await stream.get_final_message()
        yield finish_event(_usage(final_message), getattr(final_message, "stop_reason", None))
