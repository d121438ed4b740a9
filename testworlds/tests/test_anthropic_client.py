from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from testworlds.services.anthropic_client import AnthropicModel
from testworlds.services.llm import GenerateOptions


def _message(text: str, stop_reason: str = "end_turn"):
    return SimpleNamespace(
        content=[SimpleNamespace(type="text", text=text), SimpleNamespace(type="tool_use", name="siteTool")],
        usage=SimpleNamespace(input_tokens=100, output_tokens=50),
        stop_reason=stop_reason,
    )


async def _chunks(*texts):
    for text in texts:
        yield text


@pytest.mark.asyncio
async def test_generate_joins_text_blocks():
    """Only text blocks make up the content."""
    model = AnthropicModel("fake-key", "claude-sonnet-4-20250514")
    with patch.object(model.client.messages, "create", new=AsyncMock(return_value=_message("Hello"))) as mock:
        result = await model.generate(GenerateOptions(prompt="Hi", system="Be brief", temperature=0.1))

    assert result.content == "Hello"
    assert result.usage == {"input_tokens": 100, "output_tokens": 50}
    assert result.finish_reason == "end_turn"
    call_kwargs = mock.call_args.kwargs
    assert call_kwargs["model"] == "claude-sonnet-4-20250514"
    assert call_kwargs["messages"] == [{"role": "user", "content": "Hi"}]
    assert call_kwargs["system"] == "Be brief"
    assert call_kwargs["temperature"] == 0.1


@pytest.mark.asyncio
async def test_optional_fields_are_omitted():
    model = AnthropicModel("fake-key", "model")
    messages = [{"role": "user", "content": "a"}]
    with patch.object(model.client.messages, "create", new=AsyncMock(return_value=_message("x"))) as mock:
        await model.generate(GenerateOptions(messages=messages))

    call_kwargs = mock.call_args.kwargs
    assert "system" not in call_kwargs
    assert "temperature" not in call_kwargs
    assert call_kwargs["messages"] == messages


@pytest.mark.asyncio
async def test_stream_yields_deltas_then_finish():
    model = AnthropicModel("fake-key", "model")
    with patch.object(model.client.messages, "stream") as mock:
        mock_ctx = MagicMock()
        mock_ctx.__aenter__ = AsyncMock(return_value=mock_ctx)
        mock_ctx.__aexit__ = AsyncMock(return_value=False)
        mock_ctx.text_stream = _chunks("Hel", "lo")
        mock_ctx.get_final_message = AsyncMock(return_value=_message("Hello", "max_tokens"))
        mock.return_value = mock_ctx

        events = [event async for event in model.stream(GenerateOptions(prompt="Hi"))]

    assert events == [
        {"type": "text-delta", "text": "Hel"},
        {"type": "text-delta", "text": "lo"},
        {"type": "finish", "usage": {"input_tokens": 100, "output_tokens": 50}, "finish_reason": "max_tokens"},
    ]
    assert mock.call_args.kwargs["max_tokens"] == 4096


def test_model_id():
    assert AnthropicModel("fake-key", "claude-haiku").model_id == "claude-haiku"
