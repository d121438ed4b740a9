"""
Chat message shape conversion.

Fixtures written before parts-based messages store
{"role", "content", "toolInvocations"}. Current messages store
{"role", "parts": [text part, tool-invocation parts...]}.
"""

from __future__ import annotations

from typing import Any


class MessageShapeError(ValueError):
    """A fixture message is neither legacy nor current shape."""


def is_legacy_message(message: dict[str, Any]) -> bool:
    return "parts" not in message


def to_parts(message: dict[str, Any]) -> list[dict[str, Any]]:
    """
    Build the parts list for a message.

    A current-shape message keeps its parts. A legacy message becomes one text
    part (when content is non-empty) followed by one tool-invocation part per
    invocation, in order.
    """
    if not is_legacy_message(message):
        parts = message["parts"]
        if not isinstance(parts, list):
            raise MessageShapeError(f"parts must be a list, got {type(parts).__name__}")
        if not all(isinstance(p, dict) for p in parts):
            raise MessageShapeError("every part must be an object")
        return [dict(p) for p in parts]

    parts: list[dict[str, Any]] = []
    content = message.get("content")
    if isinstance(content, str) and content:
        parts.append({"type": "text", "text": content})
    elif content is not None and not isinstance(content, str):
        raise MessageShapeError(f"legacy content must be a string, got {type(content).__name__}")

    invocations = message.get("toolInvocations") or []
    if not isinstance(invocations, list):
        raise MessageShapeError("toolInvocations must be a list")
    for invocation in invocations:
        parts.append({"type": "tool-invocation", "toolInvocation": invocation})
    return parts


def convert_message(message: dict[str, Any]) -> dict[str, Any]:
    """
    Convert one fixture message to the current shape.

    Returns:
        {"role", "parts", "attachments", "timestamp"}; timestamp is passed
        through untouched (None when absent)

    Raises:
        MessageShapeError: If the message is not an object, role is missing, or a field has the wrong type
    """
    if not isinstance(message, dict):
        raise MessageShapeError(f"message must be an object, got {type(message).__name__}")
    role = message.get("role")
    if not isinstance(role, str) or not role:
        raise MessageShapeError("message has no role")
    attachments = message.get("attachments") or []
    if not isinstance(attachments, list):
        raise MessageShapeError("attachments must be a list")
    return {
        "role": role,
        "parts": to_parts(message),
        "attachments": list(attachments),
        "timestamp": message.get("timestamp") or message.get("createdAt"),
    }


def convert_history(history: dict[str, Any] | list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Convert a chat fixture ({"messages": [...]} or a bare list) to current-shape messages."""
    if isinstance(history, dict):
        messages = history.get("messages")
    else:
        messages = history
    if not isinstance(messages, list):
        raise MessageShapeError("chat fixture has no messages array")
    return [convert_message(m) for m in messages]
