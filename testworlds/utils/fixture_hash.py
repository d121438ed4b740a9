"""AI fixture id hashing. Ids must be identical across processes and machines."""

import hashlib
import json
import re
from typing import Any

_BLANK_RUNS = re.compile(r"\n{3,}")


def normalize_prompt(prompt: str) -> str:
    """
    Canonical prompt text for hashing.

    Line endings become \\n, trailing whitespace is trimmed from every line
    and from the whole prompt, and runs of blank lines collapse to one.
    """
    text = prompt.replace("\r\n", "\n").replace("\r", "\n")
    text = "\n".join(line.rstrip() for line in text.split("\n"))
    return _BLANK_RUNS.sub("\n\n", text).strip()


def serialize_context(context: dict[str, Any]) -> str:
    return json.dumps(context, sort_keys=True, separators=(",", ":"))


def fixture_hash(prompt: str, model: str, context: dict[str, Any]) -> str:
    """
    Hash of one model interaction.

    Args:
        prompt: Raw prompt text (normalized here)
        model: Model id
        context: {"useCaseId", "worldId", "fixturePrefix"}

    Returns:
        First 16 hex chars of SHA-256
    """
    payload = "\x1f".join((normalize_prompt(prompt), model, serialize_context(context)))
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()[:16]


def input_hash(data: dict[str, Any]) -> str:
    """Hash of a recorded fixture input, stored in its metadata."""
    return hashlib.sha256(serialize_context(data).encode("utf-8")).hexdigest()[:16]


def fixture_id(prompt: str, model: str, context: dict[str, Any]) -> str:
    """`{prefix}-{hash}` where prefix is fixturePrefix, else useCaseId, else "ai"."""
    prefix = context.get("fixturePrefix") or context.get("useCaseId") or "ai"
    return f"{prefix}-{fixture_hash(prompt, model, context)}"
