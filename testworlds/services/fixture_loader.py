"""
Fixture content loader.

Resolves {root}/{world directory}/{relative path} to file contents. Seeding
uses load_or_placeholder(), which substitutes deterministic synthetic content
for a missing file; the validator uses load(), which raises instead.
"""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Any

from testworlds.errors import FixtureMissingError
from testworlds.models.world import WorldDefinition

logger = logging.getLogger(__name__)

PLACEHOLDER_MARKER = "FIXTURE_MISSING"


def placeholder_content(kind: str, relative_path: str) -> str:
    """
    Synthetic stand-in for a missing fixture. Same (kind, path) → same text.

    Each kind gets content that still parses as that kind, so seeded rows stay
    usable (a site placeholder is valid site JSON, a sheet placeholder valid CSV).
    """
    if kind == "site":
        return json.dumps(
            {
                "blocks": [],
                "metadata": {"title": f"[{PLACEHOLDER_MARKER}: {relative_path}]", "placeholder": True},
            },
            sort_keys=True,
        )
    if kind == "sheet":
        return f"name,email,note\nPlaceholder,placeholder@example.com,[{PLACEHOLDER_MARKER}: {relative_path}]\n"
    if kind == "code":
        return f"# [{PLACEHOLDER_MARKER}: {relative_path}]\nprint('placeholder')\n"
    if kind == "image":
        return f"https://placehold.co/600x400?text={PLACEHOLDER_MARKER}"
    if kind == "messages":
        return json.dumps({"messages": []})
    return f"# Placeholder\n\n[{PLACEHOLDER_MARKER}: {relative_path}]\n"


class FixtureLoader:
    """Reads fixture files below one root directory."""

    def __init__(self, root: Path | str):
        self.root = Path(root)

    def path_for(self, world: WorldDefinition | str, relative_path: str) -> Path:
        """
        Absolute path of a world fixture.

        Raises:
            ValueError: If relative_path escapes the world's directory
        """
        directory = world.directory if isinstance(world, WorldDefinition) else world
        base = (self.root / directory).resolve()
        path = (base / relative_path).resolve()
        if not path.is_relative_to(base):
            raise ValueError(f"Fixture path escapes {base}: {relative_path}")
        return path

    def _read(self, path: Path) -> bytes:
        try:
            return path.read_bytes()
        except FileNotFoundError as e:
            raise FixtureMissingError(path) from e
        except OSError as e:
            raise FixtureMissingError(path, reason=str(e)) from e

    async def load(self, world: WorldDefinition | str, relative_path: str) -> bytes:
        """
        Load fixture bytes in a worker thread.

        Raises:
            FixtureMissingError: If the file cannot be read
        """
        path = self.path_for(world, relative_path)
        return await asyncio.to_thread(self._read, path)

    async def load_text(self, world: WorldDefinition | str, relative_path: str) -> str:
        return (await self.load(world, relative_path)).decode("utf-8")

    async def load_or_placeholder(
        self, world: WorldDefinition, relative_path: str, kind: str
    ) -> tuple[str, bool]:
        """
        Load a fixture, falling back to placeholder content when it is missing.

        Returns:
            (text, substituted) where substituted is True for placeholder content
        """
        try:
            return await self.load_text(world, relative_path), False
        except FixtureMissingError as e:
            logger.warning("fixture_loader: %s missing for world %s, using placeholder", e.path, world.id)
            return placeholder_content(kind, relative_path), True

    # AI fixture tree -------------------------------------------------------

    def read_json(self, relative_path: str) -> dict[str, Any] | None:
        """Parsed JSON below the root, or None when the file does not exist."""
        path = self.path_for(".", relative_path)
        try:
            text = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        return json.loads(text)

    def write_json(self, relative_path: str, data: dict[str, Any]) -> Path:
        """Write JSON below the root, creating directories. Returns the path written."""
        path = self.path_for(".", relative_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp = path.with_suffix(path.suffix + ".tmp")
        tmp.write_text(json.dumps(data, indent=2, ensure_ascii=False) + "\n", encoding="utf-8")
        tmp.replace(path)
        return path
