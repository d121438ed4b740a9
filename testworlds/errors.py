"""
Exceptions raised by testworlds.

Configuration and structural errors are fatal and must stop a test run.
Per-fixture problems found by the validator are collected, not raised.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from testworlds.models.seed import SeedResult


class WorldsError(Exception):
    """Base class for every testworlds error."""


class UnknownWorldError(WorldsError, KeyError):
    """World id is not in the registry."""

    def __init__(self, world_id: str):
        self.world_id = world_id
        super().__init__(f"World not found: {world_id}")

    def __str__(self) -> str:
        return f"World not found: {self.world_id}"


class StructuralError(WorldsError):
    """
    A world definition is invalid (no users, duplicate user ids, dangling owner).

    Attributes:
        world_id: World the problem was found in
        issues: Every problem found, one message each
        entity_id: test id of the offending artifact/chat/user, if a single one
    """

    def __init__(self, world_id: str, issues: list[str], entity_id: str | None = None):
        self.world_id = world_id
        self.issues = list(issues)
        self.entity_id = entity_id
        super().__init__(f"World {world_id} is invalid: " + "; ".join(self.issues))


class FixtureMissingError(WorldsError):
    """A referenced fixture file could not be read."""

    def __init__(self, path: Path | str, reason: str = "file not found"):
        self.path = Path(path)
        self.reason = reason
        super().__init__(f"Fixture missing: {self.path} ({reason})")


class FixtureFormatError(WorldsError):
    """A fixture file loads but fails its type-specific structural checks."""

    def __init__(self, path: Path | str, problems: list[str]):
        self.path = Path(path)
        self.problems = list(problems)
        super().__init__(f"Fixture {self.path} is malformed: " + "; ".join(self.problems))


class SeedError(WorldsError):
    """
    A bulk write failed while seeding a world.

    The world is partially seeded and must not be used. `partial` holds the
    phases that did commit so the caller can clean up.
    """

    def __init__(self, world_id: str, phase: str, partial: SeedResult):
        self.world_id = world_id
        self.phase = phase
        self.partial = partial
        super().__init__(f"Seeding world {world_id} failed during the {phase} phase")


class AllocationConflictError(WorldsError):
    """Two workers own one world, or one worker owns two. Always a bug."""


class ReplayMissError(WorldsError):
    """Replay mode was asked for a fixture that was never recorded."""

    def __init__(self, fixture_id: str, path: Path | str):
        self.fixture_id = fixture_id
        self.path = Path(path)
        super().__init__(
            f"AI fixture not found: {fixture_id} (expected at {self.path}). "
            "Record this fixture first (AI_FIXTURES_MODE=record)."
        )


class RecordTimeoutError(WorldsError):
    """The live model exceeded the record deadline."""

    def __init__(self, fixture_id: str, timeout_s: float):
        self.fixture_id = fixture_id
        self.timeout_s = timeout_s
        super().__init__(f"Recording {fixture_id} exceeded {timeout_s:g}s deadline")


class IsolationViolation(WorldsError):
    """A query touched rows outside the caller's world. A missing-filter defect."""
