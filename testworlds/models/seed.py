"""Seed and cleanup result models."""

from __future__ import annotations

from pydantic import BaseModel, Field

SEED_PHASES = ("users", "artifacts", "chats", "messages")


class PhaseStats(BaseModel):
    """Row count and wall time of one bulk-write phase."""

    count: int = 0
    elapsed_ms: int = 0


class SeedOperations(BaseModel):
    users: PhaseStats = Field(default_factory=PhaseStats)
    artifacts: PhaseStats = Field(default_factory=PhaseStats)
    chats: PhaseStats = Field(default_factory=PhaseStats)
    messages: PhaseStats = Field(default_factory=PhaseStats)


class CreatedEntities(BaseModel):
    users: list[str] = Field(default_factory=list)
    artifacts: list[str] = Field(default_factory=list)
    chats: list[str] = Field(default_factory=list)
    messages: list[str] = Field(default_factory=list)


class SeedResult(BaseModel):
    """
    Outcome of seeding one world.

    world_id is the tag written on every row; source_world_id is the catalog
    definition that was materialized (they differ for allocated worlds).
    """

    world_id: str
    source_world_id: str
    total_ms: int = 0
    operations: SeedOperations = Field(default_factory=SeedOperations)
    created: CreatedEntities = Field(default_factory=CreatedEntities)
    # Content paths replaced with synthetic placeholder content
    placeholders: list[str] = Field(default_factory=list)

    def counts(self) -> dict[str, int]:
        return {phase: getattr(self.operations, phase).count for phase in SEED_PHASES}


class CleanupResult(BaseModel):
    """Rows deleted per table when a world was cleaned up."""

    world_id: str
    deleted: dict[str, int] = Field(default_factory=dict)

    @property
    def total(self) -> int:
        return sum(self.deleted.values())
