"""Request/response models for the dev world routes."""

from __future__ import annotations

from pydantic import BaseModel

from testworlds.models.context import WorldContext
from testworlds.models.world import WorldDefinition


class WorldSummary(BaseModel):
    id: str
    name: str
    description: str
    users_count: int
    artifacts_count: int
    chats_count: int
    dependencies: list[str]

    @classmethod
    def from_model(cls, world: WorldDefinition) -> WorldSummary:
        return cls(
            id=world.id,
            name=world.name,
            description=world.description,
            users_count=len(world.users),
            artifacts_count=len(world.artifacts),
            chats_count=len(world.chats),
            dependencies=list(world.dependencies),
        )


class ActivateWorldRequest(BaseModel):
    # Reseed the world's rows before activating it
    seed: bool = False


class ActivateWorldResponse(BaseModel):
    world: WorldSummary
    context: WorldContext
    seeded: dict[str, int] | None = None
    placeholders: list[str] = []


class ClearWorldResponse(BaseModel):
    success: bool = True
