"""Request-scoped world context models."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, model_validator

WORLD_COLUMN = "world_id"


class WorldContext(BaseModel):
    """
    Which world a request is allowed to see.

    world_id None means production. is_test_mode and isolation_prefix are
    derived from world_id, so a context can never claim a world it does not
    test in. Derived once per request and never changed afterwards.
    """

    model_config = ConfigDict(frozen=True)

    world_id: str | None = None
    is_test_mode: bool = False
    isolation_prefix: str | None = None

    @model_validator(mode="before")
    @classmethod
    def _derive_from_world_id(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        world_id = data.get("world_id") or None
        return {
            **data,
            "world_id": world_id,
            "is_test_mode": world_id is not None,
            "isolation_prefix": f"test-{world_id}" if world_id else None,
        }

    @classmethod
    def production(cls) -> WorldContext:
        return cls()

    @classmethod
    def for_world(cls, world_id: str | None) -> WorldContext:
        """Build the context for a world id. None or empty gives production."""
        return cls(world_id=world_id)


class WorldFilter(BaseModel):
    """Equality predicate on the world tag column."""

    model_config = ConfigDict(frozen=True)

    column: str = WORLD_COLUMN
    value: str | None = None

    def matches(self, row: dict[str, Any]) -> bool:
        return row.get(self.column) == self.value
