"""AI fixture models. The JSON on disk uses the camelCase aliases."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class FixtureContext(_CamelModel):
    """Scope a wrapped model records under. Part of the fixture id."""

    use_case_id: str | None = Field(default=None, alias="useCaseId")
    world_id: str | None = Field(default=None, alias="worldId")
    fixture_prefix: str | None = Field(default=None, alias="fixturePrefix")

    def key(self) -> dict[str, str | None]:
        """Serializable form hashed into the fixture id. Always all three keys."""
        return {
            "useCaseId": self.use_case_id,
            "worldId": self.world_id,
            "fixturePrefix": self.fixture_prefix,
        }


class FixtureInput(_CamelModel):
    prompt: str
    model: str
    settings: dict[str, Any] | None = None
    context: dict[str, Any] | None = None


class FixtureOutput(_CamelModel):
    content: str
    usage: dict[str, int] | None = None
    finish_reason: str | None = Field(default=None, alias="finishReason")
    timestamp: str
    duration: int


class FixtureMetadata(_CamelModel):
    created_at: str = Field(alias="createdAt")
    hash: str
    tags: list[str] | None = None


class AIFixture(_CamelModel):
    """One recorded model interaction."""

    id: str
    name: str
    use_case_id: str | None = Field(default=None, alias="useCaseId")
    world_id: str | None = Field(default=None, alias="worldId")
    input: FixtureInput
    output: FixtureOutput
    metadata: FixtureMetadata

    def to_json_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
