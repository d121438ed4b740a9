"""World definition models. Static catalog entries, never mutated."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

UserRole = Literal["hr-manager", "admin", "viewer"]
ArtifactKind = Literal["text", "code", "sheet", "image", "site"]


class WorldUser(BaseModel):
    """A user seeded into a world. test_id is unique within the world."""

    model_config = ConfigDict(frozen=True)

    test_id: str
    name: str
    email: str
    role: UserRole = "hr-manager"


class WorldArtifact(BaseModel):
    """An artifact seeded into a world. owner_id references WorldUser.test_id."""

    model_config = ConfigDict(frozen=True)

    test_id: str
    title: str
    kind: ArtifactKind
    owner_id: str
    content_path: str | None = None
    is_published: bool = False
    published_until: str | None = None
    tags: tuple[str, ...] = ()


class WorldChat(BaseModel):
    """A chat seeded into a world, optionally with a message history fixture."""

    model_config = ConfigDict(frozen=True)

    test_id: str
    title: str
    owner_id: str
    messages_path: str | None = None
    is_published: bool = False
    published_until: str | None = None


class WorldFeatures(BaseModel):
    model_config = ConfigDict(frozen=True)

    enable_ai_fixtures: bool = False
    enable_publication: bool = False
    enable_clipboard: bool = False


class WorldSettings(BaseModel):
    model_config = ConfigDict(frozen=True)

    auto_cleanup: bool = True
    include_site_blocks: bool = False
    ttl_minutes: int | None = None
    features: WorldFeatures = Field(default_factory=WorldFeatures)


class WorldDefinition(BaseModel):
    """
    A named, isolated set of seed data.

    Structure is checked by WorldRegistry.validate(), not on construction, so
    that an invalid definition can still be loaded and reported.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    description: str = ""
    users: tuple[WorldUser, ...] = ()
    artifacts: tuple[WorldArtifact, ...] = ()
    chats: tuple[WorldChat, ...] = ()
    dependencies: tuple[str, ...] = ()
    settings: WorldSettings = Field(default_factory=WorldSettings)
    fixture_dir: str | None = None

    @property
    def directory(self) -> str:
        """Directory under the world fixtures root holding this world's files."""
        return self.fixture_dir or self.id.lower().replace("_", "-")

    def user_index(self, test_id: str) -> int:
        """Ordinal of a user within the world. Raises ValueError when absent."""
        for index, user in enumerate(self.users):
            if user.test_id == test_id:
                return index
        raise ValueError(f"User {test_id} not declared in world {self.id}")

    def has_role(self, role: UserRole) -> bool:
        return any(user.role == role for user in self.users)

    def fixture_paths(self) -> list[str]:
        """Every fixture file this world references, artifacts first."""
        paths = [a.content_path for a in self.artifacts if a.content_path]
        paths.extend(c.messages_path for c in self.chats if c.messages_path)
        return paths
