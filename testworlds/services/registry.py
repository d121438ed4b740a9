"""World registry: lookup and structural validation. Pure, no I/O."""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable, Mapping

from testworlds.errors import StructuralError, UnknownWorldError
from testworlds.models.world import WorldDefinition


class WorldRegistry:
    """Catalog of world definitions keyed by id."""

    def __init__(self, worlds: Mapping[str, WorldDefinition] | Iterable[WorldDefinition]):
        if isinstance(worlds, Mapping):
            self._worlds = dict(worlds)
        else:
            self._worlds = {w.id: w for w in worlds}

    @classmethod
    def default(cls) -> WorldRegistry:
        """Registry over the compiled-in catalog."""
        from testworlds.catalog import WORLDS

        return cls(WORLDS)

    def get(self, world_id: str) -> WorldDefinition:
        try:
            return self._worlds[world_id]
        except KeyError:
            raise UnknownWorldError(world_id) from None

    def __contains__(self, world_id: object) -> bool:
        return world_id in self._worlds

    def ids(self) -> list[str]:
        return list(self._worlds)

    def all(self) -> list[WorldDefinition]:
        return list(self._worlds.values())

    def dependencies(self, world_id: str) -> list[WorldDefinition]:
        """Definitions this world depends on. Raises UnknownWorldError for a dangling one."""
        return [self.get(dep) for dep in self.get(world_id).dependencies]

    @staticmethod
    def structural_issues(world: WorldDefinition) -> list[tuple[str | None, str]]:
        """
        Every structural problem of a definition.

        Returns:
            (entity test id or None, message) pairs, in declaration order
        """
        issues: list[tuple[str | None, str]] = []
        if not world.users:
            issues.append((None, f"World {world.id} must have at least one user"))

        counts = Counter(u.test_id for u in world.users)
        for test_id, n in counts.items():
            if n > 1:
                issues.append((test_id, f"World {world.id} declares user {test_id} {n} times"))

        user_ids = set(counts)
        for artifact in world.artifacts:
            if artifact.owner_id not in user_ids:
                issues.append(
                    (
                        artifact.test_id,
                        f"Artifact {artifact.test_id} owner {artifact.owner_id} not found in world users",
                    )
                )
        for chat in world.chats:
            if chat.owner_id not in user_ids:
                issues.append((chat.test_id, f"Chat {chat.test_id} owner {chat.owner_id} not found in world users"))
        return issues

    def validate(self, world_id: str) -> WorldDefinition:
        """
        Check a world's structure. Must pass before the world is seeded.

        Returns:
            The definition, for chaining

        Raises:
            UnknownWorldError: If the id is not registered
            StructuralError: If the definition has no users, duplicate user
                ids, or an owner that is not a declared user
        """
        return self.validate_definition(self.get(world_id))

    def validate_definition(self, world: WorldDefinition) -> WorldDefinition:
        issues = self.structural_issues(world)
        if issues:
            entity_ids = {entity for entity, _ in issues}
            entity_id = entity_ids.pop() if len(entity_ids) == 1 else None
            raise StructuralError(world.id, [message for _, message in issues], entity_id=entity_id)
        return world
