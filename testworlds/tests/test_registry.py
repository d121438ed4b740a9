"""Tests for WorldRegistry lookup and structural validation."""

from __future__ import annotations

import pytest

from testworlds.catalog import WORLDS
from testworlds.errors import StructuralError, UnknownWorldError
from testworlds.models.world import WorldArtifact, WorldChat, WorldDefinition, WorldUser
from testworlds.services.registry import WorldRegistry


def _world(**overrides) -> WorldDefinition:
    fields = {
        "id": "TINY",
        "name": "Tiny",
        "users": [WorldUser(test_id="user-a", name="A", email="a@example.com")],
        "artifacts": [WorldArtifact(test_id="art-1", title="Doc", kind="text", owner_id="user-a")],
    }
    fields.update(overrides)
    return WorldDefinition(**fields)


def test_default_registry_has_catalog():
    registry = WorldRegistry.default()
    assert set(registry.ids()) == {
        "CLEAN_USER_WORKSPACE",
        "SITE_READY_FOR_PUBLICATION",
        "CONTENT_LIBRARY_BASE",
        "DEMO_PREPARATION",
        "ENTERPRISE_ONBOARDING",
    }
    assert "DEMO_PREPARATION" in registry


@pytest.mark.parametrize("world_id", sorted(WORLDS))
def test_catalog_worlds_are_structurally_valid(world_id):
    registry = WorldRegistry.default()
    assert registry.validate(world_id).id == world_id


def test_get_unknown_world_raises():
    registry = WorldRegistry.default()
    with pytest.raises(UnknownWorldError) as exc:
        registry.get("NOPE")
    assert exc.value.world_id == "NOPE"
    assert "NOPE" in str(exc.value)


def test_unknown_world_is_a_key_error():
    registry = WorldRegistry([])
    with pytest.raises(KeyError):
        registry.get("NOPE")


def test_world_directory_mapping():
    assert WORLDS["CLEAN_USER_WORKSPACE"].directory == "base"
    assert WORLDS["ENTERPRISE_ONBOARDING"].directory == "enterprise"
    assert _world().directory == "tiny"


def test_dangling_artifact_owner_is_rejected():
    """An artifact owned by an undeclared user fails and names the artifact."""
    world = _world(
        artifacts=[WorldArtifact(test_id="art-orphan", title="Orphan", kind="text", owner_id="user-ghost")],
    )
    registry = WorldRegistry([world])

    with pytest.raises(StructuralError) as exc:
        registry.validate("TINY")

    assert exc.value.entity_id == "art-orphan"
    assert exc.value.issues == ["Artifact art-orphan owner user-ghost not found in world users"]


def test_dangling_chat_owner_is_rejected():
    world = _world(chats=[WorldChat(test_id="chat-1", title="Chat", owner_id="user-ghost")])
    with pytest.raises(StructuralError) as exc:
        WorldRegistry([world]).validate("TINY")
    assert exc.value.entity_id == "chat-1"


def test_world_without_users_is_rejected():
    world = _world(users=[], artifacts=[])
    with pytest.raises(StructuralError, match="at least one user"):
        WorldRegistry([world]).validate("TINY")


def test_duplicate_user_ids_are_rejected():
    user = WorldUser(test_id="user-a", name="A", email="a@example.com")
    world = _world(users=[user, user])
    issues = WorldRegistry.structural_issues(world)
    assert issues == [("user-a", "World TINY declares user user-a 2 times")]


def test_structural_issues_reports_every_problem():
    world = _world(
        artifacts=[
            WorldArtifact(test_id="art-1", title="A", kind="text", owner_id="ghost-1"),
            WorldArtifact(test_id="art-2", title="B", kind="text", owner_id="ghost-2"),
        ],
    )
    issues = WorldRegistry.structural_issues(world)
    assert [entity for entity, _ in issues] == ["art-1", "art-2"]

    with pytest.raises(StructuralError) as exc:
        WorldRegistry([world]).validate("TINY")
    # More than one entity implicated
    assert exc.value.entity_id is None
    assert len(exc.value.issues) == 2


def test_dependencies_resolve_to_definitions():
    registry = WorldRegistry.default()
    deps = registry.dependencies("ENTERPRISE_ONBOARDING")
    assert [d.id for d in deps] == ["CLEAN_USER_WORKSPACE"]


def test_dangling_dependency_raises_on_lookup():
    registry = WorldRegistry([_world(dependencies=("MISSING",))])
    with pytest.raises(UnknownWorldError):
        registry.dependencies("TINY")
