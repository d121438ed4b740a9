"""
Tests for the offline world validator.
"""

from __future__ import annotations

import json

import pytest

from testworlds.errors import UnknownWorldError
from testworlds.models.world import WorldArtifact, WorldChat, WorldDefinition, WorldUser
from testworlds.services.fixture_loader import FixtureLoader
from testworlds.services.registry import WorldRegistry
from testworlds.services.validator import WorldValidator, content_problems, detect_content_type

pytestmark = pytest.mark.asyncio(loop_scope="session")

USER = WorldUser(test_id="user-a", name="A", email="a@example.com")


def _world(world_id: str = "TINY", artifacts=(), chats=(), dependencies=()) -> WorldDefinition:
    return WorldDefinition(
        id=world_id,
        name=world_id.title(),
        fixture_dir="tiny",
        users=[USER],
        artifacts=list(artifacts),
        chats=list(chats),
        dependencies=tuple(dependencies),
    )


def _artifact(test_id: str, path: str, kind: str = "text") -> WorldArtifact:
    return WorldArtifact(test_id=test_id, title=test_id, kind=kind, owner_id="user-a", content_path=path)


@pytest.fixture
def tiny_dir(tmp_path):
    (tmp_path / "tiny").mkdir()
    return tmp_path


def _validator(root, *worlds, **kwargs) -> WorldValidator:
    return WorldValidator(WorldRegistry(worlds), FixtureLoader(root), **kwargs)


class TestCatalog:
    """The shipped catalog validates cleanly."""

    async def test_all_catalog_worlds_valid(self, loader):
        report = await WorldValidator(loader=loader).validate_all()

        assert report.total_worlds == 5
        assert report.valid_worlds == 5
        assert report.total_errors == 0
        assert report.ok
        assert all(check.is_valid for r in report.results for check in r.fixtures)

    async def test_unknown_world(self, loader):
        with pytest.raises(UnknownWorldError):
            await WorldValidator(loader=loader).validate_world("NOPE")


class TestFixtureErrors:
    """Missing and malformed fixtures become errors, not exceptions."""

    async def test_missing_fixture(self, tiny_dir):
        result = await _validator(tiny_dir, _world(artifacts=[_artifact("art-1", "nope.md")])).validate_world("TINY")

        assert not result.is_valid
        assert [e.kind for e in result.errors] == ["missing_fixture"]
        assert result.errors[0].message == "Fixture nope.md not found for art-1"
        assert result.errors[0].entity_id == "art-1"

    async def test_site_without_blocks(self, tiny_dir):
        (tiny_dir / "tiny" / "site.json").write_text(json.dumps({"metadata": {"title": "x"}}))
        world = _world(artifacts=[_artifact("site-1", "site.json", kind="site")])

        result = await _validator(tiny_dir, world).validate_world("TINY")

        assert [e.kind for e in result.errors] == ["invalid_fixture"]
        assert "Site JSON missing blocks array" in result.errors[0].details

    async def test_invalid_chat(self, tiny_dir):
        (tiny_dir / "tiny" / "chat.json").write_text(json.dumps({"messages": [{"content": "no role"}]}))
        world = _world(chats=[WorldChat(test_id="chat-1", title="c", owner_id="user-a", messages_path="chat.json")])

        result = await _validator(tiny_dir, world).validate_world("TINY")

        assert result.errors[0].kind == "invalid_fixture"
        assert result.errors[0].entity_id == "chat-1"

    async def test_chat_with_non_object_message(self, tiny_dir):
        (tiny_dir / "tiny" / "chat.json").write_text(json.dumps({"messages": ["hello"]}))
        world = _world(chats=[WorldChat(test_id="chat-1", title="c", owner_id="user-a", messages_path="chat.json")])

        result = await _validator(tiny_dir, world).validate_world("TINY")

        assert [e.kind for e in result.errors] == ["invalid_fixture"]
        assert result.errors[0].entity_id == "chat-1"
        assert "message must be an object" in result.errors[0].message

    async def test_path_outside_root_does_not_mask_other_errors(self, tiny_dir):
        orphan = WorldArtifact(test_id="art-x", title="x", kind="text", owner_id="ghost")
        world = _world(artifacts=[_artifact("art-1", "../../outside.md"), orphan])

        result = await _validator(tiny_dir, world).validate_world("TINY")

        kinds = {e.entity_id: e.kind for e in result.errors}
        assert kinds == {"art-x": "structural", "art-1": "invalid_fixture"}
        assert "Path escapes fixture root" in result.errors[-1].details

    async def test_every_problem_is_collected(self, tiny_dir):
        (tiny_dir / "tiny" / "empty.md").write_text("")
        (tiny_dir / "tiny" / "one-row.csv").write_text("name,email\n")
        world = _world(
            artifacts=[
                _artifact("art-1", "empty.md"),
                _artifact("art-2", "one-row.csv", kind="sheet"),
                _artifact("art-3", "missing.md"),
            ]
        )

        result = await _validator(tiny_dir, world).validate_world("TINY")

        assert [e.entity_id for e in result.errors] == ["art-1", "art-2", "art-3"]
        assert len(result.fixtures) == 3


class TestWarnings:
    """Warnings never invalidate a world."""

    async def test_large_fixture(self, tiny_dir):
        (tiny_dir / "tiny" / "big.md").write_text("x" * 4096)
        world = _world(artifacts=[_artifact("art-1", "big.md")])

        result = await _validator(tiny_dir, world, large_fixture_bytes=1024).validate_world("TINY")

        assert result.is_valid
        assert [w.kind for w in result.warnings] == ["large_fixture"]
        assert "4KB" in result.warnings[0].message

    async def test_zero_thresholds_are_honoured(self, tiny_dir):
        (tiny_dir / "tiny" / "doc.md").write_text("Enough text to pass.")
        world = _world(artifacts=[_artifact("art-1", "doc.md")])

        validator = _validator(tiny_dir, world, large_fixture_bytes=0, max_fixtures_per_world=0)
        result = await validator.validate_world("TINY")

        assert validator.large_fixture_bytes == 0
        assert [w.kind for w in result.warnings] == ["large_fixture", "performance_concern"]

    async def test_too_many_fixtures(self, tiny_dir):
        artifacts = []
        for n in range(3):
            (tiny_dir / "tiny" / f"doc{n}.md").write_text("Enough text to pass.")
            artifacts.append(_artifact(f"art-{n}", f"doc{n}.md"))

        result = await _validator(tiny_dir, _world(artifacts=artifacts), max_fixtures_per_world=2).validate_world(
            "TINY"
        )

        assert result.is_valid
        assert [w.kind for w in result.warnings] == ["performance_concern"]


class TestStructure:
    """Structural and dependency problems."""

    async def test_dangling_owner(self, tiny_dir):
        (tiny_dir / "tiny" / "doc.md").write_text("Enough text to pass.")
        orphan = WorldArtifact(test_id="art-x", title="x", kind="text", owner_id="ghost", content_path="doc.md")

        result = await _validator(tiny_dir, _world(artifacts=[orphan])).validate_world("TINY")

        assert [e.kind for e in result.errors] == ["structural"]
        assert result.errors[0].entity_id == "art-x"

    async def test_missing_dependency(self, tiny_dir):
        result = await _validator(tiny_dir, _world(dependencies=["GONE"])).validate_world("TINY")
        assert [e.kind for e in result.errors] == ["missing_dependency"]

    async def test_dependency_cycle(self, tiny_dir):
        a = _world("ALPHA", dependencies=["BETA"])
        b = _world("BETA", dependencies=["ALPHA"])

        result = await _validator(tiny_dir, a, b).validate_world("ALPHA")

        assert [e.kind for e in result.errors] == ["dependency_cycle"]
        assert result.errors[0].message == "Dependency cycle: ALPHA -> BETA -> ALPHA"


class TestReport:
    """validate_all and render_report."""

    async def test_crash_is_recorded_not_raised(self, tiny_dir):
        class BrokenLoader(FixtureLoader):
            async def load(self, world, relative_path):
                raise RuntimeError("disk on fire")

        crashing = _world("CRASH", artifacts=[_artifact("art-1", "doc.md")])
        fine = _world("FINE")
        validator = WorldValidator(WorldRegistry([crashing, fine]), BrokenLoader(tiny_dir))

        report = await validator.validate_all()

        by_id = {r.world_id: r for r in report.results}
        assert by_id["FINE"].is_valid
        assert not by_id["CRASH"].is_valid
        assert by_id["CRASH"].errors[0].message == "Validation failed: disk on fire"
        assert report.invalid_worlds == 1

    async def test_render_report(self, tiny_dir):
        world = _world(artifacts=[_artifact("art-1", "nope.md")])
        report = await _validator(tiny_dir, world).validate_all()

        text = WorldValidator.render_report(report)

        assert text.startswith("WORLD VALIDATION REPORT")
        assert "Summary: 0/1 worlds valid" in text
        assert "Status: INVALID" in text
        assert "[missing_fixture] Fixture nope.md not found for art-1" in text


class TestContentChecks:
    """Content-type detection and per-type problems."""

    async def test_detect_content_type(self):
        assert detect_content_type("a.json", "") == "json"
        assert detect_content_type("a.CSV", "") == "csv"
        assert detect_content_type("a.md", "{") == "text"
        assert detect_content_type("a", '{"x": 1}') == "json"
        assert detect_content_type("a", "a,b\n1,2") == "csv"
        assert detect_content_type("a", "plain words") == "text"

    async def test_content_problems(self):
        assert content_problems("   ", "text", "text") == ["Empty file"]
        assert content_problems("{bad", "json", "site")[0].startswith("Invalid JSON")
        assert content_problems("short", "text", "text") == ["Text content seems too short"]
        assert content_problems('{"blocks": [], "metadata": {}}', "json", "site") == []
        assert content_problems("a,b\n1,2\n", "csv", "sheet") == []
