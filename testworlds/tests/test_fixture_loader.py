"""Tests for FixtureLoader and placeholder content."""

from __future__ import annotations

import csv
import io
import json

import pytest

from testworlds.catalog import WORLDS
from testworlds.errors import FixtureMissingError
from testworlds.services.fixture_loader import PLACEHOLDER_MARKER, FixtureLoader, placeholder_content

pytestmark = pytest.mark.asyncio(loop_scope="session")


async def test_load_text_reads_world_directory(loader):
    text = await loader.load_text(WORLDS["CLEAN_USER_WORKSPACE"], "hr-contacts.csv")
    assert text.startswith("name,role,email")


async def test_load_missing_raises(tmp_path):
    loader = FixtureLoader(tmp_path)
    with pytest.raises(FixtureMissingError) as exc:
        await loader.load("base", "nope.md")
    assert exc.value.path == (tmp_path / "base" / "nope.md").resolve()


async def test_path_escape_is_rejected(tmp_path):
    loader = FixtureLoader(tmp_path)
    with pytest.raises(ValueError, match="escapes"):
        loader.path_for("base", "../../etc/passwd")


async def test_load_or_placeholder_substitutes_missing(tmp_path):
    loader = FixtureLoader(tmp_path)
    world = WORLDS["SITE_READY_FOR_PUBLICATION"]

    text, substituted = await loader.load_or_placeholder(world, "developer-site-complete.json", "site")

    assert substituted is True
    data = json.loads(text)
    assert data["blocks"] == []
    assert PLACEHOLDER_MARKER in data["metadata"]["title"]


async def test_load_or_placeholder_prefers_real_file(loader):
    world = WORLDS["CONTENT_LIBRARY_BASE"]
    text, substituted = await loader.load_or_placeholder(world, "useful-links-comprehensive.md", "text")
    assert substituted is False
    assert "Useful links" in text


async def test_placeholders_are_deterministic_and_parse_per_kind():
    assert placeholder_content("text", "a.md") == placeholder_content("text", "a.md")
    assert placeholder_content("text", "a.md") != placeholder_content("text", "b.md")

    rows = list(csv.reader(io.StringIO(placeholder_content("sheet", "c.csv"))))
    assert len(rows) >= 2
    assert json.loads(placeholder_content("messages", "chat.json")) == {"messages": []}
    assert placeholder_content("image", "x.png").startswith("https://")


async def test_json_round_trip_creates_directories(tmp_path):
    loader = FixtureLoader(tmp_path)
    path = loader.write_json("UC-01/ai-abc.json", {"id": "ai-abc", "n": 1})

    assert path == tmp_path.resolve() / "UC-01" / "ai-abc.json"
    assert loader.read_json("UC-01/ai-abc.json") == {"id": "ai-abc", "n": 1}
    assert loader.read_json("UC-01/missing.json") is None
    assert not list(tmp_path.rglob("*.tmp"))
