"""Tests for AI fixture id hashing."""

from __future__ import annotations

from testworlds.utils.fixture_hash import fixture_hash, fixture_id, input_hash, normalize_prompt, serialize_context

CONTEXT = {"useCaseId": "UC-01", "worldId": None, "fixturePrefix": None}


def test_hash_is_sixteen_hex_chars():
    value = fixture_hash("Create onboarding site", "claude-sonnet-4-20250514", CONTEXT)
    assert len(value) == 16
    int(value, 16)


def test_hash_is_stable():
    a = fixture_hash("Create onboarding site", "m", CONTEXT)
    b = fixture_hash("Create onboarding site", "m", dict(reversed(list(CONTEXT.items()))))
    assert a == b


def test_whitespace_noise_does_not_change_hash():
    clean = fixture_hash("Line one\n\nLine two", "m", CONTEXT)
    noisy = fixture_hash("Line one   \r\n\r\n\r\n\r\nLine two  \n", "m", CONTEXT)
    assert clean == noisy


def test_each_input_changes_hash():
    base = fixture_hash("p", "m", CONTEXT)
    assert fixture_hash("q", "m", CONTEXT) != base
    assert fixture_hash("p", "other", CONTEXT) != base
    assert fixture_hash("p", "m", {**CONTEXT, "worldId": "W"}) != base


def test_normalize_prompt():
    assert normalize_prompt("a \r\nb\t\n\n\n\nc\n") == "a\nb\n\nc"


def test_serialize_context_is_compact_and_sorted():
    assert serialize_context({"b": 1, "a": None}) == '{"a":null,"b":1}'


def test_fixture_id_prefix():
    assert fixture_id("p", "m", CONTEXT).startswith("UC-01-")
    assert fixture_id("p", "m", {**CONTEXT, "fixturePrefix": "site"}).startswith("site-")
    assert fixture_id("p", "m", {"useCaseId": None, "worldId": None, "fixturePrefix": None}).startswith("ai-")


def test_input_hash_ignores_key_order():
    assert input_hash({"a": 1, "b": 2}) == input_hash({"b": 2, "a": 1})
