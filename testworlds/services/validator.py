"""
World validator: offline consistency check of the catalog and its fixtures.

Runs the same structural checks as seeding, then loads every referenced
fixture and checks it for its kind. Problems are collected into a report;
nothing here raises for a bad fixture. Warnings never fail a world.
"""

from __future__ import annotations

import asyncio
import json
import logging
import time
from datetime import UTC, datetime
from typing import Any

from testworlds.config import settings
from testworlds.errors import FixtureMissingError
from testworlds.models.validation import ContentType, FixtureCheck, ValidationReport, WorldValidationResult
from testworlds.models.world import WorldDefinition
from testworlds.services.fixture_loader import FixtureLoader
from testworlds.services.message_transform import MessageShapeError, convert_history
from testworlds.services.registry import WorldRegistry

logger = logging.getLogger(__name__)

MIN_TEXT_LENGTH = 10
ESCAPES_ROOT = "Path escapes fixture root"


def detect_content_type(path: str, content: str) -> ContentType:
    """Classify by extension, then by content."""
    lowered = path.lower()
    if lowered.endswith(".json"):
        return "json"
    if lowered.endswith(".csv"):
        return "csv"
    if lowered.endswith((".md", ".txt")):
        return "text"

    trimmed = content.strip()
    if trimmed.startswith(("{", "[")):
        return "json"
    if "," in trimmed and len(trimmed.splitlines()) > 1:
        return "csv"
    return "text"


def _json_problems(data: Any, expected_kind: str) -> list[str]:
    problems = []
    if expected_kind == "site":
        if not isinstance(data, dict) or not isinstance(data.get("blocks"), list):
            problems.append("Site JSON missing blocks array")
        if not isinstance(data, dict) or not isinstance(data.get("metadata"), dict):
            problems.append("Site JSON missing metadata")
    elif expected_kind == "messages":
        try:
            convert_history(data)
        except MessageShapeError as e:
            problems.append(f"Chat JSON invalid: {e}")
    return problems


def content_problems(content: str, content_type: ContentType, expected_kind: str) -> list[str]:
    """Structural problems of fixture content for the kind that references it."""
    if not content.strip():
        return ["Empty file"]

    if content_type == "json":
        try:
            data = json.loads(content)
        except json.JSONDecodeError as e:
            return [f"Invalid JSON: {e}"]
        return _json_problems(data, expected_kind)
    if content_type == "csv":
        lines = [line for line in content.strip().splitlines() if line.strip()]
        if len(lines) < 2:
            return ["CSV file should have header and at least one data row"]
        return []
    if content_type == "text" and len(content.strip()) < MIN_TEXT_LENGTH:
        return ["Text content seems too short"]
    return []


def _dependency_cycle(registry: WorldRegistry, world_id: str) -> list[str] | None:
    """First dependency cycle reachable from world_id, as a path, or None."""
    path: list[str] = []
    done: set[str] = set()

    def visit(current: str) -> list[str] | None:
        if current in path:
            return path[path.index(current) :] + [current]
        if current in done or current not in registry:
            return None
        path.append(current)
        for dep in registry.get(current).dependencies:
            cycle = visit(dep)
            if cycle:
                return cycle
        path.pop()
        done.add(current)
        return None

    return visit(world_id)


class WorldValidator:
    """Validates worlds in a registry against the fixtures on disk."""

    def __init__(
        self,
        registry: WorldRegistry | None = None,
        loader: FixtureLoader | None = None,
        large_fixture_bytes: int | None = None,
        max_fixtures_per_world: int | None = None,
    ):
        self.registry = registry or WorldRegistry.default()
        self.loader = loader or FixtureLoader(settings.WORLD_FIXTURES_DIR)
        self.large_fixture_bytes = (
            large_fixture_bytes if large_fixture_bytes is not None else settings.LARGE_FIXTURE_BYTES
        )
        self.max_fixtures_per_world = (
            max_fixtures_per_world if max_fixtures_per_world is not None else settings.MAX_FIXTURES_PER_WORLD
        )

    async def check_fixture(self, world: WorldDefinition, relative_path: str, expected_kind: str) -> FixtureCheck:
        try:
            path = self.loader.path_for(world, relative_path)
        except ValueError:
            return FixtureCheck(path=relative_path, errors=[ESCAPES_ROOT])
        check = FixtureCheck(path=str(path))
        try:
            raw = await self.loader.load(world, relative_path)
        except FixtureMissingError as e:
            check.errors.append(f"File not accessible: {e.reason}")
            return check

        check.exists = True
        check.size = len(raw)
        try:
            content = raw.decode("utf-8")
        except UnicodeDecodeError:
            check.errors.append("File is not UTF-8 text")
            return check

        check.content_type = detect_content_type(relative_path, content)
        check.errors.extend(content_problems(content, check.content_type, expected_kind))
        check.is_valid = not check.errors
        return check

    async def validate_world(self, world_id: str) -> WorldValidationResult:
        """
        Validate one world.

        Raises:
            UnknownWorldError: If world_id is not registered
        """
        start = time.monotonic()
        world = self.registry.get(world_id)
        result = WorldValidationResult(world_id=world_id)

        for entity_id, message in self.registry.structural_issues(world):
            result.add_error("structural", message, entity_id=entity_id)

        for dep in world.dependencies:
            if dep not in self.registry:
                result.add_error("missing_dependency", f"Dependency {dep} not found in registry", entity_id=dep)
        cycle = _dependency_cycle(self.registry, world_id)
        if cycle:
            result.add_error("dependency_cycle", "Dependency cycle: " + " -> ".join(cycle))

        references: list[tuple[str, str, str]] = [
            (a.test_id, a.content_path, a.kind) for a in world.artifacts if a.content_path
        ]
        references.extend((c.test_id, c.messages_path, "messages") for c in world.chats if c.messages_path)
        checks = await asyncio.gather(*(self.check_fixture(world, path, kind) for _, path, kind in references))

        for (entity_id, relative_path, _), check in zip(references, checks, strict=True):
            result.fixtures.append(check)
            if not check.exists and ESCAPES_ROOT not in check.errors:
                result.add_error(
                    "missing_fixture",
                    f"Fixture {relative_path} not found for {entity_id}",
                    entity_id=entity_id,
                    details=check.errors,
                )
            elif not check.is_valid:
                result.add_error(
                    "invalid_fixture",
                    f"Fixture {relative_path} for {entity_id} is invalid: " + "; ".join(check.errors),
                    entity_id=entity_id,
                    details=check.errors,
                )
            if check.size is not None and check.size > self.large_fixture_bytes:
                result.add_warning(
                    "large_fixture",
                    f"Large fixture file {relative_path}: {round(check.size / 1024)}KB",
                    entity_id=entity_id,
                )

        if len(result.fixtures) > self.max_fixtures_per_world:
            result.add_warning(
                "performance_concern",
                f"World {world_id} has {len(result.fixtures)} fixtures, which may slow down setup",
            )

        result.elapsed_ms = int((time.monotonic() - start) * 1000)
        if result.is_valid:
            logger.info("validator: world %s valid (%dms)", world_id, result.elapsed_ms)
        else:
            logger.warning("validator: world %s has %d errors", world_id, len(result.errors))
        return result

    async def validate_all(self) -> ValidationReport:
        """Validate every registered world concurrently. One world's crash never aborts the run."""
        start = time.monotonic()
        world_ids = self.registry.ids()
        outcomes = await asyncio.gather(*(self.validate_world(w) for w in world_ids), return_exceptions=True)

        results: list[WorldValidationResult] = []
        for world_id, outcome in zip(world_ids, outcomes, strict=True):
            if isinstance(outcome, BaseException):
                logger.error("validator: validating %s raised %r", world_id, outcome)
                failed = WorldValidationResult(world_id=world_id)
                failed.add_error("structural", f"Validation failed: {outcome}")
                results.append(failed)
            else:
                results.append(outcome)

        total_ms = int((time.monotonic() - start) * 1000)
        valid = sum(1 for r in results if r.is_valid)
        return ValidationReport(
            timestamp=datetime.now(UTC).isoformat(),
            total_worlds=len(results),
            valid_worlds=valid,
            invalid_worlds=len(results) - valid,
            total_errors=sum(len(r.errors) for r in results),
            total_warnings=sum(len(r.warnings) for r in results),
            results=results,
            total_ms=total_ms,
            average_ms_per_world=round(total_ms / len(results)) if results else 0,
        )

    @staticmethod
    def render_report(report: ValidationReport) -> str:
        """Human-readable multi-line report."""
        lines = [
            "WORLD VALIDATION REPORT",
            "=" * 50,
            f"Timestamp: {report.timestamp}",
            f"Total time: {report.total_ms}ms",
            f"Summary: {report.valid_worlds}/{report.total_worlds} worlds valid",
            f"Errors: {report.total_errors}",
            f"Warnings: {report.total_warnings}",
            "",
        ]
        for result in report.results:
            lines.append(f"World: {result.world_id}")
            lines.append(f"   Status: {'VALID' if result.is_valid else 'INVALID'}")
            lines.append(f"   Fixtures: {len(result.fixtures)} checked")
            lines.append(f"   Time: {result.elapsed_ms}ms")
            if result.errors:
                lines.append("   Errors:")
                lines.extend(f"     - [{e.kind}] {e.message}" for e in result.errors)
            if result.warnings:
                lines.append("   Warnings:")
                lines.extend(f"     - [{w.kind}] {w.message}" for w in result.warnings)
            lines.append("")
        return "\n".join(lines)
