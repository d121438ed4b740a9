"""World validation report models."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field

ErrorKind = Literal["structural", "missing_fixture", "invalid_fixture", "missing_dependency", "dependency_cycle"]
WarningKind = Literal["large_fixture", "performance_concern"]
ContentType = Literal["text", "json", "csv", "unknown"]


class ValidationIssue(BaseModel):
    """One error or warning. `entity_id` names the artifact/chat when known."""

    kind: str
    message: str
    entity_id: str | None = None
    details: list[str] = Field(default_factory=list)


class FixtureCheck(BaseModel):
    """Result of loading and checking one fixture file."""

    path: str
    exists: bool = False
    size: int | None = None
    content_type: ContentType = "unknown"
    is_valid: bool = False
    errors: list[str] = Field(default_factory=list)


class WorldValidationResult(BaseModel):
    world_id: str
    is_valid: bool = True
    errors: list[ValidationIssue] = Field(default_factory=list)
    warnings: list[ValidationIssue] = Field(default_factory=list)
    fixtures: list[FixtureCheck] = Field(default_factory=list)
    elapsed_ms: int = 0

    def add_error(self, kind: ErrorKind, message: str, **extra: Any) -> None:
        self.errors.append(ValidationIssue(kind=kind, message=message, **extra))
        self.is_valid = False

    def add_warning(self, kind: WarningKind, message: str, **extra: Any) -> None:
        self.warnings.append(ValidationIssue(kind=kind, message=message, **extra))


class ValidationReport(BaseModel):
    timestamp: str
    total_worlds: int
    valid_worlds: int
    invalid_worlds: int
    total_errors: int
    total_warnings: int
    results: list[WorldValidationResult]
    total_ms: int
    average_ms_per_world: int

    @property
    def ok(self) -> bool:
        return self.total_errors == 0
