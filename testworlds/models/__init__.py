"""
Pydantic models for testworlds.

All data shapes defined here. No imports from db, repos, or services.
"""

from testworlds.models.allocation import AllocationStats, TestWorldProfile, WorkerWorldInfo
from testworlds.models.api import ActivateWorldRequest, ActivateWorldResponse, ClearWorldResponse, WorldSummary
from testworlds.models.context import WorldContext, WorldFilter
from testworlds.models.fixture import AIFixture, FixtureContext, FixtureInput, FixtureMetadata, FixtureOutput
from testworlds.models.seed import CleanupResult, PhaseStats, SeedResult
from testworlds.models.validation import (
    FixtureCheck,
    ValidationIssue,
    ValidationReport,
    WorldValidationResult,
)
from testworlds.models.world import (
    WorldArtifact,
    WorldChat,
    WorldDefinition,
    WorldFeatures,
    WorldSettings,
    WorldUser,
)

__all__ = [
    # World catalog models
    "WorldDefinition",
    "WorldUser",
    "WorldArtifact",
    "WorldChat",
    "WorldSettings",
    "WorldFeatures",
    # Context models
    "WorldContext",
    "WorldFilter",
    # Seed models
    "SeedResult",
    "PhaseStats",
    "CleanupResult",
    # Allocation models
    "TestWorldProfile",
    "WorkerWorldInfo",
    "AllocationStats",
    # AI fixture models
    "AIFixture",
    "FixtureContext",
    "FixtureInput",
    "FixtureOutput",
    "FixtureMetadata",
    # Validation models
    "ValidationReport",
    "WorldValidationResult",
    "ValidationIssue",
    "FixtureCheck",
    # API models
    "WorldSummary",
    "ActivateWorldRequest",
    "ActivateWorldResponse",
    "ClearWorldResponse",
]
