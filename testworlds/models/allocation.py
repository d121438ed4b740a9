"""Worker-to-world allocation models."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

from testworlds.models.seed import SeedResult

SeedType = Literal["basic_user", "admin_user", "multi_artifact", "publication", "demo", "general"]


class TestWorldProfile(BaseModel):
    """How the world for one test file is seeded."""

    __test__ = False  # not a pytest test class

    test_file: str
    seed_type: SeedType = "general"
    timeout_s: float = 60.0
    requires_admin: bool = False


class WorkerWorldInfo(BaseModel):
    """The world a worker owns. One live record per worker."""

    worker_id: str
    world_id: str
    assigned_tests: list[str] = Field(default_factory=list)
    is_active: bool = True
    created_at: float
    source_world_id: str
    profile: TestWorldProfile
    seed_result: SeedResult | None = None


class AllocationStats(BaseModel):
    total_workers: int
    active_worlds: int
    total_tests: int
