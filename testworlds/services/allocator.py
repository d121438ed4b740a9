"""
World allocator: one freshly seeded world per parallel test worker.

The first allocate() for a worker mints a world id, seeds the profile's
source world under it and records the assignment. Later calls from the same
worker reuse that world. Calls for one worker are serialized by a per-worker
lock; different workers seed concurrently.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Iterable
from uuid import uuid4

from testworlds.errors import AllocationConflictError, StructuralError
from testworlds.models.allocation import AllocationStats, TestWorldProfile, WorkerWorldInfo
from testworlds.models.seed import CleanupResult
from testworlds.services.seed_engine import SeedEngine
from testworlds.services.test_profiles import DEFAULT_PROFILES, ProfileTable, source_world_for

logger = logging.getLogger(__name__)


class WorldAllocator:
    """
    Maps worker ids to worlds.

    Usage:
        allocator = WorldAllocator(SeedEngine(store))
        info = await allocator.allocate("0", "test_uc01_site_creation.py")
        ...
        await allocator.release("0")
    """

    def __init__(
        self,
        engine: SeedEngine,
        profiles: ProfileTable | Iterable[TestWorldProfile] | None = None,
        session_id: str | None = None,
    ):
        self.engine = engine
        self.registry = engine.registry
        if isinstance(profiles, ProfileTable):
            self.profiles = profiles
        else:
            self.profiles = ProfileTable(DEFAULT_PROFILES if profiles is None else profiles)
        self.session_id = session_id or str(int(time.time() * 1000))

        self._workers: dict[str, WorkerWorldInfo] = {}
        self._owners: dict[str, str] = {}  # world_id -> worker_id
        self._worker_locks: dict[str, asyncio.Lock] = {}
        self._registry_lock = asyncio.Lock()

    def mint_world_id(self, worker_id: str) -> str:
        return f"TEST_W{worker_id}_{self.session_id}_{uuid4().hex[:8]}"

    def profile_for(self, test_file: str) -> TestWorldProfile:
        return self.profiles.lookup(test_file)

    async def _lock_for(self, worker_id: str) -> asyncio.Lock:
        async with self._registry_lock:
            lock = self._worker_locks.get(worker_id)
            if lock is None:
                lock = self._worker_locks[worker_id] = asyncio.Lock()
            return lock

    async def allocate(self, worker_id: str, test_file: str) -> WorkerWorldInfo:
        """
        Get or create the world for a worker.

        A world left inactive by a failed release is never reused: its
        cleanup is retried and a fresh world is seeded.

        Args:
            worker_id: Parallel worker id (e.g. the xdist "gw0" number)
            test_file: Test file about to run on this worker

        Returns:
            The worker's WorkerWorldInfo, with test_file recorded

        Raises:
            StructuralError: If the profile's world is invalid or lacks a required admin
            SeedError: If seeding failed; the minted world was cleaned up
            AllocationConflictError: If the minted id is already owned
            Exception: Whatever the store raised if the retried cleanup of an
                inactive world fails again; the entry stays for another retry
        """
        while True:
            lock = await self._lock_for(worker_id)
            async with lock:
                # Retired by release() while we waited
                if self._worker_locks.get(worker_id) is not lock:
                    continue
                info = self._workers.get(worker_id)
                if info is not None and not info.is_active:
                    logger.warning(
                        "allocator: world %s for worker %s was not fully cleaned up, retrying",
                        info.world_id,
                        worker_id,
                    )
                    await self._discard(worker_id, info)
                    info = None
                if info is not None:
                    if test_file not in info.assigned_tests:
                        info.assigned_tests.append(test_file)
                        logger.info("allocator: added %s to world %s", test_file, info.world_id)
                    return info
                return await self._create(worker_id, test_file)

    async def _create(self, worker_id: str, test_file: str) -> WorkerWorldInfo:
        profile = self.profile_for(test_file)
        source = self.registry.get(source_world_for(profile))
        if profile.requires_admin and not source.has_role("admin"):
            raise StructuralError(source.id, [f"Profile {profile.test_file} requires an admin user"])

        world_id = self.mint_world_id(worker_id)
        async with self._registry_lock:
            if world_id in self._owners:
                raise AllocationConflictError(f"World {world_id} already owned by worker {self._owners[world_id]}")
            self._owners[world_id] = worker_id

        logger.info(
            "allocator: seeding world %s for worker %s (%s from %s)",
            world_id,
            worker_id,
            profile.seed_type,
            source.id,
        )
        try:
            seed_result = await self.engine.seed(world_id, source)
        except Exception:
            async with self._registry_lock:
                self._owners.pop(world_id, None)
            try:
                await self.engine.cleanup(world_id)
            except Exception:
                logger.exception("allocator: cleanup of failed world %s also failed", world_id)
            raise

        info = WorkerWorldInfo(
            worker_id=worker_id,
            world_id=world_id,
            assigned_tests=[test_file],
            created_at=time.time(),
            source_world_id=source.id,
            profile=profile,
            seed_result=seed_result,
        )
        async with self._registry_lock:
            self._workers[worker_id] = info
        return info

    def world_for(self, worker_id: str) -> WorkerWorldInfo | None:
        return self._workers.get(worker_id)

    async def _discard(self, worker_id: str, info: WorkerWorldInfo) -> CleanupResult:
        info.is_active = False
        result = await self.engine.cleanup(info.world_id)
        async with self._registry_lock:
            self._workers.pop(worker_id, None)
            self._owners.pop(info.world_id, None)
        return result

    async def release(self, worker_id: str) -> CleanupResult | None:
        """
        Clean up a worker's world and forget the assignment.

        Returns None when the worker holds no world. If cleanup fails the
        entry stays (inactive) so release can be retried; allocate() will
        not hand it out again.
        """
        while True:
            lock = await self._lock_for(worker_id)
            async with lock:
                if self._worker_locks.get(worker_id) is not lock:
                    continue
                info = self._workers.get(worker_id)
                result = None if info is None else await self._discard(worker_id, info)
                async with self._registry_lock:
                    self._worker_locks.pop(worker_id, None)
                if info is not None:
                    logger.info("allocator: released world %s for worker %s", info.world_id, worker_id)
                return result

    async def release_all(self) -> list[CleanupResult]:
        """Release every worker. Raises the first failure after all releases ran."""
        worker_ids = list(self._workers)
        logger.info("allocator: releasing %d test worlds", len(worker_ids))
        outcomes = await asyncio.gather(*(self.release(w) for w in worker_ids), return_exceptions=True)

        failures = [o for o in outcomes if isinstance(o, BaseException)]
        for failure in failures:
            logger.error("allocator: release failed: %s", failure)
        if failures:
            raise failures[0]
        return [o for o in outcomes if o is not None]

    def stats(self) -> AllocationStats:
        workers = list(self._workers.values())
        return AllocationStats(
            total_workers=len(workers),
            active_worlds=sum(1 for w in workers if w.is_active),
            total_tests=sum(len(w.assigned_tests) for w in workers),
        )
