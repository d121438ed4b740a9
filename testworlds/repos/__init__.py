"""
Repository layer for testworlds.

All SQL lives here and ONLY here. No database access outside this module.
"""

from testworlds.repos.memory_store import InMemoryWorldStore
from testworlds.repos.postgres_store import PostgresWorldStore
from testworlds.repos.store import CLEANUP_ORDER, WorldStore
from testworlds.repos.world_repo import WorldRepo

__all__ = [
    "WorldStore",
    "InMemoryWorldStore",
    "PostgresWorldStore",
    "WorldRepo",
    "CLEANUP_ORDER",
]
