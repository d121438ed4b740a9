"""
In-process WorldStore.

Keeps rows in per-table lists and enforces primary keys and the same foreign
keys as the Postgres schema, so cleanup ordering bugs surface here too.
Used by the test suite and for running worlds without a database.
"""

from __future__ import annotations

import copy
from typing import Any

from testworlds.repos.store import CLEANUP_ORDER, FOREIGN_KEYS, TABLE_COLUMNS, check_columns


class StoreIntegrityError(Exception):
    """Primary or foreign key violation."""


class InMemoryWorldStore:
    """Dict-backed WorldStore. Not shared across processes."""

    def __init__(self, fail_on_insert: set[str] | None = None, fail_on_delete: set[str] | None = None) -> None:
        self._tables: dict[str, list[dict[str, Any]]] = {table: [] for table in TABLE_COLUMNS}
        # Tables whose inserts always raise, for failure-path tests
        self.fail_on_insert = set(fail_on_insert or ())
        # Tables whose next delete raises once
        self.fail_on_delete = set(fail_on_delete or ())
        self.round_trips = 0

    async def insert_many(self, table: str, rows: list[dict[str, Any]]) -> list[str]:
        self.round_trips += 1
        if table in self.fail_on_insert:
            raise StoreIntegrityError(f"insert into {table} failed")
        for row in rows:
            check_columns(table, list(row))
        existing = {r["id"] for r in self._tables[table]}
        new_ids = [row["id"] for row in rows]
        if len(set(new_ids)) != len(new_ids) or existing.intersection(new_ids):
            raise StoreIntegrityError(f"duplicate primary key in {table}")
        for row in rows:
            self._check_parents(table, row)
        self._tables[table].extend(copy.deepcopy(row) for row in rows)
        return [str(i) for i in new_ids]

    async def delete_world(self, table: str, world_id: str) -> int:
        self.round_trips += 1
        if table in self.fail_on_delete:
            self.fail_on_delete.discard(table)
            raise StoreIntegrityError(f"delete from {table} failed")
        check_columns(table, [])
        doomed = [r for r in self._tables[table] if r.get("world_id") == world_id]
        doomed_ids = {r["id"] for r in doomed}
        self._check_no_children(table, doomed_ids)
        self._tables[table] = [r for r in self._tables[table] if r.get("world_id") != world_id]
        return len(doomed)

    async def select_world(self, table: str, world_id: str | None, **equals: Any) -> list[dict[str, Any]]:
        self.round_trips += 1
        check_columns(table, list(equals))
        return [
            copy.deepcopy(r)
            for r in self._tables[table]
            if r.get("world_id") == world_id and all(r.get(k) == v for k, v in equals.items())
        ]

    async def count_world(self, table: str, world_id: str | None) -> int:
        check_columns(table, [])
        return sum(1 for r in self._tables[table] if r.get("world_id") == world_id)

    def all_rows(self, table: str) -> list[dict[str, Any]]:
        """Every row regardless of world. Test helper for isolation assertions."""
        return copy.deepcopy(self._tables[table])

    def total_rows(self) -> int:
        return sum(len(rows) for rows in self._tables.values())

    def _check_parents(self, table: str, row: dict[str, Any]) -> None:
        for column, parent in FOREIGN_KEYS.get(table, ()):
            value = row.get(column)
            if value is None:
                continue
            if not any(p["id"] == value for p in self._tables[parent]):
                raise StoreIntegrityError(f"{table}.{column}={value} references missing {parent} row")

    def _check_no_children(self, table: str, ids: set[Any]) -> None:
        if not ids:
            return
        for child in CLEANUP_ORDER:
            for column, parent in FOREIGN_KEYS.get(child, ()):
                if parent != table:
                    continue
                if any(r.get(column) in ids for r in self._tables[child]):
                    raise StoreIntegrityError(f"{child}.{column} still references {table} rows")
