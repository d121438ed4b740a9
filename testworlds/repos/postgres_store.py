"""Postgres WorldStore. All seed/cleanup SQL lives here."""

from __future__ import annotations

from typing import Any

import asyncpg

from testworlds.db import system_conn
from testworlds.repos.store import check_columns


def _row_to_dict(row: asyncpg.Record) -> dict[str, Any]:
    """Convert a database row to a plain dict with string ids."""
    data = dict(row)
    for key in ("id", "user_id", "author_id", "chat_id", "document_id"):
        if data.get(key) is not None:
            data[key] = str(data[key])
    return data


class PostgresWorldStore:
    """
    Bulk operations against the world-tagged tables.

    Every statement runs in its own system_conn() transaction, so each seed
    phase commits independently. Table and column names are checked against
    TABLE_COLUMNS before they are interpolated.
    """

    async def insert_many(self, table: str, rows: list[dict[str, Any]]) -> list[str]:
        """
        Insert rows with a single multi-row INSERT ... RETURNING id.

        Args:
            table: Target table
            rows: Rows with identical keys

        Returns:
            Inserted ids, in insertion order
        """
        if not rows:
            return []
        columns = list(rows[0])
        check_columns(table, columns)

        values_sql = []
        params: list[Any] = []
        for row in rows:
            if list(row) != columns:
                raise ValueError(f"All rows inserted into {table} must share the same columns")
            start = len(params)
            values_sql.append("(" + ", ".join(f"${start + i + 1}" for i in range(len(columns))) + ")")
            params.extend(row[c] for c in columns)

        sql = f"INSERT INTO {table} ({', '.join(columns)}) VALUES {', '.join(values_sql)} RETURNING id"
        async with system_conn() as conn:
            records = await conn.fetch(sql, *params)
            return [str(r["id"]) for r in records]

    async def delete_world(self, table: str, world_id: str) -> int:
        """
        Delete every row tagged with world_id.

        Returns:
            Number of rows deleted
        """
        check_columns(table, [])
        async with system_conn() as conn:
            result = await conn.execute(f"DELETE FROM {table} WHERE world_id = $1", world_id)
            # asyncpg status string: "DELETE <n>"
            return int(result.split()[-1])

    async def select_world(self, table: str, world_id: str | None, **equals: Any) -> list[dict[str, Any]]:
        """
        Select rows whose world_id matches, NULL matching NULL.

        Args:
            table: Table to read
            world_id: World tag, None for production rows
            **equals: Additional column = value predicates

        Returns:
            Matching rows as dicts
        """
        check_columns(table, list(equals))
        clauses = ["world_id IS NOT DISTINCT FROM $1"]
        params: list[Any] = [world_id]
        for column, value in equals.items():
            params.append(value)
            clauses.append(f"{column} = ${len(params)}")

        async with system_conn() as conn:
            rows = await conn.fetch(f"SELECT * FROM {table} WHERE {' AND '.join(clauses)}", *params)
            return [_row_to_dict(r) for r in rows]

    async def count_world(self, table: str, world_id: str | None) -> int:
        check_columns(table, [])
        async with system_conn() as conn:
            return await conn.fetchval(
                f"SELECT count(*) FROM {table} WHERE world_id IS NOT DISTINCT FROM $1",
                world_id,
            )
