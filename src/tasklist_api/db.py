from __future__ import annotations

import os
import sqlite3
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Generator, List, Optional, Sequence

from fastapi.concurrency import run_in_threadpool

from .exceptions import PersistenceError
from .models import TaskList
from .repositories import Repository, new_task_list_id


@dataclass(frozen=True)
class _Cols:
    table: str = "task_lists"
    id: str = "id"
    name: str = "name"
    owner_id: str = "owner_id"
    created_at: str = "created_at"
    updated_at: str = "updated_at"


@dataclass(frozen=True)
class _ConnCols:
    table: str = "task_list_connections"
    task_list_id: str = "task_list_id"
    user_id: str = "user_id"
    position: str = "position"


_COLS = _Cols()
_CONN = _ConnCols()

_SQLITE_MAX_INTEGER = 2**63 - 1

_ACCESS_FILTER = (
    f"{_COLS.owner_id} = ? OR EXISTS ("
    f"SELECT 1 FROM {_CONN.table} c "
    f"WHERE c.{_CONN.task_list_id} = {_COLS.table}.{_COLS.id} AND c.{_CONN.user_id} = ?)"
)


def _format_dt(value: datetime) -> str:
    return value.isoformat(timespec="microseconds")


class SQLiteRepository(Repository):
    """
    SQLite-backed repository. Blocking sqlite3 calls run in the thread pool.
    """

    def __init__(self, db_path: str) -> None:
        os.makedirs(os.path.dirname(db_path) or ".", exist_ok=True)
        self._db_path = db_path
        self._init_db()

    @contextmanager
    def _conn(self) -> Generator[sqlite3.Connection, None, None]:
        try:
            conn = sqlite3.connect(self._db_path)
        except sqlite3.Error as exc:
            raise PersistenceError(f"Cannot open database {self._db_path}: {exc}") from exc
        conn.row_factory = sqlite3.Row
        try:
            conn.execute("PRAGMA foreign_keys = ON")
            yield conn
            conn.commit()
        except sqlite3.Error as exc:
            raise PersistenceError(str(exc)) from exc
        finally:
            conn.close()

    def _init_db(self) -> None:
        with self._conn() as conn:
            conn.execute(
                f"""
                CREATE TABLE IF NOT EXISTS {_COLS.table} (
                    {_COLS.id} TEXT PRIMARY KEY,
                    {_COLS.name} TEXT NOT NULL,
                    {_COLS.owner_id} TEXT NOT NULL,
                    {_COLS.created_at} TEXT NOT NULL,
                    {_COLS.updated_at} TEXT NOT NULL
                )
                """
            )
            conn.execute(
                f"""
                CREATE TABLE IF NOT EXISTS {_CONN.table} (
                    {_CONN.task_list_id} TEXT NOT NULL
                        REFERENCES {_COLS.table}({_COLS.id}) ON DELETE CASCADE,
                    {_CONN.user_id} TEXT NOT NULL,
                    {_CONN.position} INTEGER NOT NULL,
                    PRIMARY KEY ({_CONN.task_list_id}, {_CONN.user_id})
                )
                """
            )
            conn.execute(
                f"CREATE INDEX IF NOT EXISTS idx_{_COLS.table}_owner_id ON {_COLS.table}({_COLS.owner_id})"
            )
            conn.execute(
                f"CREATE INDEX IF NOT EXISTS idx_{_COLS.table}_created_at ON {_COLS.table}({_COLS.created_at})"
            )
            conn.execute(
                f"CREATE INDEX IF NOT EXISTS idx_{_CONN.table}_user_id ON {_CONN.table}({_CONN.user_id})"
            )

    def _load_connections(self, conn: sqlite3.Connection, ids: Sequence[str]) -> Dict[str, List[str]]:
        if not ids:
            return {}
        placeholders = ", ".join("?" for _ in ids)
        rows = conn.execute(
            f"""
            SELECT {_CONN.task_list_id}, {_CONN.user_id} FROM {_CONN.table}
            WHERE {_CONN.task_list_id} IN ({placeholders})
            ORDER BY {_CONN.task_list_id}, {_CONN.position}
            """,
            list(ids),
        ).fetchall()
        connections: Dict[str, List[str]] = {i: [] for i in ids}
        for row in rows:
            connections[row[_CONN.task_list_id]].append(row[_CONN.user_id])
        return connections

    def _row_to_entity(self, row: sqlite3.Row, connected_user_ids: List[str]) -> TaskList:
        return TaskList.restore(
            id=str(row[_COLS.id]),
            name=str(row[_COLS.name]),
            owner_id=str(row[_COLS.owner_id]),
            connected_user_ids=connected_user_ids,
            created_at=datetime.fromisoformat(row[_COLS.created_at]),
            updated_at=datetime.fromisoformat(row[_COLS.updated_at]),
        )

    def _write_connections(self, conn: sqlite3.Connection, task_list: TaskList) -> None:
        conn.executemany(
            f"""
            INSERT INTO {_CONN.table} ({_CONN.task_list_id}, {_CONN.user_id}, {_CONN.position})
            VALUES (?, ?, ?)
            """,
            [(task_list.id, user_id, pos) for pos, user_id in enumerate(task_list.connected_user_ids)],
        )

    def _get(self, task_list_id: str) -> Optional[TaskList]:
        with self._conn() as conn:
            row = conn.execute(
                f"SELECT * FROM {_COLS.table} WHERE {_COLS.id} = ?", (task_list_id,)
            ).fetchone()
            if not row:
                return None
            connections = self._load_connections(conn, [row[_COLS.id]])
            return self._row_to_entity(row, connections[row[_COLS.id]])

    def _list_by_user_access(self, user_id: str, page: int, page_size: int) -> List[TaskList]:
        limit = max(page_size, 0)
        offset = max(page - 1, 0) * limit
        if offset > _SQLITE_MAX_INTEGER or limit > _SQLITE_MAX_INTEGER:
            # past the last representable row; nothing can be on this page
            return []
        with self._conn() as conn:
            rows = conn.execute(
                f"""
                SELECT * FROM {_COLS.table}
                WHERE {_ACCESS_FILTER}
                ORDER BY {_COLS.created_at} DESC, rowid DESC
                LIMIT ? OFFSET ?
                """,
                (user_id, user_id, limit, offset),
            ).fetchall()
            connections = self._load_connections(conn, [r[_COLS.id] for r in rows])
            return [self._row_to_entity(r, connections[r[_COLS.id]]) for r in rows]

    def _count_by_user_access(self, user_id: str) -> int:
        with self._conn() as conn:
            count_row = conn.execute(
                f"SELECT COUNT(*) AS cnt FROM {_COLS.table} WHERE {_ACCESS_FILTER}",
                (user_id, user_id),
            ).fetchone()
            return int(count_row["cnt"]) if count_row else 0

    def _create(self, task_list: TaskList) -> TaskList:
        if task_list.id is None:
            task_list.assign_id(new_task_list_id())
        with self._conn() as conn:
            conn.execute(
                f"""
                INSERT INTO {_COLS.table} ({_COLS.id}, {_COLS.name}, {_COLS.owner_id},
                    {_COLS.created_at}, {_COLS.updated_at})
                VALUES (?, ?, ?, ?, ?)
                """,
                (
                    task_list.id,
                    task_list.name,
                    task_list.owner_id,
                    _format_dt(task_list.created_at),
                    _format_dt(task_list.updated_at),
                ),
            )
            self._write_connections(conn, task_list)
        return task_list

    def _replace(self, task_list: TaskList) -> TaskList:
        with self._conn() as conn:
            cur = conn.execute(
                f"""
                UPDATE {_COLS.table}
                SET {_COLS.name} = ?, {_COLS.updated_at} = ?
                WHERE {_COLS.id} = ?
                """,
                (task_list.name, _format_dt(task_list.updated_at), task_list.id),
            )
            if cur.rowcount == 0:
                raise PersistenceError(f"TaskList with id {task_list.id} not found")
            conn.execute(
                f"DELETE FROM {_CONN.table} WHERE {_CONN.task_list_id} = ?", (task_list.id,)
            )
            self._write_connections(conn, task_list)
        return task_list

    def _delete(self, task_list_id: str) -> bool:
        with self._conn() as conn:
            cur = conn.execute(f"DELETE FROM {_COLS.table} WHERE {_COLS.id} = ?", (task_list_id,))
            return cur.rowcount > 0

    async def get(self, task_list_id: str) -> Optional[TaskList]:
        if not task_list_id or not task_list_id.strip():
            return None
        return await run_in_threadpool(self._get, task_list_id)

    async def list_by_user_access(self, user_id: str, page: int, page_size: int) -> List[TaskList]:
        if not user_id or not user_id.strip():
            return []
        return await run_in_threadpool(self._list_by_user_access, user_id, page, page_size)

    async def count_by_user_access(self, user_id: str) -> int:
        if not user_id or not user_id.strip():
            return 0
        return await run_in_threadpool(self._count_by_user_access, user_id)

    async def create(self, task_list: TaskList) -> TaskList:
        return await run_in_threadpool(self._create, task_list)

    async def replace(self, task_list: TaskList) -> TaskList:
        if task_list.id is None:
            raise PersistenceError("TaskList without an id cannot be replaced")
        return await run_in_threadpool(self._replace, task_list)

    async def delete(self, task_list_id: str) -> bool:
        if not task_list_id or not task_list_id.strip():
            return False
        return await run_in_threadpool(self._delete, task_list_id)
