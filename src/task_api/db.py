from __future__ import annotations

import logging
import os
import sqlite3
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Generator, List, Optional, Tuple

from .errors import ConflictError
from .models import TaskEntity, TaskStatus, UserEntity
from .repositories import ListQuery, Repository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _TaskCols:
    table: str = "tasks"
    id: str = "id"
    title: str = "title"
    description: str = "description"
    due_date: str = "due_date"
    date_completed: str = "date_completed"
    status: str = "status"
    owner_id: str = "owner_id"
    created_at: str = "created_at"
    updated_at: str = "updated_at"


@dataclass(frozen=True)
class _UserCols:
    table: str = "users"
    id: str = "id"
    name: str = "name"
    email: str = "email"
    password_hash: str = "password_hash"
    created_at: str = "created_at"
    updated_at: str = "updated_at"


_T = _TaskCols()
_U = _UserCols()
_REVOKED_TABLE = "revoked_tokens"

_STATUS_VALUES = ", ".join(f"'{s.value}'" for s in TaskStatus)

# Largest value sqlite3 can bind to an INTEGER parameter
_SQLITE_MAX_INT = 2**63 - 1


def _storable_id(value: int) -> bool:
    return 0 < value <= _SQLITE_MAX_INT


class SQLiteRepository(Repository):
    """
    Lightweight SQLite repository implementing the Repository interface.
    """

    def __init__(self, db_path: str) -> None:
        os.makedirs(os.path.dirname(db_path) or ".", exist_ok=True)
        self._db_path = db_path
        self._init_db()

    @contextmanager
    def _conn(self) -> Generator[sqlite3.Connection, None, None]:
        conn = sqlite3.connect(self._db_path)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def _init_db(self) -> None:
        with self._conn() as conn:
            conn.execute(
                f"""
                CREATE TABLE IF NOT EXISTS {_U.table} (
                    {_U.id} INTEGER PRIMARY KEY AUTOINCREMENT,
                    {_U.name} TEXT NOT NULL,
                    {_U.email} TEXT NOT NULL UNIQUE COLLATE NOCASE,
                    {_U.password_hash} TEXT NOT NULL,
                    {_U.created_at} TEXT NOT NULL,
                    {_U.updated_at} TEXT NOT NULL
                )
                """
            )
            conn.execute(
                f"""
                CREATE TABLE IF NOT EXISTS {_T.table} (
                    {_T.id} INTEGER PRIMARY KEY AUTOINCREMENT,
                    {_T.title} TEXT NOT NULL,
                    {_T.description} TEXT NULL,
                    {_T.due_date} TEXT NOT NULL,
                    {_T.date_completed} TEXT NULL,
                    {_T.status} TEXT NOT NULL DEFAULT '{TaskStatus.PENDING.value}'
                        CHECK ({_T.status} IN ({_STATUS_VALUES})),
                    {_T.owner_id} INTEGER NOT NULL
                        REFERENCES {_U.table}({_U.id}) ON DELETE CASCADE,
                    {_T.created_at} TEXT NOT NULL,
                    {_T.updated_at} TEXT NOT NULL
                )
                """
            )
            conn.execute(
                f"CREATE INDEX IF NOT EXISTS idx_{_T.table}_{_T.owner_id} ON {_T.table}({_T.owner_id})"
            )
            conn.execute(
                f"""
                CREATE TABLE IF NOT EXISTS {_REVOKED_TABLE} (
                    jti TEXT PRIMARY KEY,
                    expires_at TEXT NOT NULL
                )
                """
            )

    def _row_to_user(self, row: sqlite3.Row) -> UserEntity:
        return {
            "id": int(row[_U.id]),
            "name": str(row[_U.name]),
            "email": str(row[_U.email]),
            "password_hash": str(row[_U.password_hash]),
            "created_at": datetime.fromisoformat(row[_U.created_at]),
            "updated_at": datetime.fromisoformat(row[_U.updated_at]),
        }

    def _row_to_task(self, row: sqlite3.Row) -> TaskEntity:
        def parse_date(s: Optional[str]) -> Optional[date]:
            if s is None:
                return None
            return date.fromisoformat(s)

        return {
            "id": int(row[_T.id]),
            "title": str(row[_T.title]),
            "description": row[_T.description] if row[_T.description] is not None else "",
            "due_date": parse_date(row[_T.due_date]),  # type: ignore[typeddict-item]
            "date_completed": parse_date(row[_T.date_completed]),
            "status": TaskStatus(row[_T.status]),
            "owner_id": int(row[_T.owner_id]),
            "created_at": datetime.fromisoformat(row[_T.created_at]),
            "updated_at": datetime.fromisoformat(row[_T.updated_at]),
        }

    def create_user(self, *, name: str, email: str, password_hash: str) -> UserEntity:
        now = datetime.now().isoformat()
        with self._conn() as conn:
            try:
                cur = conn.execute(
                    f"""
                    INSERT INTO {_U.table} ({_U.name}, {_U.email}, {_U.password_hash},
                        {_U.created_at}, {_U.updated_at})
                    VALUES (?, ?, ?, ?, ?)
                    """,
                    (name, email, password_hash, now, now),
                )
            except sqlite3.IntegrityError as exc:
                raise ConflictError("email", email) from exc
            row = conn.execute(
                f"SELECT * FROM {_U.table} WHERE {_U.id} = ?", (cur.lastrowid,)
            ).fetchone()
            assert row is not None
            return self._row_to_user(row)

    def get_user(self, user_id: int) -> Optional[UserEntity]:
        if not _storable_id(user_id):
            return None
        with self._conn() as conn:
            row = conn.execute(f"SELECT * FROM {_U.table} WHERE {_U.id} = ?", (user_id,)).fetchone()
            return self._row_to_user(row) if row else None

    def get_user_by_email(self, email: str) -> Optional[UserEntity]:
        with self._conn() as conn:
            row = conn.execute(f"SELECT * FROM {_U.table} WHERE {_U.email} = ?", (email,)).fetchone()
            return self._row_to_user(row) if row else None

    def create_task(
        self,
        *,
        owner_id: int,
        title: str,
        description: str,
        due_date: date,
        status: TaskStatus,
        date_completed: Optional[date],
    ) -> TaskEntity:
        now = datetime.now().isoformat()
        with self._conn() as conn:
            cur = conn.execute(
                f"""
                INSERT INTO {_T.table} ({_T.title}, {_T.description}, {_T.due_date},
                    {_T.date_completed}, {_T.status}, {_T.owner_id}, {_T.created_at}, {_T.updated_at})
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    title,
                    description,
                    due_date.isoformat(),
                    date_completed.isoformat() if date_completed else None,
                    TaskStatus(status).value,
                    owner_id,
                    now,
                    now,
                ),
            )
            row = conn.execute(
                f"SELECT * FROM {_T.table} WHERE {_T.id} = ?", (cur.lastrowid,)
            ).fetchone()
            assert row is not None
            return self._row_to_task(row)

    def get_task(self, task_id: int) -> Optional[TaskEntity]:
        if not _storable_id(task_id):
            return None
        with self._conn() as conn:
            row = conn.execute(f"SELECT * FROM {_T.table} WHERE {_T.id} = ?", (task_id,)).fetchone()
            return self._row_to_task(row) if row else None

    def save_task(self, task: TaskEntity) -> Optional[TaskEntity]:
        with self._conn() as conn:
            cur = conn.execute(
                f"""
                UPDATE {_T.table}
                SET {_T.title} = ?, {_T.description} = ?, {_T.due_date} = ?,
                    {_T.date_completed} = ?, {_T.status} = ?, {_T.updated_at} = ?
                WHERE {_T.id} = ?
                """,
                (
                    task["title"],
                    task["description"],
                    task["due_date"].isoformat(),
                    task["date_completed"].isoformat() if task["date_completed"] else None,
                    TaskStatus(task["status"]).value,
                    datetime.now().isoformat(),
                    task["id"],
                ),
            )
            if cur.rowcount == 0:
                return None
            row = conn.execute(f"SELECT * FROM {_T.table} WHERE {_T.id} = ?", (task["id"],)).fetchone()
            assert row is not None
            return self._row_to_task(row)

    def delete_task(self, task_id: int) -> bool:
        if not _storable_id(task_id):
            return False
        with self._conn() as conn:
            cur = conn.execute(f"DELETE FROM {_T.table} WHERE {_T.id} = ?", (task_id,))
            return cur.rowcount > 0

    def list_tasks(self, query: Optional[ListQuery] = None) -> Tuple[List[TaskEntity], int]:
        q = query or ListQuery()
        limit = min(max(q.limit, 0), _SQLITE_MAX_INT)
        offset = max(q.offset, 0)

        with self._conn() as conn:
            count_row = conn.execute(f"SELECT COUNT(*) as cnt FROM {_T.table}").fetchone()
            total = int(count_row["cnt"]) if count_row else 0
            if offset >= total:
                return [], total

            rows = conn.execute(
                f"SELECT * FROM {_T.table} ORDER BY {_T.id} ASC LIMIT ? OFFSET ?",
                (limit, offset),
            ).fetchall()
            return [self._row_to_task(r) for r in rows], total

    def revoke_token(self, jti: str, expires_at: datetime) -> None:
        now = datetime.now(timezone.utc).isoformat()
        with self._conn() as conn:
            conn.execute(f"DELETE FROM {_REVOKED_TABLE} WHERE expires_at <= ?", (now,))
            conn.execute(
                f"INSERT OR REPLACE INTO {_REVOKED_TABLE} (jti, expires_at) VALUES (?, ?)",
                (jti, expires_at.astimezone(timezone.utc).isoformat()),
            )
        logger.debug("Revoked token %s", jti)

    def is_token_revoked(self, jti: str) -> bool:
        with self._conn() as conn:
            row = conn.execute(f"SELECT 1 FROM {_REVOKED_TABLE} WHERE jti = ?", (jti,)).fetchone()
            return row is not None
