from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date, datetime, timezone
from functools import lru_cache
from threading import RLock
from typing import Dict, List, Optional, Tuple

from .errors import ConflictError
from .models import TaskEntity, TaskStatus, UserEntity
from .settings import get_settings


@dataclass(frozen=True)
class ListQuery:
    """
    Query parameters for listing tasks. Tasks are always returned in
    insertion order.
    """
    limit: int = 10
    offset: int = 0


# PUBLIC_INTERFACE
class Repository(ABC):
    """Abstract repository contract for user, task and revoked-token storage."""

    @abstractmethod
    def create_user(self, *, name: str, email: str, password_hash: str) -> UserEntity:
        """Create and return a new user. Raise ConflictError if the email is taken."""

    @abstractmethod
    def get_user(self, user_id: int) -> Optional[UserEntity]:
        """Return a user by id, or None if not found."""

    @abstractmethod
    def get_user_by_email(self, email: str) -> Optional[UserEntity]:
        """Return a user by email (case-insensitive), or None if not found."""

    @abstractmethod
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
        """Create and return a new TaskEntity with its id populated."""

    @abstractmethod
    def get_task(self, task_id: int) -> Optional[TaskEntity]:
        """Return a TaskEntity by id, or None if not found."""

    @abstractmethod
    def save_task(self, task: TaskEntity) -> Optional[TaskEntity]:
        """
        Overwrite the mutable fields of an existing task (title, description,
        due_date, status, date_completed). Return the stored entity or None if
        the task no longer exists.
        """

    @abstractmethod
    def delete_task(self, task_id: int) -> bool:
        """Delete a TaskEntity by id. Return True if deleted, False if not found."""

    @abstractmethod
    def list_tasks(self, query: Optional[ListQuery] = None) -> Tuple[List[TaskEntity], int]:
        """Return a slice of all tasks in insertion order and the total count."""

    @abstractmethod
    def revoke_token(self, jti: str, expires_at: datetime) -> None:
        """Remember a token id as revoked until it would have expired anyway."""

    @abstractmethod
    def is_token_revoked(self, jti: str) -> bool:
        """Return True if the token id was revoked."""


class InMemoryRepository(Repository):
    """
    Thread-safe in-memory repository suitable for testing and default runtime.
    """

    def __init__(self) -> None:
        self._lock = RLock()
        self._users: Dict[int, UserEntity] = {}
        self._tasks: Dict[int, TaskEntity] = {}
        self._revoked: Dict[str, datetime] = {}
        self._next_user_id = 1
        self._next_task_id = 1

    def _now(self) -> datetime:
        return datetime.now()

    def create_user(self, *, name: str, email: str, password_hash: str) -> UserEntity:
        now = self._now()
        with self._lock:
            if self._find_user_by_email(email) is not None:
                raise ConflictError("email", email)
            user: UserEntity = {
                "id": self._next_user_id,
                "name": name,
                "email": email,
                "password_hash": password_hash,
                "created_at": now,
                "updated_at": now,
            }
            self._next_user_id += 1
            self._users[user["id"]] = user
            return user.copy()

    def get_user(self, user_id: int) -> Optional[UserEntity]:
        with self._lock:
            user = self._users.get(user_id)
            return None if user is None else user.copy()

    def get_user_by_email(self, email: str) -> Optional[UserEntity]:
        with self._lock:
            user = self._find_user_by_email(email)
            return None if user is None else user.copy()

    def _find_user_by_email(self, email: str) -> Optional[UserEntity]:
        wanted = email.lower()
        for user in self._users.values():
            if user["email"].lower() == wanted:
                return user
        return None

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
        now = self._now()
        with self._lock:
            task: TaskEntity = {
                "id": self._next_task_id,
                "title": title,
                "description": description,
                "due_date": due_date,
                "date_completed": date_completed,
                "status": status,
                "owner_id": owner_id,
                "created_at": now,
                "updated_at": now,
            }
            self._next_task_id += 1
            self._tasks[task["id"]] = task
            return task.copy()

    def get_task(self, task_id: int) -> Optional[TaskEntity]:
        with self._lock:
            item = self._tasks.get(task_id)
            return None if item is None else item.copy()

    def save_task(self, task: TaskEntity) -> Optional[TaskEntity]:
        with self._lock:
            existing = self._tasks.get(task["id"])
            if existing is None:
                return None

            updated = existing.copy()
            for key in ("title", "description", "due_date", "status", "date_completed"):
                updated[key] = task[key]  # type: ignore[literal-required]
            updated["updated_at"] = self._now()

            self._tasks[task["id"]] = updated
            return updated.copy()

    def delete_task(self, task_id: int) -> bool:
        with self._lock:
            return self._tasks.pop(task_id, None) is not None

    def list_tasks(self, query: Optional[ListQuery] = None) -> Tuple[List[TaskEntity], int]:
        q = query or ListQuery()
        with self._lock:
            items = sorted(self._tasks.values(), key=lambda t: t["id"])
            total = len(items)

            start = max(q.offset, 0)
            end = start + max(q.limit, 0)
            return [t.copy() for t in items[start:end]], total

    def revoke_token(self, jti: str, expires_at: datetime) -> None:
        now = datetime.now(timezone.utc)
        with self._lock:
            # Drop entries for tokens that have expired on their own
            for key in [k for k, exp in self._revoked.items() if exp <= now]:
                del self._revoked[key]
            self._revoked[jti] = expires_at

    def is_token_revoked(self, jti: str) -> bool:
        with self._lock:
            return jti in self._revoked


@lru_cache(maxsize=1)
def _configured_repository() -> Repository:
    settings = get_settings()
    if settings.persistence_backend == "sqlite":
        from .db import SQLiteRepository

        return SQLiteRepository(settings.sqlite_db_path)
    return InMemoryRepository()


# PUBLIC_INTERFACE
def get_repository() -> Repository:
    """
    Return the process-wide repository selected by settings.
    - memory: InMemoryRepository
    - sqlite: SQLiteRepository (stdlib sqlite3)
    """
    return _configured_repository()
