from __future__ import annotations

from datetime import date, datetime
from enum import Enum
from typing import Optional, TypedDict


# PUBLIC_INTERFACE
class TaskStatus(str, Enum):
    """Closed set of task states."""

    PENDING = "Pending"
    IN_PROGRESS = "In Progress"
    COMPLETED = "Completed"


# PUBLIC_INTERFACE
class UserEntity(TypedDict):
    """
    A registered account as held by the storage backends.

    Fields:
    - id: Unique integer identifier assigned by the store
    - name: Display name (<=255 chars)
    - email: Unique email address (compared case-insensitively)
    - password_hash: bcrypt hash; never serialized to clients
    - created_at / updated_at: local timestamps
    """

    id: int
    name: str
    email: str
    password_hash: str
    created_at: datetime
    updated_at: datetime


# PUBLIC_INTERFACE
class TaskEntity(TypedDict):
    """
    A task record as held by the storage backends.

    Fields:
    - id: Unique integer identifier assigned by the store
    - title: Short title (<=255 chars)
    - description: Details (>=10 chars)
    - due_date: Calendar date the task is due
    - date_completed: Set only while status is Completed
    - status: TaskStatus member
    - owner_id: Id of the creating user; never changes
    - created_at / updated_at: local timestamps
    """

    id: int
    title: str
    description: str
    due_date: date
    date_completed: Optional[date]
    status: TaskStatus
    owner_id: int
    created_at: datetime
    updated_at: datetime
