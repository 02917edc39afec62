from __future__ import annotations

from .errors import AuthorizationError
from .models import TaskEntity


# PUBLIC_INTERFACE
def can_mutate(acting_user_id: int, owner_id: int) -> bool:
    """Only the user who created a task may update or delete it."""
    return acting_user_id == owner_id


def ensure_can_mutate(acting_user_id: int, task: TaskEntity) -> None:
    """Raise AuthorizationError unless acting_user_id owns the task."""
    if not can_mutate(acting_user_id, task["owner_id"]):
        raise AuthorizationError()
