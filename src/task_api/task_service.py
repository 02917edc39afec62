"""
Task lifecycle: listing, lookup, creation, update and deletion of tasks.

Reads are open to everyone. Update and delete load the task once, check that
the acting user owns it, and only then validate and write.
"""
from __future__ import annotations

import logging
from datetime import date
from typing import Any, Callable, List, Mapping, Tuple, Union

from fastapi import Depends

from .errors import AuthorizationError, NotFoundError
from .models import TaskEntity, TaskStatus
from .policies import ensure_can_mutate
from .repositories import ListQuery, Repository, get_repository
from .schemas import TaskCreate, TaskUpdate
from .validation import validate

logger = logging.getLogger(__name__)

Payload = Union[Mapping[str, Any], TaskCreate, TaskUpdate, None]


# PUBLIC_INTERFACE
class TaskService:
    """Orchestrates task operations on top of a Repository."""

    def __init__(self, repo: Repository, today: Callable[[], date] = date.today) -> None:
        self._repo = repo
        self._today = today

    def list(self, page: int = 1, per_page: int = 10) -> Tuple[List[TaskEntity], int]:
        """Return the tasks on a 1-based page, in creation order, plus the total count."""
        page = max(page, 1)
        per_page = max(per_page, 1)
        return self._repo.list_tasks(ListQuery(limit=per_page, offset=(page - 1) * per_page))

    def get(self, task_id: int) -> TaskEntity:
        task = self._repo.get_task(task_id)
        if task is None:
            raise NotFoundError("Task not found")
        return task

    def create(self, acting_user_id: int, payload: Payload) -> TaskEntity:
        data: TaskCreate = validate("create-task", payload)
        task = self._repo.create_task(
            owner_id=acting_user_id,
            title=data.title,
            description=data.description,
            due_date=data.due_date,
            status=TaskStatus.PENDING,
            date_completed=None,
        )
        logger.info("User %s created task %s", acting_user_id, task["id"])
        return task

    def update(self, acting_user_id: int, task_id: int, payload: Payload) -> TaskEntity:
        """
        Apply the fields present in payload to the task.

        date_completed is recomputed on every update from the resulting
        status, whether or not status itself was part of the request.

        Raises:
            NotFoundError: no task with task_id.
            AuthorizationError: acting user is not the owner.
            ValidationError: payload violates the update rules.
        """
        task = self.get(task_id)
        self._ensure_owner(acting_user_id, task, "update")
        data: TaskUpdate = validate("update-task", payload)

        changes = data.model_dump(exclude_unset=True)
        merged: TaskEntity = {**task, **changes}  # type: ignore[typeddict-item]
        merged["status"] = TaskStatus(merged["status"])
        if merged["status"] is TaskStatus.COMPLETED:
            merged["date_completed"] = self._today()
        else:
            merged["date_completed"] = None

        saved = self._repo.save_task(merged)
        if saved is None:
            # Deleted between our read and write.
            raise NotFoundError("Task not found")
        logger.info("User %s updated task %s (%s)", acting_user_id, task_id, ", ".join(sorted(changes)) or "no fields")
        return saved

    def delete(self, acting_user_id: int, task_id: int) -> TaskEntity:
        """Remove the task and return the snapshot taken before deletion."""
        task = self.get(task_id)
        self._ensure_owner(acting_user_id, task, "delete")
        if not self._repo.delete_task(task_id):
            raise NotFoundError("Task not found")
        logger.info("User %s deleted task %s", acting_user_id, task_id)
        return task

    def _ensure_owner(self, acting_user_id: int, task: TaskEntity, action: str) -> None:
        try:
            ensure_can_mutate(acting_user_id, task)
        except AuthorizationError:
            logger.warning(
                "User %s may not %s task %s owned by %s", acting_user_id, action, task["id"], task["owner_id"]
            )
            raise


# PUBLIC_INTERFACE
def get_task_service(repo: Repository = Depends(get_repository)) -> TaskService:
    """FastAPI dependency building a TaskService around the configured repository."""
    return TaskService(repo)

