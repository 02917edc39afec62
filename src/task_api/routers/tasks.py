from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, Query, Request, status

from ..auth import AuthContext, require_auth
from ..schemas import Envelope, TaskOut, TaskPage
from ..settings import get_settings
from ..task_service import TaskService, get_task_service
from ..utils import pagination_envelope

router = APIRouter(
    prefix="/tasks",
    tags=["tasks"],
)

_AUTH_RESPONSES: Dict[int, Dict[str, Any]] = {401: {"description": "Missing, invalid or expired bearer token"}}


# PUBLIC_INTERFACE
@router.get(
    "",
    response_model=Envelope[TaskPage],
    summary="List Tasks",
    description=(
        "List every task in creation order, one page at a time. No authentication required.\n\n"
        "Query parameters:\n"
        "- page: 1-based page number\n"
        "- per_page: page size (defaults to TASKS_PER_PAGE, max 100)"
    ),
    responses={
        200: {"description": "Page retrieved successfully"},
        422: {"description": "Invalid query parameters"},
    },
)
def list_tasks(
    request: Request,
    page: int = Query(1, ge=1, description="1-based page number"),
    per_page: Optional[int] = Query(None, ge=1, le=100, description="Number of tasks per page"),
    service: TaskService = Depends(get_task_service),
) -> Envelope[TaskPage]:
    """
    List tasks with pagination.
    """
    default_per_page = get_settings().tasks_per_page
    size = per_page or default_per_page
    items, total = service.list(page=page, per_page=size)
    envelope = pagination_envelope(
        items=[TaskOut(**it) for it in items],
        total=total,
        page=page,
        per_page=size,
        path=str(request.url.replace(query="")),
        default_per_page=default_per_page,
    )
    return Envelope[TaskPage](message="Success", data=TaskPage.model_validate(envelope))


# PUBLIC_INTERFACE
@router.post(
    "",
    response_model=Envelope[TaskOut],
    status_code=status.HTTP_201_CREATED,
    summary="Create Task",
    description="Create a task owned by the authenticated user. Status starts as Pending.",
    responses={
        201: {"description": "Task created successfully"},
        **_AUTH_RESPONSES,
        422: {"description": "Validation error"},
    },
)
def create_task(
    payload: Optional[Dict[str, Any]] = Body(None),
    auth: AuthContext = Depends(require_auth),
    service: TaskService = Depends(get_task_service),
) -> Envelope[TaskOut]:
    """
    Create a new task.
    """
    created = service.create(auth.user_id, payload)
    return Envelope[TaskOut](message="New task created successfully", data=TaskOut(**created))


# PUBLIC_INTERFACE
@router.get(
    "/{task_id}",
    response_model=Envelope[TaskOut],
    summary="Get Task",
    description="Get a single task by ID. No authentication required.",
    responses={
        200: {"description": "Task found"},
        404: {"description": "Task not found"},
    },
)
def get_task(task_id: int, service: TaskService = Depends(get_task_service)) -> Envelope[TaskOut]:
    """
    Retrieve a single task by its ID.
    """
    return Envelope[TaskOut](message="Success", data=TaskOut(**service.get(task_id)))


# PUBLIC_INTERFACE
@router.put(
    "/{task_id}",
    response_model=Envelope[TaskOut],
    summary="Update Task",
    description=(
        "Update any subset of title, description, due_date and status. Only the owner may update. "
        "date_completed is set to today while status is Completed and cleared otherwise."
    ),
    responses={
        200: {"description": "Task updated"},
        **_AUTH_RESPONSES,
        403: {"description": "Caller is not the owner"},
        404: {"description": "Task not found"},
        422: {"description": "Validation error"},
    },
)
@router.patch(
    "/{task_id}",
    response_model=Envelope[TaskOut],
    summary="Patch Task",
    description="Same as PUT: only the fields provided are changed.",
    responses={
        200: {"description": "Task updated"},
        **_AUTH_RESPONSES,
        403: {"description": "Caller is not the owner"},
        404: {"description": "Task not found"},
        422: {"description": "Validation error"},
    },
)
def update_task(
    task_id: int,
    payload: Optional[Dict[str, Any]] = Body(None),
    auth: AuthContext = Depends(require_auth),
    service: TaskService = Depends(get_task_service),
) -> Envelope[TaskOut]:
    """
    Partial update of a task by its owner.
    """
    updated = service.update(auth.user_id, task_id, payload)
    return Envelope[TaskOut](message="Task was updated successfully", data=TaskOut(**updated))


# PUBLIC_INTERFACE
@router.delete(
    "/{task_id}",
    response_model=Envelope[TaskOut],
    summary="Delete Task",
    description="Delete a task by ID and return the deleted record. Only the owner may delete.",
    responses={
        200: {"description": "Task deleted"},
        **_AUTH_RESPONSES,
        403: {"description": "Caller is not the owner"},
        404: {"description": "Task not found"},
    },
)
def delete_task(
    task_id: int,
    auth: AuthContext = Depends(require_auth),
    service: TaskService = Depends(get_task_service),
) -> Envelope[TaskOut]:
    """
    Delete a task. Returns the snapshot of the removed task.
    """
    deleted = service.delete(auth.user_id, task_id)
    return Envelope[TaskOut](message="Task was deleted successfully", data=TaskOut(**deleted))
