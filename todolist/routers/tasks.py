from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from todolist.core.database import get_db
from todolist.core.deps import require_identity
from todolist.core.errors import Forbidden, NotFound
from todolist.core.security import Identity
from todolist.schemas.task import (
    DeleteResponse,
    TaskCreate,
    TaskEnvelope,
    TaskListResponse,
    TaskUpdate,
)
from todolist.services import task_service
from todolist.services.task_service import MutationStatus, TaskMutation

router = APIRouter(prefix="/tasks", tags=["tasks"])


def _raise_for_refusal(outcome: TaskMutation, action: str) -> None:
    if outcome.status is MutationStatus.FORBIDDEN:
        raise Forbidden(f"You do not have permission to {action} this task")
    if outcome.status is MutationStatus.NOT_FOUND:
        raise NotFound("Task not found")


@router.get("", response_model=TaskListResponse)
def list_tasks(
    identity: Identity = Depends(require_identity),
    db: Session = Depends(get_db),
):
    return {"tasks": task_service.list_tasks(db, identity.user_id)}


@router.post("", response_model=TaskEnvelope, status_code=status.HTTP_201_CREATED)
def create_task(
    task_data: TaskCreate,
    identity: Identity = Depends(require_identity),
    db: Session = Depends(get_db),
):
    task = task_service.create_task(db, identity.user_id, task_data.description)
    return {"task": task}


@router.put("/{task_id}", response_model=TaskEnvelope)
def update_task(
    task_id: str,
    task_data: TaskUpdate,
    identity: Identity = Depends(require_identity),
    db: Session = Depends(get_db),
):
    outcome = task_service.update_task(
        db,
        task_id,
        identity.user_id,
        description=task_data.description,
        completed=task_data.completed,
    )
    _raise_for_refusal(outcome, "update")
    return {"task": outcome.task}


@router.delete("/{task_id}", response_model=DeleteResponse)
def delete_task(
    task_id: str,
    identity: Identity = Depends(require_identity),
    db: Session = Depends(get_db),
):
    outcome = task_service.delete_task(db, task_id, identity.user_id)
    _raise_for_refusal(outcome, "delete")
    return {"success": True, "message": "Task deleted successfully"}
