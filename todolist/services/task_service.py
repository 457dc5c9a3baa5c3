"""Task service

Toutes les opérations sont scopées par propriétaire. Pour update/delete, le contrôle
de propriété fait partie du même statement SQL (WHERE id = ? AND user_id = ?).
"""

import enum
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

from sqlalchemy import delete, update
from sqlalchemy.orm import Session

from todolist.models.task import Task

logger = logging.getLogger(__name__)


class MutationStatus(enum.Enum):
    OK = "ok"
    NOT_FOUND = "not_found"
    FORBIDDEN = "forbidden"


@dataclass
class TaskMutation:
    status: MutationStatus
    task: Optional[Task] = None

    @property
    def ok(self) -> bool:
        return self.status is MutationStatus.OK


def _missing_or_forbidden(db: Session, task_id: str) -> TaskMutation:
    # Rien n'a été modifié: on cherche seulement à savoir pourquoi
    exists = db.query(Task.id).filter(Task.id == task_id).first() is not None
    return TaskMutation(MutationStatus.FORBIDDEN if exists else MutationStatus.NOT_FOUND)


def create_task(db: Session, owner_id: str, description: str) -> Task:
    if not isinstance(description, str) or not description.strip():
        raise ValueError("Task description cannot be empty or whitespace-only")

    task = Task(user_id=owner_id, description=description.strip(), completed=False)
    db.add(task)
    db.commit()
    db.refresh(task)
    return task


def list_tasks(db: Session, owner_id: str) -> List[Task]:
    return (
        db.query(Task)
        .filter(Task.user_id == owner_id)
        .order_by(Task.created_at.desc())
        .all()
    )


def get_task(db: Session, task_id: str, owner_id: str) -> Optional[Task]:
    return db.query(Task).filter(Task.id == task_id, Task.user_id == owner_id).first()


def update_task(
    db: Session,
    task_id: str,
    owner_id: str,
    description: Optional[str] = None,
    completed: Optional[bool] = None,
) -> TaskMutation:
    values = {"updated_at": datetime.utcnow()}
    if description is not None:
        if not description.strip():
            raise ValueError("Task description cannot be empty or whitespace-only")
        values["description"] = description.strip()
    if completed is not None:
        values["completed"] = bool(completed)

    result = db.execute(
        update(Task)
        .where(Task.id == task_id, Task.user_id == owner_id)
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        db.rollback()
        outcome = _missing_or_forbidden(db, task_id)
        logger.info("Update of task %s by %s refused: %s", task_id, owner_id, outcome.status.value)
        return outcome

    db.commit()
    # le propriétaire d'une tâche ne change jamais, relire par (id, owner) est sûr
    task = get_task(db, task_id, owner_id)
    if task is None:
        # supprimée entre-temps par une autre requête du même propriétaire
        return TaskMutation(MutationStatus.NOT_FOUND)
    return TaskMutation(MutationStatus.OK, task)


def delete_task(db: Session, task_id: str, owner_id: str) -> TaskMutation:
    result = db.execute(
        delete(Task)
        .where(Task.id == task_id, Task.user_id == owner_id)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        db.rollback()
        outcome = _missing_or_forbidden(db, task_id)
        logger.info("Delete of task %s by %s refused: %s", task_id, owner_id, outcome.status.value)
        return outcome

    db.commit()
    return TaskMutation(MutationStatus.OK)
