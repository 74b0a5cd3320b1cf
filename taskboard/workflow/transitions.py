"""Atomic status transitions.

The gate is a check-then-act: a decision computed from stale rows could let
a write through after a predecessor was reopened, a dependency left DONE or
a column was locked. Each attempt below reloads the task, reads the
project's workflow stamp, evaluates the gate and then writes only if both
the stamp and ``Task.version`` are still the ones it read. Otherwise the
attempt is rolled back and retried against fresh state.
"""
import logging
from typing import Optional, Union

from sqlalchemy import func, update
from sqlalchemy.orm import Session

from taskboard.config import settings
from taskboard.errors import ConflictError, NotFoundError, TaskLockedError
from taskboard.models import Task
from taskboard.workflow.gate import evaluate_transition
from taskboard.workflow.revision import claim_workflow_version, read_workflow_version
from taskboard.workflow.status import TaskStatus

logger = logging.getLogger(__name__)


def _write_status(db: Session, task: Task, new_status: TaskStatus, seen_revision: int) -> bool:
    if not claim_workflow_version(db, task.project_id, seen_revision):
        return False
    result = db.execute(
        update(Task)
        .where(Task.id == task.id, Task.version == task.version)
        .values(status=new_status, version=Task.version + 1, updated_at=func.now())
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


def transition_task_status(
    db: Session,
    task_id: int,
    new_status: Union[TaskStatus, str],
    max_retries: Optional[int] = None,
) -> Task:
    """Move a task to ``new_status`` if the gate allows it.

    Raises ``TaskLockedError`` carrying the gate's reason on denial,
    ``NotFoundError`` for an unknown task, and ``ConflictError`` when
    concurrent writers keep winning for ``max_retries`` attempts.
    """
    new_status = TaskStatus(new_status)
    attempts = max_retries if max_retries is not None else settings.TRANSITION_MAX_RETRIES

    for attempt in range(1, attempts + 1):
        task = db.query(Task).populate_existing().filter(Task.id == task_id).first()
        if task is None:
            raise NotFoundError("Task not found")

        if task.status == new_status:
            return task

        # Read before the gate so any later board write invalidates the decision
        seen_revision = read_workflow_version(db, task.project_id)
        decision = evaluate_transition(db, task, new_status)
        if not decision.allowed:
            logger.info(
                "transition_denied",
                extra={
                    "task_id": task.id,
                    "project_id": task.project_id,
                    "from_status": task.status.value,
                    "to_status": new_status.value,
                },
            )
            raise TaskLockedError(decision.reason)

        from_status = task.status
        if _write_status(db, task, new_status, seen_revision):
            db.commit()
            db.refresh(task)
            logger.info(
                "transition_applied",
                extra={
                    "task_id": task.id,
                    "project_id": task.project_id,
                    "from_status": from_status.value,
                    "to_status": new_status.value,
                },
            )
            return task

        db.rollback()
        logger.warning("transition_retry", extra={"task_id": task_id, "attempt": attempt})

    raise ConflictError("Task was modified concurrently, please retry")
