"""Gate evaluation for task status transitions.

A transition is checked in two steps, and the first denial wins:

1. Column lock. The column sitting at the task's ``order_index`` is looked
   up; if it is locked, every earlier task of the project (lower
   ``order_index``) must be DONE. The nearest unfinished one is cited.
2. Dependencies. Every direct dependency must be DONE. The first blocking
   dependency is cited.

Both checks are shallow: one predecessor lookup and one level
of dependencies. Nothing here writes to the database.
"""
import logging
from dataclasses import dataclass
from typing import Iterable, Optional, Union

from sqlalchemy.orm import Session

from taskboard.models import BoardColumn, Task
from taskboard.workflow.dependency_graph import blocking_dependencies_of
from taskboard.workflow.status import TaskStatus

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GateDecision:
    allowed: bool
    reason: Optional[str] = None


ALLOWED = GateDecision(allowed=True)


def column_at_position(columns: Iterable[BoardColumn], order_index: int) -> Optional[BoardColumn]:
    """Return the column whose position matches a task's ``order_index``.

    Task indices are scoped per status lane while column indices are scoped
    per project; the two are compared as plain integers. Keep that coupling
    confined to this function.
    """
    for column in columns:
        if column.order_index == order_index:
            return column
    return None


def first_unfinished_predecessor(db: Session, task: Task) -> Optional[Task]:
    """Nearest task of the same project positioned before ``task`` and not DONE."""
    return (
        db.query(Task)
        .filter(
            Task.project_id == task.project_id,
            Task.order_index < task.order_index,
            Task.status != TaskStatus.DONE,
        )
        .order_by(Task.order_index.desc(), Task.id.asc())
        .first()
    )


def evaluate_lock(db: Session, task: Task) -> GateDecision:
    """Run both checks for ``task`` leaving its current status."""
    columns = (
        db.query(BoardColumn)
        .filter(BoardColumn.project_id == task.project_id)
        .order_by(BoardColumn.order_index.asc(), BoardColumn.id.asc())
        .all()
    )
    column = column_at_position(columns, task.order_index)
    if column is not None and column.is_locked:
        predecessor = first_unfinished_predecessor(db, task)
        if predecessor is not None:
            logger.debug(
                "gate_column_locked",
                extra={"task_id": task.id, "column_id": column.id},
            )
            return GateDecision(False, f'Must first complete "{predecessor.title}"')

    blocking = blocking_dependencies_of(db, task.id)
    if blocking:
        return GateDecision(False, f'Must first complete dependency "{blocking[0].depends_on.title}"')

    return ALLOWED


def evaluate_transition(db: Session, task: Task, new_status: Union[TaskStatus, str]) -> GateDecision:
    """Decide whether ``task`` may move to ``new_status``.

    Requesting the current status is always allowed and skips both checks.
    Direction and distance of the move are irrelevant.
    """
    if TaskStatus(new_status) == task.status:
        return ALLOWED
    return evaluate_lock(db, task)
