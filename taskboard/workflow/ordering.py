"""Order-index assignment for columns and tasks.

Columns are ordered per project; tasks are ordered per project *and* status
lane. Neither space is kept contiguous or unique.
"""
import logging
from typing import Iterable, List, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session

from taskboard.errors import NotFoundError
from taskboard.models import BoardColumn, Task
from taskboard.workflow.revision import bump_workflow_version
from taskboard.workflow.status import TaskStatus

logger = logging.getLogger(__name__)


def _append_index(db: Session, column, *criteria) -> int:
    max_value = db.query(func.max(column)).filter(*criteria).scalar()
    return (max_value if max_value is not None else -1) + 1


def next_column_index(db: Session, project_id: int) -> int:
    return _append_index(db, BoardColumn.order_index, BoardColumn.project_id == project_id)


def next_task_index(db: Session, project_id: int, status: TaskStatus) -> int:
    """Index for a task appended to the ``status`` lane of a project.

    Two concurrent appends to the same lane may compute the same value;
    duplicate indices are legal and only produce display ties.
    """
    return _append_index(
        db,
        Task.order_index,
        Task.project_id == project_id,
        Task.status == status,
    )


def reorder_columns(db: Session, project_id: int, positions: Iterable[Tuple[int, int]]) -> List[BoardColumn]:
    """Apply ``(column_id, order_index)`` pairs as one batch.

    The caller supplies the permutation; gaps, duplicates and omitted columns
    are not checked. Every id must belong to ``project_id``, otherwise nothing
    is applied. Commits on success and returns the project's columns in order.
    """
    positions = list(positions)
    wanted_ids = {column_id for column_id, _ in positions}
    columns = {
        column.id: column
        for column in db.query(BoardColumn).filter(
            BoardColumn.project_id == project_id,
            BoardColumn.id.in_(wanted_ids),
        )
    }
    missing = wanted_ids - set(columns)
    if missing:
        raise NotFoundError(f"Column not found: {', '.join(str(i) for i in sorted(missing))}")

    try:
        for column_id, order_index in positions:
            columns[column_id].order_index = order_index
        bump_workflow_version(db, project_id)
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info("columns_reordered", extra={"project_id": project_id})
    return (
        db.query(BoardColumn)
        .filter(BoardColumn.project_id == project_id)
        .order_by(BoardColumn.order_index.asc())
        .all()
    )


def set_task_order(db: Session, task: Task, order_index: int) -> Task:
    """Move ``task`` to ``order_index`` without checking sibling collisions.

    The position feeds the column-lock check, so the task's version and the
    project's workflow stamp are bumped with it.
    """
    task.order_index = order_index
    task.version = Task.version + 1
    bump_workflow_version(db, task.project_id)
    db.commit()
    db.refresh(task)
    logger.info("task_reordered", extra={"task_id": task.id, "project_id": task.project_id})
    return task
