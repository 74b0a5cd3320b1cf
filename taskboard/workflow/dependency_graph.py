"""Directed "must finish before" edges between tasks of one project.

An edge ``(task_id, depends_on_id)`` keeps ``task_id`` blocked until
``depends_on_id`` is DONE. Only direct edges are ever consulted by the gate.
"""
import logging
from typing import List, Optional, Set

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, contains_eager

from taskboard.config import settings
from taskboard.errors import ConflictError, NotFoundError, ValidationError
from taskboard.models import Task, TaskDependency
from taskboard.workflow.revision import bump_workflow_version
from taskboard.workflow.status import TaskStatus

logger = logging.getLogger(__name__)


def _creates_cycle(db: Session, task_id: int, depends_on_id: int, max_depth: int) -> bool:
    """Return True if ``task_id`` is reachable from ``depends_on_id``.

    The walk follows outgoing edges breadth first and stops after
    ``max_depth`` levels; anything deeper is treated as unreachable.
    """
    frontier = {depends_on_id}
    visited: Set[int] = set()
    for _ in range(max_depth):
        if not frontier:
            return False
        visited.update(frontier)
        rows = (
            db.query(TaskDependency.depends_on_id)
            .filter(TaskDependency.task_id.in_(frontier))
            .all()
        )
        next_ids = {row[0] for row in rows}
        if task_id in next_ids:
            return True
        frontier = next_ids - visited
    if frontier:
        logger.warning(
            "dependency_cycle_check_truncated",
            extra={"task_id": task_id, "depends_on_id": depends_on_id},
        )
    return False


def add_dependency(
    db: Session,
    task_id: int,
    depends_on_id: int,
    check_cycles: Optional[bool] = None,
    max_depth: Optional[int] = None,
) -> TaskDependency:
    """Create the edge ``task_id -> depends_on_id`` and commit it.

    Cycles are allowed unless ``check_cycles`` (default:
    ``settings.DEPENDENCY_CYCLE_CHECK``) is enabled.
    """
    if task_id == depends_on_id:
        raise ValidationError("A task cannot depend on itself")

    task = db.get(Task, task_id)
    if task is None:
        raise NotFoundError("Task not found")

    depends_on = db.get(Task, depends_on_id)
    if depends_on is None:
        raise NotFoundError("Dependency task not found")

    if depends_on.project_id != task.project_id:
        raise ValidationError("Dependencies can only link tasks of the same project")

    if db.get(TaskDependency, (task_id, depends_on_id)) is not None:
        raise ConflictError("Dependency already exists")

    if check_cycles is None:
        check_cycles = settings.DEPENDENCY_CYCLE_CHECK
    if check_cycles:
        depth = max_depth if max_depth is not None else settings.DEPENDENCY_CYCLE_MAX_DEPTH
        if _creates_cycle(db, task_id, depends_on_id, depth):
            raise ValidationError("Dependency would create a cycle")

    dependency = TaskDependency(task_id=task_id, depends_on_id=depends_on_id)
    db.add(dependency)
    bump_workflow_version(db, task.project_id)
    try:
        db.commit()
    except IntegrityError:
        # Lost a race against an identical insert
        db.rollback()
        raise ConflictError("Dependency already exists")
    db.refresh(dependency)

    logger.info(
        "dependency_added",
        extra={"task_id": task_id, "depends_on_id": depends_on_id, "project_id": task.project_id},
    )
    return dependency


def remove_dependency(db: Session, task_id: int, depends_on_id: int) -> None:
    dependency = db.get(TaskDependency, (task_id, depends_on_id))
    if dependency is None:
        raise NotFoundError("Dependency not found")

    project_id = dependency.task.project_id
    db.delete(dependency)
    bump_workflow_version(db, project_id)
    db.commit()
    logger.info("dependency_removed", extra={"task_id": task_id, "depends_on_id": depends_on_id})


def blocking_dependencies_of(db: Session, task_id: int) -> List[TaskDependency]:
    """Direct dependencies of ``task_id`` whose target is not yet DONE.

    Ordered by edge creation. Dependencies of dependencies are not consulted.
    """
    return (
        db.query(TaskDependency)
        .join(TaskDependency.depends_on)
        .options(contains_eager(TaskDependency.depends_on))
        .filter(
            TaskDependency.task_id == task_id,
            Task.status != TaskStatus.DONE,
        )
        .order_by(TaskDependency.created_at.asc(), TaskDependency.depends_on_id.asc())
        .all()
    )
