"""Per-project workflow revision stamp.

Writes that can change a gate decision bump ``Project.workflow_version`` in
the same transaction as the change itself: task creation and deletion, task
status and position, column layout and locks, dependency edges. A status
transition reads the stamp before evaluating the gate and claims it with a
conditional UPDATE before writing, so the decision it applies was computed
on the state it is committed over.
"""
from typing import Optional

from sqlalchemy import update
from sqlalchemy.orm import Session

from taskboard.models import Project


def _stamp_update(project_id: int):
    # Board activity is not a project edit; updated_at stays as it is
    return (
        update(Project)
        .where(Project.id == project_id)
        .values(workflow_version=Project.workflow_version + 1, updated_at=Project.updated_at)
        .execution_options(synchronize_session=False)
    )


def read_workflow_version(db: Session, project_id: int) -> Optional[int]:
    return db.query(Project.workflow_version).filter(Project.id == project_id).scalar()


def bump_workflow_version(db: Session, project_id: int) -> None:
    """Invalidate gate decisions taken on the project's current state."""
    db.execute(_stamp_update(project_id))


def claim_workflow_version(db: Session, project_id: int, seen: int) -> bool:
    """Bump the stamp only if it still equals ``seen``.

    Returns False when another writer changed the board since ``seen`` was
    read; the caller must roll back.
    """
    result = db.execute(_stamp_update(project_id).where(Project.workflow_version == seen))
    return result.rowcount == 1
