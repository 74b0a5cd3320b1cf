"""Board column endpoints"""
import logging
from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from taskboard.database import get_db
from taskboard.dependencies import get_current_user, require_membership
from taskboard.errors import NotFoundError
from taskboard.models import MANAGER_ROLES, BoardColumn, Project, User
from taskboard.schemas import ColumnCreate, ColumnReorder, ColumnResponse, ColumnUpdate
from taskboard.workflow.ordering import next_column_index, reorder_columns
from taskboard.workflow.revision import bump_workflow_version

router = APIRouter()
logger = logging.getLogger(__name__)


def _load_column(db: Session, column_id: int) -> BoardColumn:
    column = db.get(BoardColumn, column_id)
    if not column:
        raise NotFoundError("Column not found")
    return column


@router.get("/{project_id}", response_model=List[ColumnResponse])
def list_columns(
    project_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    require_membership(db, project_id, current_user)
    return (
        db.query(BoardColumn)
        .filter(BoardColumn.project_id == project_id)
        .order_by(BoardColumn.order_index.asc(), BoardColumn.id.asc())
        .all()
    )


@router.post("/{project_id}", response_model=ColumnResponse, status_code=status.HTTP_201_CREATED)
def create_column(
    project_id: int,
    column_in: ColumnCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Append a column after the project's last one."""
    if db.get(Project, project_id) is None:
        raise NotFoundError("Project not found")
    require_membership(db, project_id, current_user, MANAGER_ROLES, "You are not allowed to add columns")

    column = BoardColumn(
        project_id=project_id,
        name=column_in.name,
        is_locked=column_in.is_locked,
        order_index=next_column_index(db, project_id),
    )
    db.add(column)
    bump_workflow_version(db, project_id)
    db.commit()
    db.refresh(column)
    logger.info("column_created", extra={"project_id": project_id, "column_id": column.id})
    return column


@router.put("/{project_id}/reorder", response_model=List[ColumnResponse])
def reorder_project_columns(
    project_id: int,
    reorder_in: ColumnReorder,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    require_membership(db, project_id, current_user, MANAGER_ROLES, "You are not allowed to reorder columns")
    return reorder_columns(
        db,
        project_id,
        [(position.id, position.order_index) for position in reorder_in.columns],
    )


@router.put("/{column_id}", response_model=ColumnResponse)
def update_column(
    column_id: int,
    column_update: ColumnUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Rename a column or toggle its lock."""
    column = _load_column(db, column_id)
    require_membership(db, column.project_id, current_user, MANAGER_ROLES, "You are not allowed to edit columns")

    for field, value in column_update.model_dump(exclude_unset=True, exclude_none=True).items():
        setattr(column, field, value)
    bump_workflow_version(db, column.project_id)

    db.commit()
    db.refresh(column)
    return column


@router.delete("/{column_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_column(
    column_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Delete a column. Tasks keep their order indices."""
    column = _load_column(db, column_id)
    project_id = column.project_id
    require_membership(db, project_id, current_user, MANAGER_ROLES, "You are not allowed to delete columns")
    db.delete(column)
    bump_workflow_version(db, project_id)
    db.commit()
    logger.info("column_deleted", extra={"project_id": project_id, "column_id": column_id})
