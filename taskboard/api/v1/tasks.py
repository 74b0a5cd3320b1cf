"""Task, status transition and dependency endpoints"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session, selectinload

from taskboard.database import get_db
from taskboard.dependencies import get_current_user, load_task_for_member, require_membership
from taskboard.errors import NotFoundError, ValidationError
from taskboard.models import BoardColumn, Project, ProjectMember, Task, TaskDependency, User
from taskboard.schemas import (
    ColumnResponse,
    ProjectTasksResponse,
    TaskCreate,
    TaskDependencyCreate,
    TaskDependencyResponse,
    TaskDetailResponse,
    TaskLockResponse,
    TaskOrderUpdate,
    TaskResponse,
    TaskStatusUpdate,
    TaskUpdate,
)
from taskboard.workflow.dependency_graph import add_dependency, remove_dependency
from taskboard.workflow.gate import evaluate_lock
from taskboard.workflow.ordering import next_task_index, set_task_order
from taskboard.workflow.revision import bump_workflow_version
from taskboard.workflow.transitions import transition_task_status

router = APIRouter()
logger = logging.getLogger(__name__)


def _task_query(db: Session):
    return db.query(Task).options(
        selectinload(Task.assignee),
        selectinload(Task.creator),
        selectinload(Task.dependencies).selectinload(TaskDependency.depends_on),
        selectinload(Task.dependents).selectinload(TaskDependency.task),
    )


def _load_task_detail(db: Session, task_id: int) -> Task:
    task = _task_query(db).filter(Task.id == task_id).first()
    if not task:
        raise NotFoundError("Task not found")
    return task


def _ensure_assignable(db: Session, project_id: int, assignee_id: Optional[int]) -> None:
    if assignee_id is None:
        return
    member = db.query(ProjectMember).filter(
        ProjectMember.project_id == project_id,
        ProjectMember.user_id == assignee_id,
    ).first()
    if member is None:
        raise ValidationError("Assignee must be a project member", {"assignee_id": "not a project member"})


@router.get("/project/{project_id}", response_model=ProjectTasksResponse)
def list_project_tasks(
    project_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Return a project's tasks and columns, both in board order."""
    require_membership(db, project_id, current_user)

    tasks = (
        _task_query(db)
        .filter(Task.project_id == project_id)
        .order_by(Task.order_index.asc(), Task.id.asc())
        .all()
    )
    columns = (
        db.query(BoardColumn)
        .filter(BoardColumn.project_id == project_id)
        .order_by(BoardColumn.order_index.asc(), BoardColumn.id.asc())
        .all()
    )
    return ProjectTasksResponse(
        tasks=[TaskDetailResponse.model_validate(task) for task in tasks],
        columns=[ColumnResponse.model_validate(column) for column in columns],
    )


@router.get("/{task_id}", response_model=TaskDetailResponse)
def get_task(
    task_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    load_task_for_member(db, task_id, current_user)
    return _load_task_detail(db, task_id)


@router.post("", response_model=TaskResponse, status_code=status.HTTP_201_CREATED)
def create_task(
    task_in: TaskCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Create a task at the end of its status lane."""
    if db.get(Project, task_in.project_id) is None:
        raise NotFoundError("Project not found")
    require_membership(
        db, task_in.project_id, current_user, message="You are not allowed to add tasks to this project"
    )
    _ensure_assignable(db, task_in.project_id, task_in.assignee_id)

    task = Task(
        project_id=task_in.project_id,
        title=task_in.title,
        description=task_in.description,
        status=task_in.status,
        priority=task_in.priority,
        assignee_id=task_in.assignee_id,
        due_date=task_in.due_date,
        order_index=next_task_index(db, task_in.project_id, task_in.status),
        created_by_id=current_user.id,
    )
    db.add(task)
    bump_workflow_version(db, task_in.project_id)
    db.commit()
    db.refresh(task)
    logger.info("task_created", extra={"task_id": task.id, "project_id": task.project_id})
    return task


@router.put("/{task_id}", response_model=TaskResponse)
def update_task(
    task_id: int,
    task_update: TaskUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Edit task fields. A status change goes through the gate first."""
    task = load_task_for_member(db, task_id, current_user)

    update_data = task_update.model_dump(exclude_unset=True)
    new_status = update_data.pop("status", None)
    if update_data.get("title") is None:
        update_data.pop("title", None)
    if update_data.get("priority") is None:
        update_data.pop("priority", None)
    if "assignee_id" in update_data:
        _ensure_assignable(db, task.project_id, update_data["assignee_id"])

    if new_status is not None:
        task = transition_task_status(db, task_id, new_status)

    if update_data:
        for field, value in update_data.items():
            setattr(task, field, value)
        db.commit()
        db.refresh(task)
    return task


@router.delete("/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_task(
    task_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Delete a task and every dependency edge touching it."""
    task = load_task_for_member(db, task_id, current_user)
    project_id = task.project_id
    db.delete(task)
    bump_workflow_version(db, project_id)
    db.commit()
    logger.info("task_deleted", extra={"task_id": task_id, "project_id": project_id})


@router.put("/{task_id}/status", response_model=TaskResponse)
def update_task_status(
    task_id: int,
    status_in: TaskStatusUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    load_task_for_member(db, task_id, current_user)
    return transition_task_status(db, task_id, status_in.status)


@router.get("/{task_id}/lock", response_model=TaskLockResponse)
def get_task_lock(
    task_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Report whether the task could leave its current status right now."""
    task = load_task_for_member(db, task_id, current_user)
    decision = evaluate_lock(db, task)
    return TaskLockResponse(locked=not decision.allowed, reason=decision.reason)


@router.put("/{task_id}/order", response_model=TaskResponse)
def reorder_task(
    task_id: int,
    order_in: TaskOrderUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    task = load_task_for_member(db, task_id, current_user)
    column = db.get(BoardColumn, order_in.column_id)
    if column is None or column.project_id != task.project_id:
        raise NotFoundError("Column not found")
    return set_task_order(db, task, order_in.order_index)


@router.post("/{task_id}/dependencies", response_model=TaskDependencyResponse, status_code=status.HTTP_201_CREATED)
def create_dependency(
    task_id: int,
    dependency_in: TaskDependencyCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    load_task_for_member(db, task_id, current_user)
    return add_dependency(db, task_id, dependency_in.depends_on_id)


@router.delete("/{task_id}/dependencies/{depends_on_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_dependency(
    task_id: int,
    depends_on_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    load_task_for_member(db, task_id, current_user)
    remove_dependency(db, task_id, depends_on_id)
