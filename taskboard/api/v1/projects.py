"""Project and membership endpoints"""
import logging
from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy import func
from sqlalchemy.orm import Session, selectinload

from taskboard.database import get_db
from taskboard.dependencies import get_current_user, require_membership
from taskboard.errors import ConflictError, NotFoundError, PermissionDeniedError
from taskboard.models import (
    DEFAULT_COLUMNS,
    MANAGER_ROLES,
    BoardColumn,
    MemberRole,
    Project,
    ProjectMember,
    Task,
    TaskStatus,
    User,
)
from taskboard.schemas import (
    ProjectCreate,
    ProjectDetailResponse,
    ProjectMemberCreate,
    ProjectMemberResponse,
    ProjectResponse,
    ProjectSummaryResponse,
    ProjectUpdate,
    TaskCounts,
)

router = APIRouter()
logger = logging.getLogger(__name__)


def _project_query(db: Session):
    return db.query(Project).options(
        selectinload(Project.owner),
        selectinload(Project.members).selectinload(ProjectMember.user),
        selectinload(Project.columns),
    )


def _load_project(db: Session, project_id: int) -> Project:
    project = _project_query(db).filter(Project.id == project_id).first()
    if not project:
        raise NotFoundError("Project not found")
    return project


def _task_counts(db: Session, project_ids: List[int]):
    rows = (
        db.query(Task.project_id, Task.status, func.count(Task.id))
        .filter(Task.project_id.in_(project_ids))
        .group_by(Task.project_id, Task.status)
        .all()
    )
    counts = {project_id: TaskCounts(total=0, done=0) for project_id in project_ids}
    for project_id, task_status, count in rows:
        counts[project_id].total += count
        if task_status == TaskStatus.DONE:
            counts[project_id].done += count
    return counts


@router.get("", response_model=List[ProjectSummaryResponse])
def list_projects(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """List projects the current user is a member of, most recently updated first."""
    projects = (
        _project_query(db)
        .join(ProjectMember, ProjectMember.project_id == Project.id)
        .filter(ProjectMember.user_id == current_user.id)
        .order_by(Project.updated_at.desc(), Project.id.desc())
        .all()
    )
    counts = _task_counts(db, [project.id for project in projects])
    return [
        ProjectSummaryResponse(
            **ProjectResponse.model_validate(project).model_dump(),
            members_count=len(project.members),
            tasks_count=counts[project.id],
        )
        for project in projects
    ]


@router.post("", response_model=ProjectDetailResponse, status_code=status.HTTP_201_CREATED)
def create_project(
    project_in: ProjectCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Create a project with the caller as OWNER and the default workflow columns."""
    project = Project(
        name=project_in.name,
        description=project_in.description,
        owner_id=current_user.id,
    )
    project.members.append(ProjectMember(user_id=current_user.id, role=MemberRole.OWNER))
    for column in DEFAULT_COLUMNS:
        project.columns.append(BoardColumn(**column))

    db.add(project)
    db.commit()
    logger.info("project_created", extra={"project_id": project.id, "user_id": current_user.id})
    return _load_project(db, project.id)


@router.get("/{project_id}", response_model=ProjectDetailResponse)
def get_project(
    project_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    project = _load_project(db, project_id)
    require_membership(db, project.id, current_user)
    return project


@router.put("/{project_id}", response_model=ProjectDetailResponse)
def update_project(
    project_id: int,
    project_update: ProjectUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    project = _load_project(db, project_id)
    require_membership(db, project.id, current_user, MANAGER_ROLES, "You are not allowed to edit this project")

    update_data = project_update.model_dump(exclude_unset=True)
    if update_data.get("name") is None:
        update_data.pop("name", None)

    for field, value in update_data.items():
        setattr(project, field, value)

    db.commit()
    return _load_project(db, project.id)


@router.delete("/{project_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_project(
    project_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Delete a project with its columns, tasks, memberships and dependencies."""
    project = _load_project(db, project_id)
    require_membership(
        db, project.id, current_user, [MemberRole.OWNER], "Only the owner can delete the project"
    )
    db.delete(project)
    db.commit()
    logger.info("project_deleted", extra={"project_id": project_id, "user_id": current_user.id})


@router.get("/{project_id}/members", response_model=List[ProjectMemberResponse])
def list_members(
    project_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    require_membership(db, project_id, current_user)
    return (
        db.query(ProjectMember)
        .options(selectinload(ProjectMember.user))
        .filter(ProjectMember.project_id == project_id)
        .order_by(ProjectMember.joined_at.asc(), ProjectMember.id.asc())
        .all()
    )


@router.post("/{project_id}/members", response_model=ProjectMemberResponse, status_code=status.HTTP_201_CREATED)
def add_member(
    project_id: int,
    member_in: ProjectMemberCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    require_membership(db, project_id, current_user, MANAGER_ROLES, "You are not allowed to add members")

    user = db.query(User).filter(User.email == member_in.email).first()
    if not user:
        raise NotFoundError("User not found")

    existing = db.query(ProjectMember).filter(
        ProjectMember.project_id == project_id,
        ProjectMember.user_id == user.id,
    ).first()
    if existing:
        raise ConflictError("User is already a project member")

    member = ProjectMember(project_id=project_id, user_id=user.id, role=MemberRole(member_in.role))
    db.add(member)
    db.commit()
    db.refresh(member)
    logger.info("member_added", extra={"project_id": project_id, "user_id": user.id})
    return member


@router.delete("/{project_id}/members/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_member(
    project_id: int,
    user_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    require_membership(db, project_id, current_user, MANAGER_ROLES, "You are not allowed to remove members")

    member = db.query(ProjectMember).filter(
        ProjectMember.project_id == project_id,
        ProjectMember.user_id == user_id,
    ).first()
    if not member:
        raise NotFoundError("Member not found")
    if member.role == MemberRole.OWNER:
        raise PermissionDeniedError("The project owner cannot be removed")

    db.delete(member)
    db.commit()
    logger.info("member_removed", extra={"project_id": project_id, "user_id": user_id})
