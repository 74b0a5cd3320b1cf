"""FastAPI dependencies and project access helpers."""
from typing import Iterable, Optional

from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from taskboard.database import get_db
from taskboard.errors import AuthError, NotFoundError, PermissionDeniedError
from taskboard.models import MemberRole, ProjectMember, Task, User
from taskboard.security import decode_access_token

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login", auto_error=False)


def get_current_user(
    token: Optional[str] = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
) -> User:
    if not token:
        raise AuthError("Not authenticated")

    user = db.get(User, decode_access_token(token))
    if user is None:
        raise AuthError("User no longer exists")
    return user


def require_membership(
    db: Session,
    project_id: int,
    user: User,
    roles: Optional[Iterable[MemberRole]] = None,
    message: str = "You don't have access to this project",
) -> ProjectMember:
    """Return the caller's membership, optionally restricted to ``roles``."""
    query = db.query(ProjectMember).filter(
        ProjectMember.project_id == project_id,
        ProjectMember.user_id == user.id,
    )
    if roles is not None:
        query = query.filter(ProjectMember.role.in_(list(roles)))

    membership = query.first()
    if membership is None:
        raise PermissionDeniedError(message)
    return membership


def load_task_for_member(db: Session, task_id: int, user: User) -> Task:
    task = db.get(Task, task_id)
    if task is None:
        raise NotFoundError("Task not found")
    require_membership(db, task.project_id, user, message="You don't have access to this task")
    return task
