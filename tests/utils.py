"""Setup helpers shared by the test modules."""
from sqlalchemy.orm import Session

import taskboard.api.v1.projects as project_routes
import taskboard.api.v1.tasks as task_routes
from taskboard import schemas
from taskboard.models import Project, Task, TaskStatus, User
from taskboard.security import hash_password


def make_user(session: Session, name: str, password: str = "secret123") -> User:
    user = User(email=f"{name}@example.com", name=name, password_hash=hash_password(password))
    session.add(user)
    session.commit()
    session.refresh(user)
    return user


def make_project(session: Session, owner: User, name: str = "Demo Project") -> Project:
    return project_routes.create_project(schemas.ProjectCreate(name=name), owner, session)


def make_task(
    session: Session,
    owner: User,
    project: Project,
    title: str,
    status: TaskStatus = TaskStatus.BACKLOG,
) -> Task:
    task_in = schemas.TaskCreate(project_id=project.id, title=title, status=status)
    return task_routes.create_task(task_in, owner, session)
