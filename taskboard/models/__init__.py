"""Taskboard Database Models"""
from taskboard.models.user import User
from taskboard.models.project import Project
from taskboard.models.project_member import ProjectMember, MemberRole, MANAGER_ROLES
from taskboard.models.board_column import BoardColumn, DEFAULT_COLUMNS
from taskboard.models.task import Task, TaskPriority
from taskboard.models.task_dependency import TaskDependency
from taskboard.workflow.status import TaskStatus

__all__ = [
    "User",
    "Project",
    "ProjectMember",
    "MemberRole",
    "MANAGER_ROLES",
    "BoardColumn",
    "DEFAULT_COLUMNS",
    "Task",
    "TaskPriority",
    "TaskStatus",
    "TaskDependency",
]
