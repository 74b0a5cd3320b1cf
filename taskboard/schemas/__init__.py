"""
Pydantic schemas for request/response validation
"""
from taskboard.schemas.user import UserCreate, UserLogin, UserResponse, UserSummary, UserUpdate, Token
from taskboard.schemas.project_member import ProjectMemberCreate, ProjectMemberResponse
from taskboard.schemas.column import ColumnCreate, ColumnUpdate, ColumnPosition, ColumnReorder, ColumnResponse
from taskboard.schemas.project import (
    ProjectCreate,
    ProjectUpdate,
    ProjectResponse,
    ProjectDetailResponse,
    ProjectSummaryResponse,
    TaskCounts,
)
from taskboard.schemas.task import (
    TaskCreate,
    TaskUpdate,
    TaskStatusUpdate,
    TaskOrderUpdate,
    TaskSummary,
    TaskDependencyCreate,
    TaskDependencyResponse,
    TaskDependentResponse,
    TaskResponse,
    TaskDetailResponse,
    ProjectTasksResponse,
    TaskLockResponse,
)

__all__ = [
    "UserCreate",
    "UserLogin",
    "UserUpdate",
    "UserResponse",
    "UserSummary",
    "Token",
    "ProjectMemberCreate",
    "ProjectMemberResponse",
    "ColumnCreate",
    "ColumnUpdate",
    "ColumnPosition",
    "ColumnReorder",
    "ColumnResponse",
    "ProjectCreate",
    "ProjectUpdate",
    "ProjectResponse",
    "ProjectDetailResponse",
    "ProjectSummaryResponse",
    "TaskCounts",
    "TaskCreate",
    "TaskUpdate",
    "TaskStatusUpdate",
    "TaskOrderUpdate",
    "TaskSummary",
    "TaskDependencyCreate",
    "TaskDependencyResponse",
    "TaskDependentResponse",
    "TaskResponse",
    "TaskDetailResponse",
    "ProjectTasksResponse",
    "TaskLockResponse",
]
