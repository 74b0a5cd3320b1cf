"""Schemas for tasks and task dependencies"""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from taskboard.models import TaskPriority, TaskStatus
from taskboard.schemas.column import ColumnResponse
from taskboard.schemas.user import UserSummary


class TaskCreate(BaseModel):
    project_id: int
    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    status: TaskStatus = TaskStatus.BACKLOG
    priority: TaskPriority = TaskPriority.MEDIUM
    assignee_id: Optional[int] = None
    due_date: Optional[datetime] = None


class TaskUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    status: Optional[TaskStatus] = None
    priority: Optional[TaskPriority] = None
    assignee_id: Optional[int] = None
    due_date: Optional[datetime] = None


class TaskStatusUpdate(BaseModel):
    status: TaskStatus
    # Accepted for board clients; the gate does not use it
    column_id: Optional[int] = None


class TaskOrderUpdate(BaseModel):
    order_index: int = Field(..., ge=0)
    column_id: int


class TaskSummary(BaseModel):
    id: int
    title: str
    status: TaskStatus

    class Config:
        from_attributes = True


class TaskDependencyCreate(BaseModel):
    depends_on_id: int


class TaskDependencyResponse(BaseModel):
    task_id: int
    depends_on_id: int
    created_at: datetime
    depends_on: TaskSummary

    class Config:
        from_attributes = True


class TaskDependentResponse(BaseModel):
    task_id: int
    depends_on_id: int
    created_at: datetime
    task: TaskSummary

    class Config:
        from_attributes = True


class TaskResponse(BaseModel):
    id: int
    project_id: int
    title: str
    description: Optional[str]
    status: TaskStatus
    priority: TaskPriority
    order_index: int
    assignee_id: Optional[int]
    created_by_id: int
    due_date: Optional[datetime]
    version: int
    created_at: datetime
    updated_at: datetime
    assignee: Optional[UserSummary] = None
    creator: UserSummary

    class Config:
        from_attributes = True


class TaskDetailResponse(TaskResponse):
    dependencies: List[TaskDependencyResponse] = Field(default_factory=list)
    dependents: List[TaskDependentResponse] = Field(default_factory=list)


class ProjectTasksResponse(BaseModel):
    tasks: List[TaskDetailResponse]
    columns: List[ColumnResponse]


class TaskLockResponse(BaseModel):
    locked: bool
    reason: Optional[str] = None
