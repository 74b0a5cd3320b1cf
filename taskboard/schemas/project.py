"""Schemas for projects"""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from taskboard.schemas.column import ColumnResponse
from taskboard.schemas.project_member import ProjectMemberResponse
from taskboard.schemas.user import UserSummary


class ProjectCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None


class ProjectUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = None


class ProjectResponse(BaseModel):
    id: int
    name: str
    description: Optional[str]
    owner_id: int
    created_at: datetime
    updated_at: datetime
    owner: UserSummary

    class Config:
        from_attributes = True


class ProjectDetailResponse(ProjectResponse):
    members: List[ProjectMemberResponse] = Field(default_factory=list)
    columns: List[ColumnResponse] = Field(default_factory=list)


class TaskCounts(BaseModel):
    total: int
    done: int


class ProjectSummaryResponse(ProjectResponse):
    members_count: int
    tasks_count: TaskCounts
