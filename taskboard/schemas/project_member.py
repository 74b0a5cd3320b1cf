"""Schemas for project members"""
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, EmailStr

from taskboard.models import MemberRole
from taskboard.schemas.user import UserSummary


class ProjectMemberCreate(BaseModel):
    email: EmailStr
    role: Literal["ADMIN", "MEMBER"] = "MEMBER"


class ProjectMemberResponse(BaseModel):
    id: int
    project_id: int
    role: MemberRole
    joined_at: datetime
    user: UserSummary

    class Config:
        from_attributes = True
