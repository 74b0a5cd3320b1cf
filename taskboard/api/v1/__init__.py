"""Version 1 API routers"""
from fastapi import APIRouter

from taskboard.api.v1 import auth, columns, projects, tasks

api_router = APIRouter(prefix="/api")
api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
api_router.include_router(projects.router, prefix="/projects", tags=["projects"])
api_router.include_router(columns.router, prefix="/columns", tags=["columns"])
api_router.include_router(tasks.router, prefix="/tasks", tags=["tasks"])
