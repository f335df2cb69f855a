from fastapi import APIRouter

from src.feedback.api.v1 import admin, comments, projects

api_router = APIRouter(prefix="/api")
api_router.include_router(projects.router)
api_router.include_router(comments.router)
api_router.include_router(admin.router)
