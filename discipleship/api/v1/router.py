"""API v1 router configuration."""

from fastapi import APIRouter

from discipleship.api.v1.endpoints import (
    auth,
    churches,
    health,
    lessons,
    students,
    studies,
    users,
)

api_router = APIRouter()

# Include routers
api_router.include_router(health.router, tags=["Health"])
api_router.include_router(auth.router, prefix="/auth", tags=["Authentication"])
api_router.include_router(churches.router, tags=["Churches"])
api_router.include_router(users.router, tags=["Users"])
api_router.include_router(students.router, tags=["Students"])
api_router.include_router(studies.router, tags=["Studies"])
api_router.include_router(lessons.router, tags=["Lessons"])
