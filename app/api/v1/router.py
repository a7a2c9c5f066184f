"""Main API router aggregating all module routers."""

from fastapi import APIRouter

from app.api.v1.endpoints import (
    classrooms,
    exams,
    imports,
    statistics,
    students,
)
from app.schemas.common import ErrorResponse

api_router = APIRouter(
    responses={
        404: {"model": ErrorResponse},
        422: {"model": ErrorResponse},
    },
)

# Classrooms
api_router.include_router(
    classrooms.router,
    prefix="/classrooms",
    tags=["Classrooms"],
)

# Students
api_router.include_router(
    students.router,
    prefix="/students",
    tags=["Students"],
)

# Exam definitions and results
api_router.include_router(
    exams.router,
    prefix="/exams",
    tags=["Exams"],
)

# Paste imports
api_router.include_router(
    imports.router,
    prefix="/imports",
    tags=["Imports"],
    responses={400: {"model": ErrorResponse}},
)

# Derived statistics
api_router.include_router(
    statistics.router,
    prefix="/statistics",
    tags=["Statistics"],
)
