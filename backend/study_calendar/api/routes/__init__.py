from fastapi import APIRouter

from study_calendar.api.routes import (
    cleanup,
    remediation,
    tasks,
)


api_router = APIRouter()
api_router.include_router(tasks.router, prefix="/tasks", tags=["tasks"])
api_router.include_router(cleanup.router, prefix="/cleanup", tags=["cleanup"])
api_router.include_router(remediation.router, prefix="/remediation", tags=["remediation"])
