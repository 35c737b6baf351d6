from fastapi import APIRouter

from tasktide.api.routes import (
    health,
    recurring,
    scheduler,
)


api_router = APIRouter()
api_router.include_router(health.router, tags=["health"])
api_router.include_router(recurring.router, prefix="/tasks", tags=["recurring"])
api_router.include_router(scheduler.router, prefix="/scheduler", tags=["scheduler"])
