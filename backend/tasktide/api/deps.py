import secrets

from fastapi import Header, HTTPException, Request, status

from tasktide.services.generation import GenerationCoordinator
from tasktide.services.scheduler import SchedulerService


def require_maintenance_token(
    request: Request,
    x_maintenance_token: str | None = Header(default=None),
) -> None:
    """Internal routes are open unless a maintenance token is configured."""
    expected = request.app.state.settings.maintenance_token
    if not expected:
        return
    if not x_maintenance_token or not secrets.compare_digest(x_maintenance_token, expected):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid maintenance token",
        )


def get_coordinator(request: Request) -> GenerationCoordinator:
    return request.app.state.coordinator


def get_scheduler(request: Request) -> SchedulerService:
    return request.app.state.scheduler
