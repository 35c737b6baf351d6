from fastapi import APIRouter, Depends

from tasktide.api import deps
from tasktide.schemas.generation import SchedulerStatus, TickReport
from tasktide.services.scheduler import SchedulerService

router = APIRouter(dependencies=[Depends(deps.require_maintenance_token)])


@router.get("/status", response_model=SchedulerStatus)
def scheduler_status(
    scheduler: SchedulerService = Depends(deps.get_scheduler),
) -> SchedulerStatus:
    return scheduler.status()


@router.post("/trigger", response_model=TickReport)
def trigger_scheduler(
    scheduler: SchedulerService = Depends(deps.get_scheduler),
) -> TickReport:
    """Run a pass now, still honouring the cross-process lock."""
    return scheduler.trigger_now()
