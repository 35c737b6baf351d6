import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status

from tasktide.api import deps
from tasktide.schemas.generation import GenerationStatus
from tasktide.schemas.task import TaskPublic
from tasktide.services.exceptions import RecurringTaskError, TemplateNotFoundError
from tasktide.services.generation import GenerationCoordinator

logger = logging.getLogger(__name__)

router = APIRouter(dependencies=[Depends(deps.require_maintenance_token)])


def _pending_message(count: int) -> str:
    return f"{count} recurring task{'' if count == 1 else 's'} pending generation"


@router.post("/generate-recurring")
def generate_recurring(
    action: str = Query(default="generate-all"),
    task_id: int | None = Query(default=None),
    coordinator: GenerationCoordinator = Depends(deps.get_coordinator),
) -> dict:
    """Generate instances for due templates, count them, or regenerate one template."""
    if action == "generate-for-task" and task_id is not None:
        try:
            generated = coordinator.generate_instance_for_task(task_id)
        except TemplateNotFoundError as e:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
        except RecurringTaskError as e:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
        return {
            "message": (
                f"Generated new instance for task {task_id}"
                if generated
                else f"Task {task_id} is not due for generation yet"
            ),
            "generated": generated,
            "action": "generate-for-task",
            "task_id": task_id,
        }

    if action == "count":
        pending = coordinator.count_pending_generations()
        return {
            "action": "count",
            "pending_generations": pending,
            "message": _pending_message(pending),
        }

    result = coordinator.run_pass()
    logger.info(f"Manual generation pass: {result.message}")
    return {**result.model_dump(), "action": "generate-all"}


@router.get("/generate-recurring")
def generation_overview(
    action: str = Query(default="status"),
    coordinator: GenerationCoordinator = Depends(deps.get_coordinator),
) -> dict:
    if action != "status":
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid action")
    return {
        "action": "status",
        "pending_generations": coordinator.count_pending_generations(),
        "ready": True,
    }


@router.get("/{task_id}/generation-status", response_model=GenerationStatus)
def generation_status(
    task_id: int,
    coordinator: GenerationCoordinator = Depends(deps.get_coordinator),
) -> GenerationStatus:
    result = coordinator.get_generation_status(task_id)
    if result is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Task not found")
    return result


@router.get("/{task_id}/instances", response_model=list[TaskPublic])
def generated_instances(
    task_id: int,
    coordinator: GenerationCoordinator = Depends(deps.get_coordinator),
) -> list[TaskPublic]:
    return [
        TaskPublic.model_validate(instance)
        for instance in coordinator.get_generated_instances(task_id)
    ]
