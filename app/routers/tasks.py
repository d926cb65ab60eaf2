# =============================================================================
# app/routers/tasks.py - Task Status Endpoints
# =============================================================================
# Provides endpoints for following background import runs.
# =============================================================================

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Path, HTTPException
from pydantic import BaseModel

from app.auth import AuthUser, require_admin

logger = logging.getLogger(__name__)

router = APIRouter()

# Default message per Celery state (PROGRESS carries its own)
STATE_MESSAGES = {
    "PENDING": "Waiting in queue...",
    "STARTED": "Starting...",
    "SUCCESS": "Complete",
    "FAILURE": "Failed",
    "REVOKED": "Cancelled",
}


# =============================================================================
# Response Models
# =============================================================================

class TaskStatusResponse(BaseModel):
    """Response model for task status."""
    task_id: str
    status: str
    progress: int | None = None
    message: str | None = None
    result: dict | None = None
    error: str | None = None


# =============================================================================
# Endpoints
# =============================================================================

@router.get("/{task_id}", response_model=TaskStatusResponse)
async def get_task_status(
    task_id: Annotated[str, Path(description="Celery task ID")],
    user: AuthUser = Depends(require_admin),
):
    """
    Get the status of an import run.

    - PENDING / STARTED: progress 0
    - PROGRESS: progress is the percentage of rows processed
    - SUCCESS: result is the import summary (counts, status, errors)
    - FAILURE: error holds the worker exception
    """
    try:
        from workers.celery_app import celery_app

        result = celery_app.AsyncResult(task_id)
        state = result.status

        response = TaskStatusResponse(
            task_id=task_id,
            status=state,
            message=STATE_MESSAGES.get(state),
        )

        if state == "PROGRESS":
            info = result.info or {}
            response.progress = info.get("percent", 0)
            response.message = info.get("message", "Processing...")

        elif state == "SUCCESS":
            response.result = result.result
            response.progress = 100

        elif state == "FAILURE":
            response.error = str(result.result) if result.result else "Unknown error"

        elif state in ("PENDING", "STARTED"):
            response.progress = 0

        return response

    except Exception as e:
        logger.error(f"Error getting task status: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to get task status: {e}")


@router.delete("/{task_id}")
async def cancel_task(
    task_id: Annotated[str, Path(description="Celery task ID")],
    user: AuthUser = Depends(require_admin),
):
    """
    Cancel an import that hasn't finished.

    Rows already created stay created; the run is not rolled back.
    """
    try:
        from workers.celery_app import celery_app

        result = celery_app.AsyncResult(task_id)

        if result.status in ["SUCCESS", "FAILURE"]:
            return {
                "task_id": task_id,
                "message": f"Task already {result.status.lower()}, cannot cancel",
                "cancelled": False,
            }

        result.revoke(terminate=True)
        logger.info(f"Cancelled task {task_id}")

        return {
            "task_id": task_id,
            "message": "Task cancelled",
            "cancelled": True,
        }

    except Exception as e:
        logger.error(f"Error cancelling task: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to cancel task: {e}")
