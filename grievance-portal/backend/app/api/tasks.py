"""
Background tasks API endpoints.

Provides endpoints to:
- View scheduler status and upcoming jobs
- Manually trigger the SLA breach sweep
- Check task execution status and results
"""

from typing import Optional
from fastapi import APIRouter, HTTPException, BackgroundTasks
from pydantic import BaseModel, Field

from app.tasks import get_job_status, background_worker

router = APIRouter(prefix="/tasks", tags=["tasks"])


class JobStatusResponse(BaseModel):
    """Status of a scheduled job."""
    id: str
    name: str
    next_run: Optional[str] = None
    trigger: str


class WorkerStatusResponse(BaseModel):
    """Status of background worker."""
    status: str = Field(..., description="Worker status: idle, running, completed, failed")
    progress: Optional[str] = Field(None, description="Current progress message")
    is_running: bool = Field(..., description="Whether a task is currently executing")
    started_at: Optional[str] = Field(None, description="Task start timestamp (ISO)")
    completed_at: Optional[str] = Field(None, description="Task completion timestamp (ISO)")
    last_result: Optional[dict] = Field(None, description="Result from last completed task")
    last_error: Optional[str] = Field(None, description="Error from last failed task")


class TaskTriggerResponse(BaseModel):
    """Response when triggering a task."""
    message: str
    task: str
    status: str


@router.get("/scheduler/status", response_model=list[JobStatusResponse])
async def get_scheduler_status():
    """
    Get status of all scheduled jobs.

    Example response:
    ```json
    [
        {
            "id": "sla_sweep",
            "name": "SLA Breach Sweep",
            "next_run": "2024-01-15T15:00:00+05:30",
            "trigger": "interval[1:00:00]"
        }
    ]
    ```
    """
    return get_job_status()


@router.get("/worker/status", response_model=WorkerStatusResponse)
async def get_worker_status():
    """Get current status of the background worker and its last result."""
    return background_worker.get_status()


@router.post("/sla-sweep", response_model=TaskTriggerResponse, status_code=202)
async def trigger_sla_sweep(background_tasks: BackgroundTasks):
    """
    Manually trigger an SLA breach sweep.

    The sweep runs in the background. Use GET /api/tasks/worker/status
    to check progress and results.

    Raises:
        400: If a task is already running
    """
    if background_worker.is_running:
        raise HTTPException(
            status_code=400,
            detail="A background task is already running. Please wait for it to complete."
        )

    background_tasks.add_task(background_worker.run_sla_sweep)

    return TaskTriggerResponse(
        message="SLA sweep started",
        task="sla_sweep",
        status="started"
    )
