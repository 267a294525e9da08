"""
Background tasks and scheduling module.

Provides:
- Scheduler: periodic SLA breach sweep
- Worker: on-demand background task execution via API and CLI
"""

from app.tasks.scheduler import (
    scheduler,
    setup_scheduler,
    shutdown_scheduler,
    get_job_status,
    sla_sweep_job
)
from app.tasks.worker import (
    background_worker,
    BackgroundWorker
)

__all__ = [
    # Scheduler
    "scheduler",
    "setup_scheduler",
    "shutdown_scheduler",
    "get_job_status",
    "sla_sweep_job",
    # Worker
    "background_worker",
    "BackgroundWorker"
]
