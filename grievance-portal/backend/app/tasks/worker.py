"""
Background worker for manual task execution.

Provides a BackgroundWorker class to run the SLA sweep on demand via the
API or CLI, tracking its status and last result.
"""

import logging
from typing import Optional, Dict, Any
from datetime import datetime

from app.config import business_now
from app.database import AsyncSessionLocal
from app.services import SlaMonitor

logger = logging.getLogger(__name__)


class BackgroundWorker:
    """
    Handles background task execution with status tracking.

    Only one task runs at a time. Each run opens and commits its own
    database session.

    Attributes:
        status: Current task status (idle, running, completed, failed)
        progress: Human-readable progress message
        is_running: Whether a task is currently executing
    """

    def __init__(self, session_factory=AsyncSessionLocal):
        """
        Initialize worker in idle state.

        Args:
            session_factory: Callable returning an async session context
        """
        self.session_factory = session_factory
        self._running = False
        self._status = "idle"
        self._progress: Optional[str] = None
        self._last_result: Optional[Dict[str, Any]] = None
        self._last_error: Optional[str] = None
        self._started_at: Optional[datetime] = None
        self._completed_at: Optional[datetime] = None

    @property
    def status(self) -> str:
        return self._status

    @property
    def progress(self) -> Optional[str]:
        return self._progress

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def last_result(self) -> Optional[Dict[str, Any]]:
        return self._last_result

    @property
    def last_error(self) -> Optional[str]:
        return self._last_error

    def get_status(self) -> Dict[str, Any]:
        """
        Get complete worker status.

        Returns:
            Dictionary with status, progress, timestamps, and results
        """
        return {
            "status": self._status,
            "progress": self._progress,
            "is_running": self.is_running,
            "started_at": self._started_at.isoformat() if self._started_at else None,
            "completed_at": self._completed_at.isoformat() if self._completed_at else None,
            "last_result": self._last_result,
            "last_error": self._last_error
        }

    async def run_sla_sweep(self, now: Optional[datetime] = None) -> Dict[str, Any]:
        """
        Run one SLA breach sweep and commit its changes.

        Args:
            now: Reference time (defaults to current business-local time)

        Returns:
            Sweep statistics (checked, breached, escalated, integrity_errors)

        Raises:
            RuntimeError: If a task is already running
        """
        if self._running:
            raise RuntimeError("A task is already running")

        self._running = True
        self._status = "running"
        self._progress = "Checking open issues against SLA thresholds..."
        self._started_at = business_now()
        self._completed_at = None
        self._last_result = None
        self._last_error = None

        try:
            async with self.session_factory() as db:
                try:
                    result = await SlaMonitor(db).sweep(now)
                    await db.commit()
                except Exception:
                    await db.rollback()
                    raise

            self._status = "completed"
            self._last_result = result
            logger.info(f"SLA sweep completed: {result}")
            return result

        except Exception as e:
            self._status = "failed"
            self._last_error = str(e)
            logger.error(f"SLA sweep failed: {e}", exc_info=True)
            raise

        finally:
            self._running = False
            self._progress = None
            self._completed_at = business_now()


# Global worker instance
background_worker = BackgroundWorker()
