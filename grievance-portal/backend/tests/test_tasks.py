"""
Tests for background tasks and scheduler.

Tests the scheduler setup, the SLA sweep worker and the scheduled job.
"""

import asyncio
import pytest
from datetime import datetime
from unittest.mock import AsyncMock, MagicMock, patch

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.tasks import (
    setup_scheduler,
    shutdown_scheduler,
    get_job_status,
    sla_sweep_job,
    BackgroundWorker
)

SWEEP_RESULT = {"checked": 4, "breached": 1, "escalated": 1, "integrity_errors": 0}


def mock_session_factory():
    """Session factory whose sessions are AsyncMocks."""
    mock_db = AsyncMock()
    factory = MagicMock()
    factory.return_value.__aenter__.return_value = mock_db
    return factory, mock_db


@pytest.mark.asyncio
@pytest.mark.tasks
class TestScheduler:
    """Test scheduler configuration and management."""

    async def test_scheduler_lifecycle(self):
        """Test the scheduler starts with the SLA sweep job and stops cleanly."""
        setup_scheduler()

        jobs = get_job_status()
        assert [job["id"] for job in jobs] == ["sla_sweep"]
        assert jobs[0]["name"] == "SLA Breach Sweep"
        assert "interval" in jobs[0]["trigger"]
        assert jobs[0]["next_run"] is not None

        shutdown_scheduler()

        # Should be safe to call multiple times
        shutdown_scheduler()

    async def test_job_skips_when_worker_busy(self):
        with patch("app.tasks.scheduler.background_worker") as worker:
            worker.is_running = True
            worker.run_sla_sweep = AsyncMock()

            await sla_sweep_job()

            worker.run_sla_sweep.assert_not_awaited()

    async def test_job_runs_sweep(self):
        with patch("app.tasks.scheduler.background_worker") as worker:
            worker.is_running = False
            worker.run_sla_sweep = AsyncMock(return_value=SWEEP_RESULT)

            await sla_sweep_job()

            worker.run_sla_sweep.assert_awaited_once()


@pytest.mark.tasks
class TestBackgroundWorker:
    """Test background worker functionality."""

    def test_worker_initial_state(self):
        """Test worker starts in idle state."""
        worker = BackgroundWorker()

        assert worker.status == "idle"
        assert worker.progress is None
        assert not worker.is_running
        assert worker.last_result is None
        assert worker.last_error is None

    def test_get_status(self):
        status = BackgroundWorker().get_status()

        assert set(status) == {
            "status", "progress", "is_running", "started_at",
            "completed_at", "last_result", "last_error",
        }

    @pytest.mark.asyncio
    async def test_run_sla_sweep_success(self):
        factory, mock_db = mock_session_factory()
        worker = BackgroundWorker(session_factory=factory)

        with patch("app.tasks.worker.SlaMonitor") as mock_monitor:
            mock_monitor.return_value.sweep = AsyncMock(return_value=SWEEP_RESULT)

            result = await worker.run_sla_sweep()

        assert result == SWEEP_RESULT
        assert worker.status == "completed"
        assert worker.last_result == SWEEP_RESULT
        assert worker.last_error is None
        assert not worker.is_running
        mock_db.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_run_sla_sweep_failure(self):
        factory, mock_db = mock_session_factory()
        worker = BackgroundWorker(session_factory=factory)

        with patch("app.tasks.worker.SlaMonitor") as mock_monitor:
            mock_monitor.return_value.sweep = AsyncMock(side_effect=Exception("Store down"))

            with pytest.raises(Exception, match="Store down"):
                await worker.run_sla_sweep()

        assert worker.status == "failed"
        assert worker.last_error == "Store down"
        assert not worker.is_running
        mock_db.rollback.assert_awaited_once()
        mock_db.commit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_concurrent_task_prevention(self):
        """Test that only one task can run at a time."""
        factory, _ = mock_session_factory()
        worker = BackgroundWorker(session_factory=factory)

        async def slow_sweep(*args, **kwargs):
            await asyncio.sleep(0.1)
            return SWEEP_RESULT

        with patch("app.tasks.worker.SlaMonitor") as mock_monitor:
            mock_monitor.return_value.sweep = slow_sweep

            task1 = asyncio.create_task(worker.run_sla_sweep())
            await asyncio.sleep(0)

            with pytest.raises(RuntimeError, match="already running"):
                await worker.run_sla_sweep()

            await task1

        assert worker.status == "completed"

    @pytest.mark.asyncio
    @pytest.mark.database
    async def test_sweep_commits_breaches(self, test_engine, db_session, create_issue):
        """The worker flags breaches in its own session and commits them."""
        issue = await create_issue(
            status="open", priority="urgent", created_at=datetime(2024, 1, 15, 9, 0)
        )
        factory = async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)
        worker = BackgroundWorker(session_factory=factory)

        result = await worker.run_sla_sweep(now=datetime(2024, 1, 16, 12, 0))

        assert result["breached"] == 1
        await db_session.refresh(issue)
        assert issue.sla_breached is True
