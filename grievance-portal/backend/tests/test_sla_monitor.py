"""
Tests for the periodic SLA breach sweep.
"""

import pytest
from datetime import datetime

from app.services import SlaMonitor
from app.services.sla_monitor import SYSTEM_ACTOR
from app.services.store import IssueStore

# Tuesday; an urgent issue raised Monday 09:00 is 11 working hours old
NOW = datetime(2024, 1, 16, 12, 0)
MONDAY_9AM = datetime(2024, 1, 15, 9, 0)


@pytest.fixture
def make_monitor(db_session, calendar, policy):
    def _make_monitor(auto_escalate=True) -> SlaMonitor:
        return SlaMonitor(
            db_session, calendar=calendar, policy=policy, auto_escalate=auto_escalate
        )

    return _make_monitor


async def actions_for(db_session, issue) -> list:
    entries = await IssueStore(db_session).list_audit(issue.id)
    return [(entry.action, entry.actor_id) for entry in entries]


@pytest.mark.asyncio
@pytest.mark.database
class TestSlaSweep:
    """Test SlaMonitor.sweep."""

    async def test_breached_in_progress_issue_is_escalated(
        self, db_session, make_monitor, create_issue
    ):
        issue = await create_issue(status="in_progress", priority="urgent", created_at=MONDAY_9AM)

        stats = await make_monitor().sweep(now=NOW)

        assert stats == {"checked": 1, "breached": 1, "escalated": 1, "integrity_errors": 0}
        assert issue.sla_breached is True
        assert issue.status == "escalated"
        assert issue.escalation_level == 1
        assert issue.escalated_at == NOW

        actions = await actions_for(db_session, issue)
        assert ("sla_breach", SYSTEM_ACTOR) in actions
        assert ("escalate", SYSTEM_ACTOR) in actions

    async def test_sweep_escalation_is_not_a_first_response(
        self, make_monitor, create_issue, issue_service, calendar, policy
    ):
        issue = await create_issue(status="in_progress", priority="urgent", created_at=MONDAY_9AM)

        await make_monitor().sweep(now=NOW)
        evaluation = await issue_service.evaluate_sla(
            issue.id, now=NOW, calendar=calendar, policy=policy
        )

        assert issue.status == "escalated"
        assert evaluation.first_response_at is None
        assert evaluation.first_response_hours is None
        assert evaluation.first_response_breached is True

    async def test_breach_details(self, db_session, make_monitor, create_issue):
        issue = await create_issue(status="open", priority="urgent", created_at=MONDAY_9AM)

        await make_monitor().sweep(now=NOW)

        entries = await IssueStore(db_session).list_audit(issue.id)
        breach = next(e for e in entries if e.action == "sla_breach")
        assert breach.details == {"elapsed_hours": 11.0, "threshold_hours": 4.0}
        assert breach.new_value == "open"

    async def test_open_issue_flagged_not_escalated(
        self, db_session, make_monitor, create_issue
    ):
        issue = await create_issue(status="open", priority="urgent", created_at=MONDAY_9AM)

        stats = await make_monitor().sweep(now=NOW)

        assert stats["breached"] == 1
        assert stats["escalated"] == 0
        assert issue.sla_breached is True
        assert issue.status == "open"

    async def test_auto_escalate_disabled(self, make_monitor, create_issue):
        issue = await create_issue(status="in_progress", priority="urgent", created_at=MONDAY_9AM)

        stats = await make_monitor(auto_escalate=False).sweep(now=NOW)

        assert stats["escalated"] == 0
        assert issue.sla_breached is True
        assert issue.status == "in_progress"

    async def test_breach_flagged_once(self, db_session, make_monitor, create_issue):
        issue = await create_issue(status="open", priority="urgent", created_at=MONDAY_9AM)
        monitor = make_monitor()

        await monitor.sweep(now=NOW)
        stats = await monitor.sweep(now=NOW)

        assert stats["checked"] == 0
        actions = await actions_for(db_session, issue)
        assert actions.count(("sla_breach", SYSTEM_ACTOR)) == 1

    async def test_within_threshold_untouched(self, db_session, make_monitor, create_issue):
        issue = await create_issue(status="open", priority="low", created_at=MONDAY_9AM)

        stats = await make_monitor().sweep(now=NOW)

        assert stats["checked"] == 1
        assert stats["breached"] == 0
        assert issue.sla_breached is False
        assert await actions_for(db_session, issue) == []

    async def test_closed_issues_ignored(self, make_monitor, create_issue):
        await create_issue(status="resolved", priority="urgent", created_at=MONDAY_9AM)
        await create_issue(status="escalated", priority="urgent", created_at=MONDAY_9AM)

        stats = await make_monitor().sweep(now=NOW)

        assert stats["checked"] == 0
