"""
Tests for working-hours arithmetic and SLA evaluation.

Reference week: Monday 2024-01-15 to Sunday 2024-01-21.
"""

import pytest
from datetime import date, datetime
from types import SimpleNamespace
from uuid import uuid4

from app.services import DataIntegrityError
from app.services.sla import (
    SYSTEM_ACTOR,
    BusinessCalendar,
    SlaPolicy,
    evaluate_issue_sla,
    first_response_at,
    is_breached,
    sla_status,
    working_hours_between,
)


def make_issue(created_at, priority="medium", closed_at=None, employee_id=None):
    return SimpleNamespace(
        id=uuid4(),
        priority=priority,
        created_at=created_at,
        closed_at=closed_at,
        employee_id=employee_id or uuid4(),
    )


@pytest.mark.sla
class TestWorkingHours:
    """Test BusinessCalendar.working_hours_between."""

    def test_same_day(self, calendar, policy):
        start = datetime(2024, 1, 15, 10, 0)
        end = datetime(2024, 1, 15, 14, 0)

        elapsed = calendar.working_hours_between(start, end)

        assert elapsed == 4.0
        assert policy.is_breached("critical", elapsed) is False

    def test_over_weekend(self, calendar):
        """Friday after hours, full Saturday, no Sunday, one hour Monday."""
        start = datetime(2024, 1, 19, 17, 30)
        end = datetime(2024, 1, 22, 10, 0)

        assert calendar.working_hours_between(start, end) == 9.0

    def test_equal_timestamps(self, calendar):
        t = datetime(2024, 1, 15, 11, 0)
        assert calendar.working_hours_between(t, t) == 0.0

    def test_end_before_start(self, calendar):
        assert calendar.working_hours_between(
            datetime(2024, 1, 16, 12, 0), datetime(2024, 1, 15, 12, 0)
        ) == 0.0

    def test_sunday_does_not_count(self, calendar):
        assert calendar.working_hours_between(
            datetime(2024, 1, 21, 0, 0), datetime(2024, 1, 21, 23, 59)
        ) == 0.0

    def test_outside_window_clipped(self, calendar):
        assert calendar.working_hours_between(
            datetime(2024, 1, 15, 6, 0), datetime(2024, 1, 15, 20, 0)
        ) == 8.0

    def test_partial_hours_rounded(self, calendar):
        assert calendar.working_hours_between(
            datetime(2024, 1, 15, 10, 0), datetime(2024, 1, 15, 10, 20)
        ) == 0.33

    def test_holiday_excluded(self):
        calendar = BusinessCalendar(holidays=[date(2024, 1, 16)])

        hours = calendar.working_hours_between(
            datetime(2024, 1, 15, 16, 0), datetime(2024, 1, 17, 10, 0)
        )

        assert hours == 2.0

    def test_custom_window(self):
        calendar = BusinessCalendar(start_hour=10, end_hour=18)
        assert calendar.hours_per_day == 8
        assert calendar.working_hours_between(
            datetime(2024, 1, 15, 9, 0), datetime(2024, 1, 15, 11, 0)
        ) == 1.0

    def test_invalid_window(self):
        with pytest.raises(ValueError):
            BusinessCalendar(start_hour=17, end_hour=9)

    def test_iso_strings_accepted(self, calendar):
        assert calendar.working_hours_between(
            "2024-01-15T10:00:00", "2024-01-15T12:30:00"
        ) == 2.5

    def test_aware_timestamps_localized(self):
        calendar = BusinessCalendar(timezone="Asia/Kolkata")

        # 04:30 UTC is 10:00 in Kolkata
        assert calendar.coerce("2024-01-15T04:30:00Z") == datetime(2024, 1, 15, 10, 0)

    @pytest.mark.parametrize("bad_value", [None, "not-a-date", "", 12345])
    def test_unusable_timestamps_raise(self, calendar, bad_value):
        with pytest.raises(DataIntegrityError):
            calendar.working_hours_between(bad_value, datetime(2024, 1, 15, 12, 0))

    def test_module_helper_uses_configured_calendar(self):
        assert working_hours_between(
            datetime(2024, 1, 15, 10, 0), datetime(2024, 1, 15, 14, 0)
        ) == 4.0


@pytest.mark.sla
class TestAddWorkingHours:
    """Test BusinessCalendar.add_working_hours."""

    def test_within_day(self, calendar):
        assert calendar.add_working_hours(
            datetime(2024, 1, 15, 10, 0), 4
        ) == datetime(2024, 1, 15, 14, 0)

    def test_rolls_to_next_day(self, calendar):
        assert calendar.add_working_hours(
            datetime(2024, 1, 15, 16, 0), 2
        ) == datetime(2024, 1, 16, 10, 0)

    def test_skips_sunday(self, calendar):
        assert calendar.add_working_hours(
            datetime(2024, 1, 20, 16, 0), 2
        ) == datetime(2024, 1, 22, 10, 0)

    def test_start_before_window(self, calendar):
        assert calendar.add_working_hours(
            datetime(2024, 1, 15, 7, 0), 1
        ) == datetime(2024, 1, 15, 10, 0)

    def test_zero_hours(self, calendar):
        start = datetime(2024, 1, 15, 7, 0)
        assert calendar.add_working_hours(start, 0) == start


@pytest.mark.sla
class TestSlaPolicy:
    """Test per-priority thresholds and breach checks."""

    def test_thresholds(self, policy):
        assert policy.threshold("urgent", "first_response") == 1
        assert policy.threshold("urgent", "resolution") == 4
        assert policy.threshold("low", "resolution") == 120

    def test_unknown_priority_falls_back_to_medium(self, policy):
        assert policy.threshold("whatever") == policy.threshold("medium")

    def test_unknown_kind(self, policy):
        with pytest.raises(ValueError):
            policy.threshold("medium", "acknowledgement")

    def test_breach_is_strictly_greater(self, policy):
        assert not policy.is_breached("urgent", 4.0)
        assert policy.is_breached("urgent", 4.01)

    def test_missing_elapsed_is_breach(self, policy):
        assert policy.is_breached("low", None)
        assert is_breached("low", None)

    def test_status(self, policy):
        assert policy.status("medium", 10, finished=True) == "on_time"
        assert policy.status("medium", 80, finished=True) == "breached"
        assert policy.status("medium", 10, finished=False) == "pending"
        assert policy.status("medium", 60, finished=False) == "at_risk"

    def test_sla_status_with_bad_created_at(self):
        assert sla_status(None, "medium") == "breached"
        assert sla_status("garbage", "medium") == "breached"

    def test_sla_status_closed(self):
        assert sla_status(
            datetime(2024, 1, 15, 10, 0), "urgent", closed_at=datetime(2024, 1, 15, 12, 0)
        ) == "on_time"


@pytest.mark.sla
class TestEvaluateIssueSla:
    """Test evaluate_issue_sla on plain objects."""

    def test_open_issue_without_response(self, calendar, policy):
        issue = make_issue(datetime(2024, 1, 15, 10, 0), priority="urgent")

        evaluation = evaluate_issue_sla(
            issue, calendar=calendar, policy=policy, now=datetime(2024, 1, 15, 12, 0)
        )

        assert evaluation.first_response_at is None
        assert evaluation.first_response_hours is None
        assert evaluation.first_response_breached is True
        assert evaluation.resolution_hours is None
        assert evaluation.resolution_breached is False
        assert evaluation.status == "pending"
        assert evaluation.deadline == datetime(2024, 1, 15, 14, 0)
        assert evaluation.data_integrity_error is None

    def test_public_reply_counts_as_first_response(self, calendar, policy):
        issue = make_issue(datetime(2024, 1, 15, 10, 0), priority="urgent")
        agent_id = uuid4()
        comments = [
            SimpleNamespace(
                author_id=issue.employee_id, is_internal=False,
                created_at=datetime(2024, 1, 15, 10, 5),
            ),
            SimpleNamespace(
                author_id=agent_id, is_internal=True,
                created_at=datetime(2024, 1, 15, 10, 10),
            ),
            SimpleNamespace(
                author_id=agent_id, is_internal=False,
                created_at=datetime(2024, 1, 15, 10, 30),
            ),
        ]

        evaluation = evaluate_issue_sla(
            issue, comments, calendar=calendar, policy=policy,
            now=datetime(2024, 1, 15, 12, 0),
        )

        assert evaluation.first_response_at == datetime(2024, 1, 15, 10, 30)
        assert evaluation.first_response_hours == 0.5
        assert evaluation.first_response_breached is False

    def test_status_change_counts_as_first_response(self):
        issue = make_issue(datetime(2024, 1, 15, 10, 0))
        audit = [
            SimpleNamespace(
                action="create", actor_id=str(issue.employee_id),
                created_at=datetime(2024, 1, 15, 10, 0),
            ),
            SimpleNamespace(
                action="status_change", actor_id=str(uuid4()),
                created_at=datetime(2024, 1, 15, 11, 0),
            ),
        ]

        assert first_response_at(issue, [], audit) == datetime(2024, 1, 15, 11, 0)

    def test_system_escalation_ignored(self):
        issue = make_issue(datetime(2024, 1, 15, 10, 0))
        audit = [
            SimpleNamespace(
                action="escalate", actor_id=SYSTEM_ACTOR,
                created_at=datetime(2024, 1, 16, 12, 0),
            ),
        ]

        assert first_response_at(issue, [], audit) is None

    def test_resolved_issue(self, calendar, policy):
        issue = make_issue(
            datetime(2024, 1, 15, 10, 0),
            priority="high",
            closed_at=datetime(2024, 1, 16, 10, 0),
        )

        evaluation = evaluate_issue_sla(
            issue, calendar=calendar, policy=policy, now=datetime(2024, 2, 1, 12, 0)
        )

        assert evaluation.resolution_hours == 8.0
        assert evaluation.resolution_breached is False
        assert evaluation.status == "on_time"

    def test_missing_created_at_is_breach(self, calendar, policy):
        issue = make_issue(None, priority="low")

        evaluation = evaluate_issue_sla(
            issue, calendar=calendar, policy=policy, now=datetime(2024, 1, 15, 12, 0)
        )

        assert evaluation.first_response_breached is True
        assert evaluation.resolution_breached is True
        assert evaluation.status == "breached"
        assert evaluation.data_integrity_error
        assert evaluation.to_dict()["data_integrity_error"] == evaluation.data_integrity_error
