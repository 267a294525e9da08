"""
SLA calculation over the business calendar.

This module provides:
1. BusinessCalendar: working hours between timestamps (Mon-Sat, 09:00-17:00
   by default, Sundays and configured public holidays excluded)
2. SlaPolicy: per-priority first-response and resolution thresholds
3. evaluate_issue_sla: first-response/resolution durations and breach flags
   for a single issue

Timestamps are compared as business-local wall-clock times. Naive values
are taken as already local; aware values are converted to the calendar's
timezone. Missing or malformed timestamps raise DataIntegrityError, and
every breach check treats that case as breached.
"""

import logging
from dataclasses import dataclass, asdict
from datetime import date, datetime, time, timedelta
from typing import Dict, Iterable, Optional, Sequence
from zoneinfo import ZoneInfo

from app.config import DEFAULT_SLA_THRESHOLDS, Settings, business_now, settings as app_settings
from app.services.errors import DataIntegrityError

logger = logging.getLogger(__name__)

SLA_KINDS = ("first_response", "resolution")

# Audit actions that count as a resolver responding to the requester
RESPONSE_ACTIONS = {"status_change", "reopen", "escalate"}

# Actor recorded for automated sweeps; never a response
SYSTEM_ACTOR = "system"

SUNDAY = 6


class BusinessCalendar:
    """Working-hours arithmetic for a fixed daily window."""

    def __init__(
        self,
        start_hour: int = 9,
        end_hour: int = 17,
        holidays: Iterable[date] = (),
        timezone: Optional[str] = None,
    ):
        """
        Args:
            start_hour: First working hour of the day (inclusive)
            end_hour: Hour the working window closes (exclusive, up to 24)
            holidays: Extra non-working dates on top of Sundays
            timezone: IANA name used to localize aware timestamps
        """
        if not 0 <= start_hour < end_hour <= 24:
            raise ValueError(
                f"Invalid working window {start_hour}:00-{end_hour}:00"
            )
        self.start_hour = start_hour
        self.end_hour = end_hour
        self.holidays = frozenset(holidays)
        self.tz = ZoneInfo(timezone) if timezone else None

    @classmethod
    def from_settings(cls, settings: Settings = app_settings) -> "BusinessCalendar":
        return cls(
            start_hour=settings.WORKDAY_START_HOUR,
            end_hour=settings.WORKDAY_END_HOUR,
            holidays=settings.PUBLIC_HOLIDAYS,
            timezone=settings.BUSINESS_TIMEZONE,
        )

    @property
    def hours_per_day(self) -> int:
        return self.end_hour - self.start_hour

    def coerce(self, value) -> datetime:
        """
        Normalize a stored timestamp to a naive business-local datetime.

        Raises:
            DataIntegrityError: value is missing, of the wrong type, or an
                unparsable string
        """
        if value is None:
            raise DataIntegrityError("Timestamp is missing")
        if isinstance(value, str):
            try:
                value = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
            except ValueError:
                raise DataIntegrityError(f"Malformed timestamp {value!r}") from None
        elif isinstance(value, date) and not isinstance(value, datetime):
            value = datetime.combine(value, time())
        if not isinstance(value, datetime):
            raise DataIntegrityError(f"Unsupported timestamp {value!r}")
        if value.tzinfo is not None:
            if self.tz is not None:
                value = value.astimezone(self.tz)
            value = value.replace(tzinfo=None)
        return value

    def is_working_day(self, day: date) -> bool:
        return day.weekday() != SUNDAY and day not in self.holidays

    def _window(self, day: date) -> tuple[datetime, datetime]:
        midnight = datetime.combine(day, time())
        return (
            midnight + timedelta(hours=self.start_hour),
            midnight + timedelta(hours=self.end_hour),
        )

    def working_hours_between(self, start, end) -> float:
        """
        Working hours elapsed between two timestamps.

        Walks every calendar day from ``start`` to ``end`` and sums the part
        of each working day's window that falls inside the interval.

        Returns:
            Non-negative hours rounded to 2 decimals; 0.0 when end <= start
        """
        start = self.coerce(start)
        end = self.coerce(end)
        if end <= start:
            return 0.0

        total = timedelta()
        day = start.date()
        while day <= end.date():
            if self.is_working_day(day):
                window_start, window_end = self._window(day)
                lo = max(window_start, start)
                hi = min(window_end, end)
                if hi > lo:
                    total += hi - lo
            day += timedelta(days=1)

        return round(total.total_seconds() / 3600, 2)

    def add_working_hours(self, start, hours: float) -> datetime:
        """
        Timestamp reached after ``hours`` working hours from ``start``.

        Time outside the working window does not count; a start before the
        window opens is moved to the opening time.
        """
        current = self.coerce(start)
        remaining = timedelta(hours=hours)
        if remaining <= timedelta():
            return current

        while True:
            day = current.date()
            if self.is_working_day(day):
                window_start, window_end = self._window(day)
                lo = max(current, window_start)
                if lo < window_end:
                    available = window_end - lo
                    if remaining <= available:
                        return lo + remaining
                    remaining -= available
            current = datetime.combine(day + timedelta(days=1), time())


class SlaPolicy:
    """Per-priority thresholds, in working hours."""

    def __init__(
        self,
        thresholds: Optional[Dict[str, Dict[str, float]]] = None,
        at_risk_ratio: float = 0.8,
    ):
        self.thresholds = thresholds or DEFAULT_SLA_THRESHOLDS
        self.at_risk_ratio = at_risk_ratio

    @classmethod
    def from_settings(cls, settings: Settings = app_settings) -> "SlaPolicy":
        return cls(
            thresholds=settings.SLA_THRESHOLDS,
            at_risk_ratio=settings.SLA_AT_RISK_RATIO,
        )

    def threshold(self, priority: str, kind: str = "resolution") -> float:
        """
        Threshold in working hours for a priority.

        Unknown priorities fall back to the medium thresholds.
        """
        if kind not in SLA_KINDS:
            raise ValueError(f"Unknown SLA kind {kind!r}")
        limits = self.thresholds.get((priority or "").lower())
        if limits is None:
            logger.warning(f"No SLA thresholds for priority {priority!r}, using medium")
            limits = self.thresholds["medium"]
        return float(limits[kind])

    def is_breached(
        self,
        priority: str,
        elapsed_hours: Optional[float],
        kind: str = "resolution",
    ) -> bool:
        """
        Compare elapsed working hours against the threshold.

        ``None`` elapsed means the duration could not be computed from the
        stored data; that fails closed and reports a breach.
        """
        if elapsed_hours is None:
            return True
        return elapsed_hours > self.threshold(priority, kind)

    def status(
        self,
        priority: str,
        elapsed_hours: Optional[float],
        finished: bool,
        kind: str = "resolution",
    ) -> str:
        """
        Dashboard SLA status: on_time, breached, at_risk or pending.

        Finished measurements are either on_time or breached; running ones
        are at_risk past ``at_risk_ratio`` of the threshold.
        """
        if self.is_breached(priority, elapsed_hours, kind):
            return "breached"
        if finished:
            return "on_time"
        if elapsed_hours > self.threshold(priority, kind) * self.at_risk_ratio:
            return "at_risk"
        return "pending"


@dataclass
class SlaEvaluation:
    """SLA figures for one issue."""

    issue_id: str
    priority: str
    first_response_at: Optional[datetime]
    first_response_hours: Optional[float]
    resolution_hours: Optional[float]
    first_response_breached: bool
    resolution_breached: bool
    status: str
    deadline: Optional[datetime]
    data_integrity_error: Optional[str] = None

    def to_dict(self) -> dict:
        return asdict(self)


def first_response_at(issue, comments: Sequence, audit_entries: Sequence) -> Optional[datetime]:
    """
    Earliest resolver reaction on an issue.

    Either a public comment by someone other than the requester, or a
    status change recorded for a non-requester user. Automated
    escalations by the SLA sweep do not count.
    """
    requester = str(issue.employee_id)
    candidates = [
        c.created_at for c in comments
        if not c.is_internal and str(c.author_id) != requester and c.created_at
    ]
    candidates += [
        a.created_at for a in audit_entries
        if a.action in RESPONSE_ACTIONS and a.actor_id not in (requester, SYSTEM_ACTOR)
        and a.created_at
    ]
    return min(candidates) if candidates else None


def evaluate_issue_sla(
    issue,
    comments: Sequence = (),
    audit_entries: Sequence = (),
    calendar: Optional[BusinessCalendar] = None,
    policy: Optional[SlaPolicy] = None,
    now: Optional[datetime] = None,
) -> SlaEvaluation:
    """
    Compute first-response and resolution SLA figures for an issue.

    Open measurements use ``now`` as their end so that a silent issue still
    breaches. Missing or malformed timestamps produce an evaluation with
    both breach flags set and ``data_integrity_error`` filled in.
    """
    calendar = calendar or BusinessCalendar.from_settings()
    policy = policy or SlaPolicy.from_settings()
    now = now or business_now()
    priority = issue.priority

    try:
        created_at = calendar.coerce(issue.created_at)
        responded_at = first_response_at(issue, comments, audit_entries)

        first_response_hours = (
            calendar.working_hours_between(created_at, responded_at)
            if responded_at is not None else None
        )
        resolution_hours = (
            calendar.working_hours_between(created_at, issue.closed_at)
            if issue.closed_at is not None else None
        )
        age_hours = calendar.working_hours_between(created_at, now)
        deadline = calendar.add_working_hours(
            created_at, policy.threshold(priority, "resolution")
        )
    except DataIntegrityError as e:
        logger.warning(f"SLA data integrity error on issue {issue.id}: {e}")
        return SlaEvaluation(
            issue_id=str(issue.id),
            priority=priority,
            first_response_at=None,
            first_response_hours=None,
            resolution_hours=None,
            first_response_breached=True,
            resolution_breached=True,
            status="breached",
            deadline=None,
            data_integrity_error=str(e),
        )

    response_elapsed = first_response_hours if first_response_hours is not None else age_hours
    resolution_elapsed = resolution_hours if resolution_hours is not None else age_hours

    return SlaEvaluation(
        issue_id=str(issue.id),
        priority=priority,
        first_response_at=responded_at,
        first_response_hours=first_response_hours,
        resolution_hours=resolution_hours,
        first_response_breached=policy.is_breached(priority, response_elapsed, "first_response"),
        resolution_breached=policy.is_breached(priority, resolution_elapsed, "resolution"),
        status=policy.status(
            priority,
            resolution_elapsed,
            finished=resolution_hours is not None,
        ),
        deadline=deadline,
    )


def working_hours_between(start, end) -> float:
    """Working hours between two timestamps on the configured calendar."""
    return BusinessCalendar.from_settings().working_hours_between(start, end)


def add_working_hours(start, hours: float) -> datetime:
    return BusinessCalendar.from_settings().add_working_hours(start, hours)


def is_breached(priority: str, elapsed_hours: Optional[float], kind: str = "resolution") -> bool:
    """Breach check against the configured thresholds. ``None`` elapsed is a breach."""
    return SlaPolicy.from_settings().is_breached(priority, elapsed_hours, kind)


def sla_deadline(created_at, priority: str) -> datetime:
    """Resolution deadline: ``created_at`` plus the priority's threshold in working hours."""
    policy = SlaPolicy.from_settings()
    return add_working_hours(created_at, policy.threshold(priority, "resolution"))


def sla_status(created_at, priority: str, closed_at=None, now: Optional[datetime] = None) -> str:
    """
    Resolution SLA status of an issue.

    Missing or malformed ``created_at`` reports breached.
    """
    calendar = BusinessCalendar.from_settings()
    policy = SlaPolicy.from_settings()
    end = closed_at if closed_at is not None else (now or business_now())
    try:
        elapsed = calendar.working_hours_between(created_at, end)
    except DataIntegrityError as e:
        logger.warning(f"Cannot compute SLA status: {e}")
        elapsed = None
    return policy.status(priority, elapsed, finished=closed_at is not None)
