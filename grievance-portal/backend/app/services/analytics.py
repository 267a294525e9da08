"""
Dashboard analytics over the issue set.

Pure read-side folds: nothing here mutates the store. Durations are
working hours on the business calendar; issues whose timestamps cannot
be evaluated are counted in ``data_integrity_errors`` and left out of the
averages instead of being reported as zero.
"""

import logging
from collections import Counter
from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.config import business_now
from app.models import CLOSED_STATUSES, VALID_PRIORITIES, VALID_STATUSES, Issue
from app.services.sla import BusinessCalendar, SlaPolicy, evaluate_issue_sla
from app.services.store import IssueFilter, IssueStore

logger = logging.getLogger(__name__)

# Analytics accept the same explicit filter record as issue listing
AnalyticsFilter = IssueFilter

TREND_PERIODS = ("day", "month")


@dataclass
class TrendPoint:
    period: str
    created: int = 0
    resolved: int = 0


@dataclass
class AssigneeStats:
    assignee_id: str
    total_assigned: int = 0
    resolved: int = 0
    resolution_rate: float = 0.0


@dataclass
class AnalyticsSummary:
    total: int = 0
    by_status: Dict[str, int] = field(default_factory=dict)
    by_priority: Dict[str, int] = field(default_factory=dict)
    by_type: Dict[str, int] = field(default_factory=dict)
    by_city: Dict[str, int] = field(default_factory=dict)
    resolution_rate: float = 0.0
    average_resolution_hours: float = 0.0
    average_first_response_hours: float = 0.0
    sla_breached_count: int = 0
    data_integrity_errors: int = 0
    by_assignee: List[AssigneeStats] = field(default_factory=list)
    trend: List[TrendPoint] = field(default_factory=list)

    def to_dict(self) -> dict:
        return asdict(self)


def _mean(values: List[float]) -> float:
    return round(sum(values) / len(values), 2) if values else 0.0


def _period_key(value: datetime, period: str) -> str:
    if period == "month":
        return value.strftime("%Y-%m")
    return value.date().isoformat()


def build_trend(issues: List[Issue], period: str = "day") -> List[TrendPoint]:
    """
    Created and resolved counts per day or month, oldest first.

    An issue counts as resolved in the period of its ``closed_at``.
    """
    if period not in TREND_PERIODS:
        raise ValueError(f"Unknown trend period {period!r}")

    points: Dict[str, TrendPoint] = {}
    for issue in issues:
        if isinstance(issue.created_at, datetime):
            key = _period_key(issue.created_at, period)
            points.setdefault(key, TrendPoint(period=key)).created += 1
        if isinstance(issue.closed_at, datetime):
            key = _period_key(issue.closed_at, period)
            points.setdefault(key, TrendPoint(period=key)).resolved += 1

    return [points[key] for key in sorted(points)]


class AnalyticsService:
    """Aggregates issues into dashboard metrics."""

    def __init__(
        self,
        db: AsyncSession,
        store: Optional[IssueStore] = None,
        calendar: Optional[BusinessCalendar] = None,
        policy: Optional[SlaPolicy] = None,
    ):
        self.db = db
        self.store = store or IssueStore(db)
        self.calendar = calendar or BusinessCalendar.from_settings()
        self.policy = policy or SlaPolicy.from_settings()

    async def get_analytics(
        self,
        analytics_filter: Optional[AnalyticsFilter] = None,
        now: Optional[datetime] = None,
    ) -> AnalyticsSummary:
        """
        Fold the filtered issue set into summary metrics.

        An empty set yields an all-zero summary.

        Args:
            analytics_filter: Filter record; None means all issues
            now: Reference time for SLA checks on open issues

        Returns:
            AnalyticsSummary
        """
        issues = await self.store.list_issues(analytics_filter, with_history=True)
        now = now or business_now()

        summary = AnalyticsSummary(
            total=len(issues),
            by_status={status: 0 for status in VALID_STATUSES},
            by_priority={priority: 0 for priority in VALID_PRIORITIES},
        )
        if not issues:
            return summary

        by_type: Counter = Counter()
        by_city: Counter = Counter()
        assignees: Dict[str, AssigneeStats] = {}
        resolution_hours: List[float] = []
        first_response_hours: List[float] = []

        for issue in issues:
            summary.by_status[issue.status] = summary.by_status.get(issue.status, 0) + 1
            summary.by_priority[issue.priority] = summary.by_priority.get(issue.priority, 0) + 1
            by_type[issue.mapped_type_id or issue.type_id] += 1
            by_city[issue.city or "unknown"] += 1

            if issue.assigned_to is not None:
                key = str(issue.assigned_to)
                stats = assignees.setdefault(key, AssigneeStats(assignee_id=key))
                stats.total_assigned += 1
                if issue.status in CLOSED_STATUSES:
                    stats.resolved += 1

            evaluation = evaluate_issue_sla(
                issue,
                issue.comments,
                issue.audit_entries,
                calendar=self.calendar,
                policy=self.policy,
                now=now,
            )
            if evaluation.data_integrity_error:
                summary.data_integrity_errors += 1
            if evaluation.resolution_breached:
                summary.sla_breached_count += 1
            if evaluation.resolution_hours is not None:
                resolution_hours.append(evaluation.resolution_hours)
            if evaluation.first_response_hours is not None:
                first_response_hours.append(evaluation.first_response_hours)

        resolved = sum(summary.by_status.get(status, 0) for status in CLOSED_STATUSES)
        summary.resolution_rate = round(resolved / summary.total, 4)
        summary.average_resolution_hours = _mean(resolution_hours)
        summary.average_first_response_hours = _mean(first_response_hours)
        summary.by_type = dict(by_type.most_common())
        summary.by_city = dict(by_city.most_common())

        for stats in assignees.values():
            stats.resolution_rate = round(stats.resolved / stats.total_assigned, 4)
        summary.by_assignee = sorted(
            assignees.values(), key=lambda s: s.total_assigned, reverse=True
        )
        summary.trend = build_trend(issues, "day")

        if summary.data_integrity_errors:
            logger.warning(
                f"Analytics skipped {summary.data_integrity_errors} issues with bad timestamps"
            )
        return summary

    async def get_trends(
        self,
        analytics_filter: Optional[AnalyticsFilter] = None,
        period: str = "day",
    ) -> List[TrendPoint]:
        """Created/resolved counts per day or per month."""
        issues = await self.store.list_issues(analytics_filter)
        return build_trend(issues, period)


def get_analytics_service(db: AsyncSession) -> AnalyticsService:
    return AnalyticsService(db)
