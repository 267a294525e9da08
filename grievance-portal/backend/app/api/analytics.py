"""
Analytics API endpoints for the dashboard.
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional, List
from datetime import date
from uuid import UUID

from app.api.deps import get_db
from app.schemas import AnalyticsSummaryResponse, TrendDataPoint, StatusEnum, PriorityEnum
from app.services import AnalyticsFilter, get_analytics_service

router = APIRouter(prefix="/analytics", tags=["analytics"])


def _analytics_filter(
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    city: Optional[str] = None,
    cluster: Optional[str] = None,
    status: Optional[StatusEnum] = None,
    priority: Optional[PriorityEnum] = None,
    assigned_to: Optional[UUID] = None,
) -> AnalyticsFilter:
    return AnalyticsFilter(
        start_date=start_date,
        end_date=end_date,
        city=city,
        cluster=cluster,
        status=status.value if status else None,
        priority=priority.value if priority else None,
        assigned_to=assigned_to,
    )


@router.get("/summary", response_model=AnalyticsSummaryResponse)
async def get_summary(
    analytics_filter: AnalyticsFilter = Depends(_analytics_filter),
    db: AsyncSession = Depends(get_db)
):
    """
    Aggregated issue metrics.

    Returns:
    - Total issues and counts by status, priority, type and city
    - Resolution rate ((resolved + closed) / total)
    - Average resolution and first-response times in working hours
    - SLA breach and data-integrity counts
    - Per-assignee workload and a daily created/resolved trend

    An empty selection returns zeros.
    """
    summary = await get_analytics_service(db).get_analytics(analytics_filter)
    return summary.to_dict()


@router.get("/trends", response_model=List[TrendDataPoint])
async def get_trends(
    period: str = Query("day", pattern="^(day|month)$"),
    analytics_filter: AnalyticsFilter = Depends(_analytics_filter),
    db: AsyncSession = Depends(get_db)
):
    """Created and resolved issue counts per day or per month."""
    points = await get_analytics_service(db).get_trends(analytics_filter, period)
    return [TrendDataPoint(period=p.period, created=p.created, resolved=p.resolved) for p in points]
