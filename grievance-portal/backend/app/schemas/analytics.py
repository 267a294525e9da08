from pydantic import BaseModel
from typing import Dict, List

class TrendDataPoint(BaseModel):
    """Single data point for trend chart."""
    period: str  # ISO date or YYYY-MM
    created: int
    resolved: int

class AssigneeStatsResponse(BaseModel):
    assignee_id: str
    total_assigned: int
    resolved: int
    resolution_rate: float

class AnalyticsSummaryResponse(BaseModel):
    """Aggregated issue metrics for the dashboard."""
    total: int
    by_status: Dict[str, int]
    by_priority: Dict[str, int]
    by_type: Dict[str, int]
    by_city: Dict[str, int]
    resolution_rate: float
    average_resolution_hours: float
    average_first_response_hours: float
    sla_breached_count: int
    data_integrity_errors: int
    by_assignee: List[AssigneeStatsResponse]
    trend: List[TrendDataPoint]
