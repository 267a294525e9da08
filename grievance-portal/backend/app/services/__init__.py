"""
Services module for issue lifecycle, SLA and analytics business logic.
"""

from app.services.errors import (
    IssueServiceError,
    NotFound,
    InvalidTransition,
    IssueClosed,
    UnknownAssignee,
    EmptyContent,
    InvalidClassification,
    InvalidPriority,
    FeedbackNotAllowed,
    InvalidFeedback,
    DataIntegrityError,
    StoreUnavailable
)
from app.services.lifecycle import (
    ALLOWED_TRANSITIONS,
    can_transition,
    allowed_next_statuses
)
from app.services.sla import (
    BusinessCalendar,
    SlaPolicy,
    SlaEvaluation,
    evaluate_issue_sla,
    working_hours_between,
    is_breached,
    sla_deadline,
    sla_status
)
from app.services.store import (
    IssueFilter,
    IssueStore,
    UserDirectory
)
from app.services.issues import (
    IssueService,
    get_issue_service
)
from app.services.analytics import (
    AnalyticsFilter,
    AnalyticsSummary,
    AnalyticsService,
    get_analytics_service
)
from app.services.feedback import (
    FeedbackService,
    get_feedback_service
)
from app.services.sla_monitor import (
    SlaMonitor,
    get_sla_monitor
)

__all__ = [
    "IssueServiceError",
    "NotFound",
    "InvalidTransition",
    "IssueClosed",
    "UnknownAssignee",
    "EmptyContent",
    "InvalidClassification",
    "InvalidPriority",
    "FeedbackNotAllowed",
    "InvalidFeedback",
    "DataIntegrityError",
    "StoreUnavailable",
    "ALLOWED_TRANSITIONS",
    "can_transition",
    "allowed_next_statuses",
    "BusinessCalendar",
    "SlaPolicy",
    "SlaEvaluation",
    "evaluate_issue_sla",
    "working_hours_between",
    "is_breached",
    "sla_deadline",
    "sla_status",
    "IssueFilter",
    "IssueStore",
    "UserDirectory",
    "IssueService",
    "get_issue_service",
    "AnalyticsFilter",
    "AnalyticsSummary",
    "AnalyticsService",
    "get_analytics_service",
    "FeedbackService",
    "get_feedback_service",
    "SlaMonitor",
    "get_sla_monitor"
]
