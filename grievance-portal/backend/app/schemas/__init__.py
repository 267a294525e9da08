from app.schemas.common import PaginatedResponse
from app.schemas.issue import (
    IssueCreate, IssueResponse, StatusUpdateRequest, ReasonRequest,
    PriorityUpdateRequest, TypeMappingRequest, AssignRequest, SlaResponse,
    StatusEnum, PriorityEnum
)
from app.schemas.comment import CommentCreate, CommentResponse
from app.schemas.audit import AuditEntryResponse
from app.schemas.user import UserCreate, UserUpdate, UserResponse, RoleEnum
from app.schemas.analytics import (
    AnalyticsSummaryResponse, AssigneeStatsResponse, TrendDataPoint
)
from app.schemas.feedback import (
    FeedbackCreate, FeedbackResponse, FeedbackSummaryResponse, SentimentEnum
)

__all__ = [
    # Common
    "PaginatedResponse",
    # Issue
    "IssueCreate",
    "IssueResponse",
    "StatusUpdateRequest",
    "ReasonRequest",
    "PriorityUpdateRequest",
    "TypeMappingRequest",
    "AssignRequest",
    "SlaResponse",
    "StatusEnum",
    "PriorityEnum",
    # Comment
    "CommentCreate",
    "CommentResponse",
    # Audit
    "AuditEntryResponse",
    # User
    "UserCreate",
    "UserUpdate",
    "UserResponse",
    "RoleEnum",
    # Analytics
    "AnalyticsSummaryResponse",
    "AssigneeStatsResponse",
    "TrendDataPoint",
    # Feedback
    "FeedbackCreate",
    "FeedbackResponse",
    "FeedbackSummaryResponse",
    "SentimentEnum",
]
