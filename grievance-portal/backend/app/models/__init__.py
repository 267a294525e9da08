"""
Database models for the Grievance Portal application.

This module exports all SQLAlchemy models and the static issue type
catalog used throughout the application.
"""

from app.models.user import User, VALID_ROLES, RESOLVER_ROLES
from app.models.issue import Issue, VALID_STATUSES, VALID_PRIORITIES, CLOSED_STATUSES
from app.models.comment import Comment
from app.models.audit import AuditEntry, VALID_AUDIT_ACTIONS
from app.models.feedback import TicketFeedback, VALID_SENTIMENTS

# Issue type catalog: type_id -> allowed sub_type_ids.
# An empty list means the type takes no sub-type.
ISSUE_TYPES = {
    "salary": [
        "salary-not-received",
        "less-salary",
        "lop-incorrect",
        "no-incentives",
        "no-ot",
        "no-payslip",
        "salary-advance",
        "increment-not-happened",
        "increment-when",
    ],
    "pf": [
        "bank-kyc",
        "name-change",
        "advance-request",
        "pf-transfer",
        "nominee-details",
        "uan-activation",
        "need-uan-number",
    ],
    "esi": [
        "family-addition",
        "nominee-change",
        "name-change",
        "change-personal-details",
    ],
    "leave": [
        "manager-rejected",
        "not-added",
    ],
    "manager": [],
    "facility": [
        "no-water",
        "washroom-hygiene",
    ],
    "coworker": [
        "abusing",
        "threatening",
        "manhandled",
    ],
    "personal": [
        "bank-account",
        "email-id",
        "phone-number",
    ],
    "others": [
        "general-query",
        "it-issue",
        "other-issue",
    ],
}


def is_known_classification(type_id: str, sub_type_id: str | None) -> bool:
    """Check a (type, sub-type) pair against the catalog."""
    if type_id not in ISSUE_TYPES:
        return False
    sub_types = ISSUE_TYPES[type_id]
    if not sub_types:
        return sub_type_id is None
    return sub_type_id in sub_types


# Export all models
__all__ = [
    "User",
    "Issue",
    "Comment",
    "AuditEntry",
    "TicketFeedback",
    "ISSUE_TYPES",
    "is_known_classification",
    "VALID_ROLES",
    "RESOLVER_ROLES",
    "VALID_STATUSES",
    "VALID_PRIORITIES",
    "CLOSED_STATUSES",
    "VALID_AUDIT_ACTIONS",
    "VALID_SENTIMENTS",
]
