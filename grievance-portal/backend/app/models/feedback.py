"""
TicketFeedback model for requester sentiment on a worked issue.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, String, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from app.config import business_now
from app.database import Base


VALID_SENTIMENTS = ["positive", "neutral", "negative"]


class TicketFeedback(Base):
    """
    Sentiment left by the requester on one of their issues.

    At most one row per (issue, employee); a resubmission overwrites it.
    Assignee and location are snapshotted at submission time.
    """

    __tablename__ = "ticket_feedback"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)

    issue_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("issues.id"),
        nullable=False,
        index=True
    )
    employee_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id"),
        nullable=False
    )
    feedback_option: Mapped[str] = mapped_column(String(100), nullable=False)
    sentiment: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    agent_id: Mapped[Optional[UUID]] = mapped_column(Uuid, nullable=True)
    city: Mapped[Optional[str]] = mapped_column(String(100))
    cluster: Mapped[Optional[str]] = mapped_column(String(100))
    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=business_now,
        index=True
    )

    __table_args__ = (
        UniqueConstraint("issue_id", "employee_id", name="uq_feedback_issue_employee"),
        CheckConstraint(
            f"sentiment IN ({', '.join(repr(s) for s in VALID_SENTIMENTS)})",
            name="check_valid_sentiment"
        ),
    )

    def __repr__(self) -> str:
        return f"<TicketFeedback(issue_id={self.issue_id}, sentiment={self.sentiment})>"
