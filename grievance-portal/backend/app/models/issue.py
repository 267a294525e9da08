"""
Issue model for grievances raised by employees.
"""

from datetime import datetime
from typing import List, Optional
from uuid import UUID, uuid4

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.config import business_now
from app.database import Base


# Valid values for check constraints
VALID_STATUSES = ["open", "in_progress", "pending", "escalated", "resolved", "closed"]
VALID_PRIORITIES = ["low", "medium", "high", "critical", "urgent"]

# Statuses in which closed_at must be set
CLOSED_STATUSES = ["resolved", "closed"]


class Issue(Base):
    """
    Represents a single grievance tracked through its lifecycle.

    Issues are created by an employee (the requester), worked by resolver
    users, and never physically deleted: closing is a status, not a row
    removal. ``closed_at`` is set exactly while the status is resolved or
    closed.
    """

    __tablename__ = "issues"

    # Primary key
    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)

    description: Mapped[str] = mapped_column(Text, nullable=False)

    # Lifecycle
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="open",
        index=True
    )
    priority: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="medium",
        index=True
    )

    # Classification against the static catalog
    type_id: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    sub_type_id: Mapped[Optional[str]] = mapped_column(String(50))

    # Resolver reclassification
    mapped_type_id: Mapped[Optional[str]] = mapped_column(String(50))
    mapped_sub_type_id: Mapped[Optional[str]] = mapped_column(String(50))
    mapped_by: Mapped[Optional[UUID]] = mapped_column(Uuid, nullable=True)
    mapped_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    # People
    employee_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id"),
        nullable=False,
        index=True
    )
    assigned_to: Mapped[Optional[UUID]] = mapped_column(
        Uuid,
        ForeignKey("users.id"),
        nullable=True,
        index=True
    )

    # Requester location snapshot, used by dashboard filters
    city: Mapped[Optional[str]] = mapped_column(String(100), index=True)
    cluster: Mapped[Optional[str]] = mapped_column(String(100), index=True)

    # Escalation and SLA tracking
    escalation_level: Mapped[int] = mapped_column(
        Integer,
        default=0,
        server_default="0"
    )
    escalated_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    sla_breached: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        server_default="false"
    )

    # Timestamps (naive, business timezone)
    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=business_now,
        index=True
    )
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=business_now)
    closed_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    # Relationships
    comments: Mapped[List["Comment"]] = relationship(
        "Comment",
        back_populates="issue",
        order_by="Comment.created_at"
    )
    audit_entries: Mapped[List["AuditEntry"]] = relationship(
        "AuditEntry",
        back_populates="issue",
        order_by="AuditEntry.created_at"
    )

    __table_args__ = (
        CheckConstraint(
            f"status IN ({', '.join(repr(s) for s in VALID_STATUSES)})",
            name="check_valid_status"
        ),
        CheckConstraint(
            f"priority IN ({', '.join(repr(p) for p in VALID_PRIORITIES)})",
            name="check_valid_priority"
        ),
    )

    @property
    def is_closed(self) -> bool:
        return self.status in CLOSED_STATUSES

    def __repr__(self) -> str:
        return (
            f"<Issue(id={self.id}, "
            f"status={self.status}, "
            f"priority={self.priority}, "
            f"assigned_to={self.assigned_to})>"
        )
