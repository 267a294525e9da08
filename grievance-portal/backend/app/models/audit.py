"""
AuditEntry model: append-only trail of mutating actions on issues.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlalchemy import JSON, DateTime, ForeignKey, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.config import business_now
from app.database import Base


VALID_AUDIT_ACTIONS = [
    "create",
    "status_change",
    "reopen",
    "escalate",
    "assign",
    "unassign",
    "map_type",
    "priority_change",
    "sla_breach",
]


class AuditEntry(Base):
    """
    One row per mutating action on an issue.

    ``actor_id`` is the acting user's id as a string so that system
    actions (the SLA sweep) can be recorded as ``"system"``.
    Rows are never updated or deleted.
    """

    __tablename__ = "issue_audit_trail"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)

    issue_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("issues.id"),
        nullable=False,
        index=True
    )
    actor_id: Mapped[str] = mapped_column(String(64), nullable=False)
    action: Mapped[str] = mapped_column(String(32), nullable=False, index=True)
    previous_value: Mapped[Optional[str]] = mapped_column(String(255))
    new_value: Mapped[Optional[str]] = mapped_column(String(255))

    # Opaque caller metadata, e.g. a reopen or escalation reason
    details: Mapped[Optional[dict]] = mapped_column(JSON, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=business_now,
        index=True
    )

    issue: Mapped["Issue"] = relationship("Issue", back_populates="audit_entries")

    def __repr__(self) -> str:
        return (
            f"<AuditEntry(issue_id={self.issue_id}, action={self.action}, "
            f"{self.previous_value!r} -> {self.new_value!r})>"
        )
