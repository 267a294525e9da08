"""
User model for requesters (employees) and resolvers (agents, managers, admins).
"""

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlalchemy import Boolean, CheckConstraint, DateTime, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from app.config import business_now
from app.database import Base


VALID_ROLES = ["employee", "agent", "manager", "admin"]

# Roles allowed to see internal notes
RESOLVER_ROLES = ["agent", "manager", "admin"]


class User(Base):
    """
    A portal user.

    Issues, comments and audit entries reference users by id only.
    Deactivated users stay in the table so history keeps resolving.
    """

    __tablename__ = "users"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    email: Mapped[Optional[str]] = mapped_column(String(255), unique=True)
    role: Mapped[str] = mapped_column(String(20), nullable=False, default="employee")
    city: Mapped[Optional[str]] = mapped_column(String(100))
    cluster: Mapped[Optional[str]] = mapped_column(String(100))
    is_active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        server_default="true",
        index=True
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, default=business_now)

    __table_args__ = (
        CheckConstraint(
            f"role IN ({', '.join(repr(r) for r in VALID_ROLES)})",
            name="check_valid_role"
        ),
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, name='{self.name}', role={self.role}, active={self.is_active})>"
