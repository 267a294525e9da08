"""
Comment model for public replies and internal notes on an issue.
"""

from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy import Boolean, DateTime, ForeignKey, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.config import business_now
from app.database import Base


class Comment(Base):
    """
    Author-attributed entry on an issue.

    Internal notes (``is_internal``) are visible to resolvers and admins
    only; the filtering happens on read, not per stored row.
    Comments are never edited or deleted.
    """

    __tablename__ = "issue_comments"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)

    issue_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("issues.id"),
        nullable=False,
        index=True
    )
    author_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id"),
        nullable=False
    )
    content: Mapped[str] = mapped_column(Text, nullable=False)
    is_internal: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        server_default="false"
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=business_now,
        index=True
    )

    issue: Mapped["Issue"] = relationship("Issue", back_populates="comments")

    def __repr__(self) -> str:
        kind = "internal" if self.is_internal else "public"
        return f"<Comment(id={self.id}, issue_id={self.issue_id}, {kind})>"
