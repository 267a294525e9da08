"""
Persistence collaborators for the issue services.

IssueStore and UserDirectory wrap an AsyncSession. They never commit:
the caller owns the transaction (the request-scoped ``get_db`` dependency,
or the worker/CLI session), so a mutation and its audit entry land
together or not at all. Driver and connection failures surface as
StoreUnavailable and are never retried here.
"""

import functools
import logging
from dataclasses import dataclass, fields
from datetime import date, datetime, time, timedelta
from typing import List, Optional, Sequence
from uuid import UUID

from sqlalchemy import and_, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.models import AuditEntry, Comment, Issue, User
from app.services.errors import NotFound, StoreUnavailable

logger = logging.getLogger(__name__)


def as_uuid(value) -> Optional[UUID]:
    """Coerce an id to UUID; returns None for values that cannot be one."""
    if value is None or isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except ValueError:
        return None


def store_operation(func):
    """Translate database failures into StoreUnavailable."""

    @functools.wraps(func)
    async def wrapper(*args, **kwargs):
        try:
            return await func(*args, **kwargs)
        except (SQLAlchemyError, OSError) as e:
            logger.error(f"Store operation {func.__name__} failed: {e}")
            raise StoreUnavailable(f"Issue store unavailable: {e}") from e

    return wrapper


@dataclass
class IssueFilter:
    """
    Every filter key recognised by issue listing and analytics.

    ``None`` means "do not filter on this key". Dates are inclusive and
    compared against ``created_at`` in business-local time.
    """

    start_date: Optional[date] = None
    end_date: Optional[date] = None
    city: Optional[str] = None
    cluster: Optional[str] = None
    status: Optional[str] = None
    priority: Optional[str] = None
    assigned_to: Optional[UUID] = None
    employee_id: Optional[UUID] = None
    type_id: Optional[str] = None

    def is_empty(self) -> bool:
        return all(getattr(self, f.name) is None for f in fields(self))

    def conditions(self) -> list:
        filters = []

        if self.start_date:
            filters.append(Issue.created_at >= datetime.combine(self.start_date, time()))

        if self.end_date:
            filters.append(
                Issue.created_at < datetime.combine(self.end_date + timedelta(days=1), time())
            )

        if self.city:
            filters.append(Issue.city == self.city)

        if self.cluster:
            filters.append(Issue.cluster == self.cluster)

        if self.status:
            filters.append(Issue.status == self.status)

        if self.priority:
            filters.append(Issue.priority == self.priority)

        if self.assigned_to:
            filters.append(Issue.assigned_to == as_uuid(self.assigned_to))

        if self.employee_id:
            filters.append(Issue.employee_id == as_uuid(self.employee_id))

        if self.type_id:
            filters.append(Issue.type_id == self.type_id)

        return filters


class IssueStore:
    """Issue, comment and audit persistence over one session."""

    def __init__(self, db: AsyncSession):
        self.db = db

    @store_operation
    async def load_issue(self, issue_id) -> Issue:
        """
        Load an issue by id.

        Raises:
            NotFound: no issue with that id
        """
        key = as_uuid(issue_id)
        issue = await self.db.get(Issue, key) if key else None
        if issue is None:
            raise NotFound("Issue", issue_id)
        return issue

    @store_operation
    async def save_issue(self, issue: Issue) -> None:
        self.db.add(issue)
        await self.db.flush()

    @store_operation
    async def append_audit(
        self,
        issue_id,
        actor_id,
        action: str,
        previous_value=None,
        new_value=None,
        details: Optional[dict] = None,
        created_at: Optional[datetime] = None,
    ) -> AuditEntry:
        """Append one audit entry. Values are stored as strings."""
        entry = AuditEntry(
            issue_id=as_uuid(issue_id),
            actor_id=str(actor_id),
            action=action,
            previous_value=None if previous_value is None else str(previous_value),
            new_value=None if new_value is None else str(new_value),
            details=details,
        )
        if created_at is not None:
            entry.created_at = created_at
        self.db.add(entry)
        await self.db.flush()
        return entry

    @store_operation
    async def list_issues(
        self,
        issue_filter: Optional[IssueFilter] = None,
        offset: int = 0,
        limit: Optional[int] = None,
        with_history: bool = False,
    ) -> List[Issue]:
        """
        Issues matching a filter, newest first.

        ``with_history`` eagerly loads comments and audit entries, which the
        SLA calculations need.
        """
        query = select(Issue)
        if issue_filter:
            conditions = issue_filter.conditions()
            if conditions:
                query = query.where(and_(*conditions))
        if with_history:
            query = query.options(
                selectinload(Issue.comments),
                selectinload(Issue.audit_entries),
            ).execution_options(populate_existing=True)
        query = query.order_by(Issue.created_at.desc()).offset(offset)
        if limit is not None:
            query = query.limit(limit)

        result = await self.db.execute(query)
        return list(result.scalars().all())

    @store_operation
    async def count_issues(self, issue_filter: Optional[IssueFilter] = None) -> int:
        query = select(func.count()).select_from(Issue)
        if issue_filter:
            conditions = issue_filter.conditions()
            if conditions:
                query = query.where(and_(*conditions))
        result = await self.db.execute(query)
        return result.scalar_one()

    @store_operation
    async def list_by_status(
        self,
        statuses: Sequence[str],
        sla_breached: Optional[bool] = None,
    ) -> List[Issue]:
        query = select(Issue).where(Issue.status.in_(list(statuses)))
        if sla_breached is not None:
            query = query.where(Issue.sla_breached == sla_breached)
        result = await self.db.execute(query.order_by(Issue.created_at))
        return list(result.scalars().all())

    @store_operation
    async def add_comment(self, comment: Comment) -> Comment:
        self.db.add(comment)
        await self.db.flush()
        return comment

    @store_operation
    async def list_comments(self, issue_id, include_internal: bool = True) -> List[Comment]:
        query = select(Comment).where(Comment.issue_id == as_uuid(issue_id))
        if not include_internal:
            query = query.where(Comment.is_internal.is_(False))
        result = await self.db.execute(query.order_by(Comment.created_at))
        return list(result.scalars().all())

    @store_operation
    async def list_audit(self, issue_id) -> List[AuditEntry]:
        result = await self.db.execute(
            select(AuditEntry)
            .where(AuditEntry.issue_id == as_uuid(issue_id))
            .order_by(AuditEntry.created_at)
        )
        return list(result.scalars().all())


class UserDirectory:
    """Read access to portal users, plus the admin CRUD the API exposes."""

    def __init__(self, db: AsyncSession):
        self.db = db

    @store_operation
    async def get_user(self, user_id) -> Optional[User]:
        key = as_uuid(user_id)
        if key is None:
            return None
        return await self.db.get(User, key)

    async def is_active_user(self, user_id) -> bool:
        user = await self.get_user(user_id)
        return user is not None and user.is_active

    @store_operation
    async def list_users(
        self,
        role: Optional[str] = None,
        is_active: Optional[bool] = None,
        city: Optional[str] = None,
    ) -> List[User]:
        filters = []
        if role:
            filters.append(User.role == role)
        if is_active is not None:
            filters.append(User.is_active == is_active)
        if city:
            filters.append(User.city == city)

        query = select(User)
        if filters:
            query = query.where(and_(*filters))
        result = await self.db.execute(query.order_by(User.name))
        return list(result.scalars().all())

    @store_operation
    async def save_user(self, user: User) -> User:
        self.db.add(user)
        await self.db.flush()
        return user
