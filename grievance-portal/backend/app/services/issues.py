"""
Issue lifecycle service.

This module provides the IssueService class that:
1. Creates issues for active requesters against the type catalog
2. Applies status transitions through the lifecycle table (including
   reopen and escalation)
3. Assigns and unassigns resolvers
4. Records public comments and internal notes
5. Reclassifies issues and changes their priority

Every successful mutation stamps ``updated_at`` and appends exactly one
audit entry in the caller's transaction. Rejected operations leave the
stored issue untouched.
"""

import logging
from datetime import datetime
from typing import Callable, List, Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from app.config import business_now
from app.models import (
    RESOLVER_ROLES,
    VALID_PRIORITIES,
    VALID_STATUSES,
    AuditEntry,
    Comment,
    Issue,
    is_known_classification,
)
from app.services.errors import (
    EmptyContent,
    InvalidClassification,
    InvalidPriority,
    InvalidTransition,
    IssueClosed,
    NotFound,
    UnknownAssignee,
)
from app.services.lifecycle import REOPENABLE_STATUSES, can_transition, closed_at_for
from app.services.sla import BusinessCalendar, SlaEvaluation, SlaPolicy, evaluate_issue_sla
from app.services.store import IssueFilter, IssueStore, UserDirectory, as_uuid

logger = logging.getLogger(__name__)


class IssueService:
    """Decision layer between the API and the issue store."""

    def __init__(
        self,
        db: AsyncSession,
        store: Optional[IssueStore] = None,
        users: Optional[UserDirectory] = None,
        clock: Callable[[], datetime] = business_now,
    ):
        """
        Initialize the issue service.

        Args:
            db: Async database session
            store: Optional IssueStore (built on ``db`` if not provided)
            users: Optional UserDirectory (built on ``db`` if not provided)
            clock: Source of the current business-local time
        """
        self.db = db
        self.store = store or IssueStore(db)
        self.users = users or UserDirectory(db)
        self.clock = clock

    async def get_issue(self, issue_id) -> Issue:
        return await self.store.load_issue(issue_id)

    async def list_issues(
        self,
        issue_filter: Optional[IssueFilter] = None,
        page: int = 1,
        per_page: int = 50,
    ) -> Tuple[List[Issue], int]:
        """Return one page of issues and the total match count."""
        total = await self.store.count_issues(issue_filter)
        items = await self.store.list_issues(
            issue_filter,
            offset=(page - 1) * per_page,
            limit=per_page,
        )
        return items, total

    async def create_issue(
        self,
        employee_id,
        type_id: str,
        sub_type_id: Optional[str],
        description: str,
        priority: str = "medium",
    ) -> Issue:
        """
        Raise a new issue for a requester.

        The requester's city and cluster are copied onto the issue so
        dashboard filters do not depend on later profile edits.

        Raises:
            NotFound: requester does not exist or is inactive
            InvalidClassification: type/sub-type outside the catalog
            InvalidPriority: unknown priority
            EmptyContent: blank description
        """
        requester = await self.users.get_user(employee_id)
        if requester is None or not requester.is_active:
            raise NotFound("User", employee_id)

        if not is_known_classification(type_id, sub_type_id):
            raise InvalidClassification(type_id, sub_type_id)

        if priority not in VALID_PRIORITIES:
            raise InvalidPriority(priority)

        description = (description or "").strip()
        if not description:
            raise EmptyContent()

        now = self.clock()
        issue = Issue(
            description=description,
            status="open",
            priority=priority,
            type_id=type_id,
            sub_type_id=sub_type_id,
            employee_id=requester.id,
            city=requester.city,
            cluster=requester.cluster,
            escalation_level=0,
            sla_breached=False,
            created_at=now,
            updated_at=now,
        )
        await self.store.save_issue(issue)
        await self.store.append_audit(
            issue.id, requester.id, "create",
            new_value="open",
            details={"type_id": type_id, "sub_type_id": sub_type_id, "priority": priority},
            created_at=now,
        )

        logger.info(f"Issue {issue.id} created by {requester.id} ({type_id}/{sub_type_id})")
        return issue

    def _apply_status(self, issue: Issue, new_status: str, now: datetime) -> str:
        """Move ``issue`` to ``new_status`` and keep ``closed_at`` consistent."""
        previous = issue.status
        issue.status = new_status
        issue.closed_at = closed_at_for(new_status, now)
        issue.updated_at = now
        return previous

    async def update_status(
        self,
        issue_id,
        new_status: str,
        actor_id,
        reason: Optional[str] = None,
    ) -> Issue:
        """
        Apply a status change if the lifecycle table allows it.

        Args:
            issue_id: Issue to update
            new_status: Requested status
            actor_id: Acting user
            reason: Optional free text kept as audit metadata

        Raises:
            NotFound: issue does not exist
            InvalidTransition: edge not in the table; issue unchanged
        """
        issue = await self.store.load_issue(issue_id)

        if new_status not in VALID_STATUSES or not can_transition(issue.status, new_status):
            logger.warning(
                f"Rejected status change on issue {issue.id}: {issue.status} -> {new_status}"
            )
            raise InvalidTransition(issue.status, new_status)

        now = self.clock()
        previous = self._apply_status(issue, new_status, now)
        await self.store.save_issue(issue)
        await self.store.append_audit(
            issue.id, actor_id, "status_change",
            previous_value=previous,
            new_value=new_status,
            details={"reason": reason} if reason else None,
            created_at=now,
        )

        logger.info(f"Issue {issue.id} moved {previous} -> {new_status} by {actor_id}")
        return issue

    async def reopen(self, issue_id, actor_id, reason: Optional[str] = None) -> Issue:
        """
        Reopen a resolved or closed issue.

        Resolved and closed are handled identically; the reason, if any, is
        stored as opaque metadata on the ``reopen`` audit entry.

        Raises:
            NotFound: issue does not exist
            InvalidTransition: issue is not resolved or closed
        """
        issue = await self.store.load_issue(issue_id)

        if issue.status not in REOPENABLE_STATUSES or not can_transition(issue.status, "open"):
            logger.warning(f"Rejected reopen on issue {issue.id} in status {issue.status}")
            raise InvalidTransition(issue.status, "open")

        now = self.clock()
        previous = self._apply_status(issue, "open", now)
        await self.store.save_issue(issue)
        await self.store.append_audit(
            issue.id, actor_id, "reopen",
            previous_value=previous,
            new_value="open",
            details={"reason": reason} if reason else None,
            created_at=now,
        )

        logger.info(f"Issue {issue.id} reopened from {previous} by {actor_id}")
        return issue

    async def escalate(self, issue_id, actor_id, reason: Optional[str] = None) -> Issue:
        """
        Escalate an in-progress issue.

        Moves the issue to ``escalated``, raises its priority to urgent and
        bumps the escalation level.

        Raises:
            NotFound: issue does not exist
            InvalidTransition: current status cannot move to escalated
        """
        issue = await self.store.load_issue(issue_id)

        if not can_transition(issue.status, "escalated"):
            logger.warning(f"Rejected escalation on issue {issue.id} in status {issue.status}")
            raise InvalidTransition(issue.status, "escalated")

        now = self.clock()
        previous_priority = issue.priority
        previous = self._apply_status(issue, "escalated", now)
        issue.priority = "urgent"
        issue.escalation_level = (issue.escalation_level or 0) + 1
        issue.escalated_at = now

        await self.store.save_issue(issue)
        details = {
            "escalation_level": issue.escalation_level,
            "previous_priority": previous_priority,
        }
        if reason:
            details["reason"] = reason
        await self.store.append_audit(
            issue.id, actor_id, "escalate",
            previous_value=previous,
            new_value="escalated",
            details=details,
            created_at=now,
        )

        logger.info(
            f"Issue {issue.id} escalated to level {issue.escalation_level} by {actor_id}"
        )
        return issue

    async def update_priority(self, issue_id, priority: str, actor_id) -> Issue:
        """
        Change an issue's priority. Setting the current priority is a no-op.

        Raises:
            NotFound: issue does not exist
            InvalidPriority: unknown priority
        """
        if priority not in VALID_PRIORITIES:
            raise InvalidPriority(priority)

        issue = await self.store.load_issue(issue_id)
        if issue.priority == priority:
            return issue

        now = self.clock()
        previous = issue.priority
        issue.priority = priority
        issue.updated_at = now
        await self.store.save_issue(issue)
        await self.store.append_audit(
            issue.id, actor_id, "priority_change",
            previous_value=previous,
            new_value=priority,
            created_at=now,
        )

        logger.info(f"Issue {issue.id} priority {previous} -> {priority} by {actor_id}")
        return issue

    async def map_type(
        self,
        issue_id,
        type_id: str,
        sub_type_id: Optional[str],
        actor_id,
    ) -> Issue:
        """
        Record a resolver's reclassification of an issue.

        The requester's original type and sub-type are kept; the mapping
        lives in the ``mapped_*`` columns.

        Raises:
            NotFound: issue does not exist
            InvalidClassification: type/sub-type outside the catalog
        """
        if not is_known_classification(type_id, sub_type_id):
            raise InvalidClassification(type_id, sub_type_id)

        issue = await self.store.load_issue(issue_id)

        now = self.clock()
        previous = _classification(
            issue.mapped_type_id or issue.type_id,
            issue.mapped_sub_type_id if issue.mapped_type_id else issue.sub_type_id,
        )
        issue.mapped_type_id = type_id
        issue.mapped_sub_type_id = sub_type_id
        issue.mapped_by = as_uuid(actor_id)
        issue.mapped_at = now
        issue.updated_at = now

        await self.store.save_issue(issue)
        await self.store.append_audit(
            issue.id, actor_id, "map_type",
            previous_value=previous,
            new_value=_classification(type_id, sub_type_id),
            created_at=now,
        )

        logger.info(f"Issue {issue.id} mapped to {type_id}/{sub_type_id} by {actor_id}")
        return issue

    async def assign(self, issue_id, assignee_id, actor_id) -> Issue:
        """
        Assign an issue to a resolver, or unassign it with ``assignee_id=None``.

        Reassigning to the current assignee changes nothing and writes no
        audit entry. Concurrent assignments are last-write-wins.

        Raises:
            NotFound: issue does not exist
            IssueClosed: issue is closed; assignee unchanged
            UnknownAssignee: assignee missing or inactive
        """
        issue = await self.store.load_issue(issue_id)

        if issue.status == "closed":
            logger.warning(f"Rejected assignment on closed issue {issue.id}")
            raise IssueClosed(issue.id)

        new_assignee = as_uuid(assignee_id) if assignee_id is not None else None
        if assignee_id is not None and new_assignee is None:
            raise UnknownAssignee(assignee_id)

        if issue.assigned_to == new_assignee:
            return issue

        if new_assignee is not None and not await self.users.is_active_user(new_assignee):
            logger.warning(f"Rejected assignment of issue {issue.id} to {assignee_id}")
            raise UnknownAssignee(assignee_id)

        now = self.clock()
        previous = issue.assigned_to
        issue.assigned_to = new_assignee
        issue.updated_at = now
        await self.store.save_issue(issue)
        await self.store.append_audit(
            issue.id, actor_id, "assign" if new_assignee is not None else "unassign",
            previous_value=previous,
            new_value=new_assignee,
            created_at=now,
        )

        logger.info(f"Issue {issue.id} assignee {previous} -> {new_assignee} by {actor_id}")
        return issue

    async def add_comment(
        self,
        issue_id,
        author_id,
        content: str,
        is_internal: bool = False,
    ) -> Comment:
        """
        Append a comment or internal note. Allowed in every status.

        Raises:
            NotFound: issue does not exist
            EmptyContent: content blank after trimming
        """
        content = (content or "").strip()
        if not content:
            raise EmptyContent()

        issue = await self.store.load_issue(issue_id)

        now = self.clock()
        comment = Comment(
            issue_id=issue.id,
            author_id=as_uuid(author_id),
            content=content,
            is_internal=bool(is_internal),
            created_at=now,
        )
        await self.store.add_comment(comment)

        issue.updated_at = now
        await self.store.save_issue(issue)

        kind = "internal note" if is_internal else "comment"
        logger.info(f"Added {kind} {comment.id} to issue {issue.id} by {author_id}")
        return comment

    async def list_comments(self, issue_id, viewer_role: str = "employee") -> List[Comment]:
        """
        Comments visible to a viewer role.

        Only resolver roles see internal notes; any other role, unknown
        ones included, gets the requester-facing list.
        """
        issue = await self.store.load_issue(issue_id)
        return await self.store.list_comments(
            issue.id,
            include_internal=viewer_role in RESOLVER_ROLES,
        )

    async def list_audit(self, issue_id) -> List[AuditEntry]:
        issue = await self.store.load_issue(issue_id)
        return await self.store.list_audit(issue.id)

    async def evaluate_sla(
        self,
        issue_id,
        now: Optional[datetime] = None,
        calendar: Optional[BusinessCalendar] = None,
        policy: Optional[SlaPolicy] = None,
    ) -> SlaEvaluation:
        """SLA evaluation for one issue, using its full comment and audit history."""
        issue = await self.store.load_issue(issue_id)
        comments = await self.store.list_comments(issue.id)
        audit_entries = await self.store.list_audit(issue.id)
        return evaluate_issue_sla(
            issue,
            comments,
            audit_entries,
            calendar=calendar,
            policy=policy,
            now=now or self.clock(),
        )


def _classification(type_id: Optional[str], sub_type_id: Optional[str]) -> Optional[str]:
    if type_id is None:
        return None
    return f"{type_id}/{sub_type_id}" if sub_type_id else type_id


def get_issue_service(db: AsyncSession) -> IssueService:
    """
    Factory function to create an IssueService instance.

    Args:
        db: Async database session

    Returns:
        IssueService: Configured issue service
    """
    return IssueService(db)
