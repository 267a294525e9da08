"""
Tests for database models (User, Issue, Comment, AuditEntry, TicketFeedback).

Tests cover:
- Model creation and defaults
- Relationships between models
- Constraint validation
- The issue type catalog
"""

import pytest
from datetime import datetime
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.models import (
    ISSUE_TYPES,
    Issue,
    TicketFeedback,
    User,
    is_known_classification,
)


@pytest.mark.asyncio
@pytest.mark.database
class TestUserModel:
    """Test suite for User model."""

    async def test_create_user(self, db_session: AsyncSession):
        user = User(name="Ravi Kumar", email="ravi@example.com", role="agent", city="Pune")

        db_session.add(user)
        await db_session.commit()
        await db_session.refresh(user)

        assert user.id is not None
        assert user.is_active is True
        assert user.created_at is not None

    async def test_invalid_role(self, db_session: AsyncSession):
        db_session.add(User(name="Someone", role="superuser"))

        with pytest.raises(IntegrityError):
            await db_session.commit()

    async def test_unique_email(self, db_session: AsyncSession, create_user):
        await create_user(email="dup@example.com")
        db_session.add(User(name="Other", email="dup@example.com"))

        with pytest.raises(IntegrityError):
            await db_session.commit()


@pytest.mark.asyncio
@pytest.mark.database
class TestIssueModel:
    """Test suite for Issue model."""

    async def test_defaults(self, db_session: AsyncSession, create_user):
        employee = await create_user(role="employee")
        issue = Issue(description="No payslip", type_id="salary", sub_type_id="no-payslip",
                      employee_id=employee.id)

        db_session.add(issue)
        await db_session.commit()
        await db_session.refresh(issue)

        assert issue.status == "open"
        assert issue.priority == "medium"
        assert issue.escalation_level == 0
        assert issue.sla_breached is False
        assert issue.closed_at is None
        assert issue.is_closed is False

    async def test_invalid_status(self, db_session: AsyncSession, create_user):
        employee = await create_user(role="employee")
        db_session.add(Issue(description="x", type_id="pf", sub_type_id="pf-transfer",
                             employee_id=employee.id, status="archived"))

        with pytest.raises(IntegrityError):
            await db_session.commit()

    async def test_invalid_priority(self, db_session: AsyncSession, create_user):
        employee = await create_user(role="employee")
        db_session.add(Issue(description="x", type_id="pf", sub_type_id="pf-transfer",
                             employee_id=employee.id, priority="asap"))

        with pytest.raises(IntegrityError):
            await db_session.commit()

    async def test_is_closed(self, create_issue):
        assert (await create_issue(status="resolved")).is_closed
        assert (await create_issue(status="closed")).is_closed
        assert not (await create_issue(status="escalated")).is_closed

    async def test_history_relationships(
        self, db_session: AsyncSession, create_issue, create_user,
        create_comment, create_audit_entry
    ):
        agent = await create_user()
        issue = await create_issue()
        await create_comment(issue, agent.id, created_at=datetime(2024, 1, 15, 11, 0))
        await create_comment(issue, agent.id, created_at=datetime(2024, 1, 15, 10, 0),
                             is_internal=True)
        await create_audit_entry(issue, agent.id, "assign", new_value=str(agent.id))

        result = await db_session.execute(
            select(Issue)
            .where(Issue.id == issue.id)
            .options(selectinload(Issue.comments), selectinload(Issue.audit_entries))
            .execution_options(populate_existing=True)
        )
        loaded = result.scalar_one()

        assert [c.is_internal for c in loaded.comments] == [True, False]
        assert [a.action for a in loaded.audit_entries] == ["assign"]
        assert loaded.audit_entries[0].actor_id == str(agent.id)


@pytest.mark.asyncio
@pytest.mark.database
class TestTicketFeedbackModel:
    """Test suite for TicketFeedback model."""

    async def test_one_row_per_issue_and_employee(
        self, db_session: AsyncSession, create_issue
    ):
        issue = await create_issue()
        db_session.add(TicketFeedback(
            issue_id=issue.id, employee_id=issue.employee_id,
            feedback_option="helpful", sentiment="positive",
        ))
        await db_session.commit()

        db_session.add(TicketFeedback(
            issue_id=issue.id, employee_id=issue.employee_id,
            feedback_option="slow", sentiment="negative",
        ))
        with pytest.raises(IntegrityError):
            await db_session.commit()

    async def test_invalid_sentiment(self, db_session: AsyncSession, create_issue):
        issue = await create_issue()
        db_session.add(TicketFeedback(
            issue_id=issue.id, employee_id=issue.employee_id,
            feedback_option="helpful", sentiment="ecstatic",
        ))

        with pytest.raises(IntegrityError):
            await db_session.commit()


class TestIssueCatalog:
    """Test the static issue type catalog."""

    def test_known_pairs(self):
        assert is_known_classification("salary", "less-salary")
        assert is_known_classification("esi", "name-change")
        assert is_known_classification("manager", None)

    def test_unknown_pairs(self):
        assert not is_known_classification("salary", None)
        assert not is_known_classification("manager", "rude")
        assert not is_known_classification("pf", "less-salary")
        assert not is_known_classification("canteen", None)

    def test_sub_types_unique_within_type(self):
        for type_id, sub_types in ISSUE_TYPES.items():
            assert len(sub_types) == len(set(sub_types)), type_id
