"""
Requester sentiment feedback on issues.
"""

import logging
from datetime import date, datetime, time, timedelta
from typing import Optional

from sqlalchemy import and_, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import business_now
from app.models import VALID_SENTIMENTS, TicketFeedback
from app.services.errors import FeedbackNotAllowed, InvalidFeedback
from app.services.store import IssueStore, as_uuid, store_operation

logger = logging.getLogger(__name__)


class FeedbackService:
    """Stores one feedback row per (issue, requester) and aggregates them."""

    def __init__(self, db: AsyncSession, store: Optional[IssueStore] = None):
        self.db = db
        self.store = store or IssueStore(db)

    @store_operation
    async def _find(self, issue_id, employee_id) -> Optional[TicketFeedback]:
        result = await self.db.execute(
            select(TicketFeedback).where(
                TicketFeedback.issue_id == issue_id,
                TicketFeedback.employee_id == employee_id,
            )
        )
        return result.scalar_one_or_none()

    @store_operation
    async def _flush(self) -> None:
        await self.db.flush()

    async def submit_feedback(
        self,
        issue_id,
        employee_id,
        feedback_option: str,
        sentiment: str,
    ) -> TicketFeedback:
        """
        Record or overwrite the requester's feedback on an issue.

        Assignee, city and cluster are snapshotted from the issue.

        Raises:
            NotFound: issue does not exist
            FeedbackNotAllowed: caller did not raise the issue
            InvalidFeedback: unknown sentiment or blank option
        """
        if sentiment not in VALID_SENTIMENTS:
            raise InvalidFeedback(f"Unknown sentiment {sentiment!r}")
        feedback_option = (feedback_option or "").strip()
        if not feedback_option:
            raise InvalidFeedback("Feedback option must not be empty")

        issue = await self.store.load_issue(issue_id)
        employee_key = as_uuid(employee_id)
        if employee_key is None or issue.employee_id != employee_key:
            logger.warning(f"Rejected feedback on issue {issue.id} from {employee_id}")
            raise FeedbackNotAllowed(
                f"Only the requester can leave feedback on issue {issue.id}"
            )

        feedback = await self._find(issue.id, employee_key)
        if feedback is None:
            feedback = TicketFeedback(issue_id=issue.id, employee_id=employee_key)
            self.db.add(feedback)

        feedback.feedback_option = feedback_option
        feedback.sentiment = sentiment
        feedback.agent_id = issue.assigned_to
        feedback.city = issue.city
        feedback.cluster = issue.cluster
        feedback.created_at = business_now()

        await self._flush()

        logger.info(f"Feedback on issue {issue.id}: {sentiment} ({feedback_option})")
        return feedback

    @store_operation
    async def feedback_summary(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        city: Optional[str] = None,
        cluster: Optional[str] = None,
    ) -> dict:
        """
        Sentiment and option counts over a date range.

        Returns:
            Dict with total, by_sentiment (every sentiment present, zero
            filled) and by_option
        """
        filters = []
        if start_date:
            filters.append(TicketFeedback.created_at >= datetime.combine(start_date, time()))
        if end_date:
            filters.append(
                TicketFeedback.created_at < datetime.combine(end_date + timedelta(days=1), time())
            )
        if city:
            filters.append(TicketFeedback.city == city)
        if cluster:
            filters.append(TicketFeedback.cluster == cluster)

        sentiment_query = (
            select(TicketFeedback.sentiment, func.count().label("total"))
            .group_by(TicketFeedback.sentiment)
        )
        option_query = (
            select(TicketFeedback.feedback_option, func.count().label("total"))
            .group_by(TicketFeedback.feedback_option)
            .order_by(func.count().desc())
        )
        if filters:
            sentiment_query = sentiment_query.where(and_(*filters))
            option_query = option_query.where(and_(*filters))

        sentiment_result = await self.db.execute(sentiment_query)
        by_sentiment = {s: 0 for s in VALID_SENTIMENTS}
        for row in sentiment_result:
            by_sentiment[row.sentiment] = row.total

        option_result = await self.db.execute(option_query)
        by_option = {row.feedback_option: row.total for row in option_result}

        return {
            "total": sum(by_sentiment.values()),
            "by_sentiment": by_sentiment,
            "by_option": by_option,
        }


def get_feedback_service(db: AsyncSession) -> FeedbackService:
    return FeedbackService(db)
