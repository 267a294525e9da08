"""
Feedback API endpoints: requester sentiment on issues.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional
from datetime import date
from uuid import UUID

from app.api.deps import get_db, get_actor_id
from app.schemas import FeedbackCreate, FeedbackResponse, FeedbackSummaryResponse
from app.services import get_feedback_service

router = APIRouter(prefix="/feedback", tags=["feedback"])


@router.post("", response_model=FeedbackResponse, status_code=status.HTTP_201_CREATED)
async def submit_feedback(
    body: FeedbackCreate,
    db: AsyncSession = Depends(get_db),
    actor_id: UUID = Depends(get_actor_id)
):
    """
    Submit or replace feedback on one of the caller's own issues.

    Returns 403 when X-Actor-Id is not the issue's requester.
    """
    service = get_feedback_service(db)
    return await service.submit_feedback(
        body.issue_id, actor_id, body.feedback_option, body.sentiment.value
    )


@router.get("/summary", response_model=FeedbackSummaryResponse)
async def get_feedback_summary(
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    city: Optional[str] = None,
    cluster: Optional[str] = None,
    db: AsyncSession = Depends(get_db)
):
    """Sentiment and feedback option counts."""
    return await get_feedback_service(db).feedback_summary(
        start_date=start_date, end_date=end_date, city=city, cluster=cluster
    )
