from pydantic import BaseModel, Field
from typing import Dict, Optional
from datetime import datetime
from uuid import UUID
from enum import Enum

class SentimentEnum(str, Enum):
    POSITIVE = "positive"
    NEUTRAL = "neutral"
    NEGATIVE = "negative"

class FeedbackCreate(BaseModel):
    issue_id: UUID
    feedback_option: str = Field(..., min_length=1, max_length=100)
    sentiment: SentimentEnum

class FeedbackResponse(BaseModel):
    id: UUID
    issue_id: UUID
    employee_id: UUID
    feedback_option: str
    sentiment: SentimentEnum
    agent_id: Optional[UUID] = None
    city: Optional[str] = None
    cluster: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True

class FeedbackSummaryResponse(BaseModel):
    total: int
    by_sentiment: Dict[str, int]
    by_option: Dict[str, int]
