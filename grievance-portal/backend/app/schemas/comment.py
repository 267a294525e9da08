from pydantic import BaseModel, Field
from datetime import datetime
from uuid import UUID

class CommentCreate(BaseModel):
    content: str = Field(..., max_length=10000)
    is_internal: bool = False

class CommentResponse(BaseModel):
    id: UUID
    issue_id: UUID
    author_id: UUID
    content: str
    is_internal: bool
    created_at: datetime

    class Config:
        from_attributes = True
