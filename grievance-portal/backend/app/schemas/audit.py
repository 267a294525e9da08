from pydantic import BaseModel
from typing import Optional
from datetime import datetime
from uuid import UUID

class AuditEntryResponse(BaseModel):
    id: UUID
    issue_id: UUID
    actor_id: str
    action: str
    previous_value: Optional[str] = None
    new_value: Optional[str] = None
    details: Optional[dict] = None
    created_at: datetime

    class Config:
        from_attributes = True
