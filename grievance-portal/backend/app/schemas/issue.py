from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime
from uuid import UUID
from enum import Enum

class StatusEnum(str, Enum):
    OPEN = "open"
    IN_PROGRESS = "in_progress"
    PENDING = "pending"
    ESCALATED = "escalated"
    RESOLVED = "resolved"
    CLOSED = "closed"

class PriorityEnum(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"
    URGENT = "urgent"

class IssueCreate(BaseModel):
    """Request body for raising an issue."""
    employee_id: UUID
    type_id: str = Field(..., max_length=50)
    sub_type_id: Optional[str] = Field(None, max_length=50)
    description: str = Field(..., min_length=1)
    priority: PriorityEnum = PriorityEnum.MEDIUM

class IssueResponse(BaseModel):
    id: UUID
    description: str
    status: StatusEnum
    priority: PriorityEnum
    type_id: str
    sub_type_id: Optional[str] = None
    mapped_type_id: Optional[str] = None
    mapped_sub_type_id: Optional[str] = None
    mapped_by: Optional[UUID] = None
    mapped_at: Optional[datetime] = None
    employee_id: UUID
    assigned_to: Optional[UUID] = None
    city: Optional[str] = None
    cluster: Optional[str] = None
    escalation_level: int = 0
    escalated_at: Optional[datetime] = None
    sla_breached: bool = False
    created_at: datetime
    updated_at: datetime
    closed_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class StatusUpdateRequest(BaseModel):
    status: StatusEnum
    reason: Optional[str] = Field(None, max_length=1000)

class ReasonRequest(BaseModel):
    """Body for reopen and escalate; the reason is kept as audit metadata."""
    reason: Optional[str] = Field(None, max_length=1000)

class PriorityUpdateRequest(BaseModel):
    priority: PriorityEnum

class TypeMappingRequest(BaseModel):
    type_id: str = Field(..., max_length=50)
    sub_type_id: Optional[str] = Field(None, max_length=50)

class AssignRequest(BaseModel):
    """Set ``assignee_id`` to null to unassign."""
    assignee_id: Optional[UUID] = None

class SlaResponse(BaseModel):
    """SLA evaluation of a single issue."""
    issue_id: UUID
    priority: str
    first_response_at: Optional[datetime] = None
    first_response_hours: Optional[float] = None
    resolution_hours: Optional[float] = None
    first_response_breached: bool
    resolution_breached: bool
    status: str
    deadline: Optional[datetime] = None
    data_integrity_error: Optional[str] = None
    allowed_transitions: List[StatusEnum] = []
