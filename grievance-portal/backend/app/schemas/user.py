from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime
from uuid import UUID
from enum import Enum

class RoleEnum(str, Enum):
    EMPLOYEE = "employee"
    AGENT = "agent"
    MANAGER = "manager"
    ADMIN = "admin"

class UserCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    email: Optional[str] = Field(None, max_length=255)
    role: RoleEnum = RoleEnum.EMPLOYEE
    city: Optional[str] = Field(None, max_length=100)
    cluster: Optional[str] = Field(None, max_length=100)

class UserUpdate(BaseModel):
    """Partial update; omitted fields are left unchanged."""
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    role: Optional[RoleEnum] = None
    city: Optional[str] = Field(None, max_length=100)
    cluster: Optional[str] = Field(None, max_length=100)
    is_active: Optional[bool] = None

class UserResponse(BaseModel):
    id: UUID
    name: str
    email: Optional[str] = None
    role: RoleEnum
    city: Optional[str] = None
    cluster: Optional[str] = None
    is_active: bool
    created_at: datetime

    class Config:
        from_attributes = True
