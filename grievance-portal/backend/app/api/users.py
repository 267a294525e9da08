"""
Users API endpoints: the resolver/requester directory.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional, List
from uuid import UUID
import logging

from app.api.deps import get_db
from app.models import User
from app.schemas import UserCreate, UserUpdate, UserResponse, RoleEnum
from app.services import NotFound, UserDirectory

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["users"])


@router.get("", response_model=List[UserResponse])
async def list_users(
    role: Optional[RoleEnum] = None,
    is_active: Optional[bool] = None,
    city: Optional[str] = None,
    db: AsyncSession = Depends(get_db)
):
    directory = UserDirectory(db)
    return await directory.list_users(
        role=role.value if role else None, is_active=is_active, city=city
    )


@router.post("", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def create_user(
    body: UserCreate,
    db: AsyncSession = Depends(get_db)
):
    user = User(
        name=body.name,
        email=body.email,
        role=body.role.value,
        city=body.city,
        cluster=body.cluster,
        is_active=True,
    )
    user = await UserDirectory(db).save_user(user)
    logger.info(f"Created user {user.id} ({user.role})")
    return user


@router.patch("/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: UUID,
    body: UserUpdate,
    db: AsyncSession = Depends(get_db)
):
    """
    Update a user. Setting ``is_active`` to false deactivates the user:
    they stay on existing issues but can no longer be assigned.
    """
    directory = UserDirectory(db)
    user = await directory.get_user(user_id)
    if user is None:
        raise NotFound("User", user_id)

    updates = body.model_dump(exclude_unset=True)
    if "role" in updates and updates["role"] is not None:
        updates["role"] = updates["role"].value
    for field, value in updates.items():
        setattr(user, field, value)

    user = await directory.save_user(user)
    logger.info(f"Updated user {user.id}: {sorted(updates)}")
    return user
