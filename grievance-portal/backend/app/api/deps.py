"""
API dependency functions for database sessions and caller identity.
"""

from uuid import UUID

from fastapi import Header

from app.database import get_db
from app.schemas import RoleEnum

__all__ = ["get_db", "get_actor_id", "get_actor_role"]


async def get_actor_id(
    x_actor_id: UUID = Header(..., alias="X-Actor-Id")
) -> UUID:
    """
    Acting user for mutating requests.

    The portal front end authenticates users; this service trusts the id
    it forwards alongside a valid X-Portal-Key.
    """
    return x_actor_id


async def get_actor_role(
    x_actor_role: RoleEnum = Header(RoleEnum.EMPLOYEE, alias="X-Actor-Role")
) -> str:
    """
    Role of the caller, used for read-side visibility.

    Defaults to employee so a missing header never exposes internal notes.
    """
    return x_actor_role.value
