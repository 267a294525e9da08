"""
Issues API endpoints: lifecycle, assignment, comments, audit trail and SLA.
"""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional, List
from datetime import date
from uuid import UUID
import math

from app.api.deps import get_db, get_actor_id, get_actor_role
from app.schemas import (
    IssueCreate, IssueResponse, PaginatedResponse, StatusUpdateRequest,
    ReasonRequest, PriorityUpdateRequest, TypeMappingRequest, AssignRequest,
    CommentCreate, CommentResponse, AuditEntryResponse, SlaResponse,
    StatusEnum, PriorityEnum
)
from app.services import IssueFilter, allowed_next_statuses, get_issue_service

router = APIRouter(prefix="/issues", tags=["issues"])


@router.post("", response_model=IssueResponse, status_code=status.HTTP_201_CREATED)
async def create_issue(
    body: IssueCreate,
    db: AsyncSession = Depends(get_db)
):
    """
    Raise a new issue on behalf of an employee.

    The issue starts in status ``open``; type and sub-type must exist in
    the issue type catalog.
    """
    service = get_issue_service(db)
    return await service.create_issue(
        employee_id=body.employee_id,
        type_id=body.type_id,
        sub_type_id=body.sub_type_id,
        description=body.description,
        priority=body.priority.value,
    )


@router.get("", response_model=PaginatedResponse[IssueResponse])
async def list_issues(
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    city: Optional[str] = None,
    cluster: Optional[str] = None,
    status: Optional[StatusEnum] = None,
    priority: Optional[PriorityEnum] = None,
    assigned_to: Optional[UUID] = None,
    employee_id: Optional[UUID] = None,
    type_id: Optional[str] = None,
    page: int = Query(1, ge=1),
    per_page: int = Query(50, ge=1, le=100),
    db: AsyncSession = Depends(get_db)
):
    """
    List issues with filtering and pagination.

    Supports filtering by:
    - start_date/end_date: creation date range (inclusive)
    - city, cluster: requester location
    - status, priority, type_id
    - assigned_to: resolver
    - employee_id: requester

    Returns paginated results sorted by created_at descending.
    """
    issue_filter = IssueFilter(
        start_date=start_date,
        end_date=end_date,
        city=city,
        cluster=cluster,
        status=status.value if status else None,
        priority=priority.value if priority else None,
        assigned_to=assigned_to,
        employee_id=employee_id,
        type_id=type_id,
    )
    service = get_issue_service(db)
    items, total = await service.list_issues(issue_filter, page=page, per_page=per_page)

    pages = math.ceil(total / per_page) if total > 0 else 0

    return PaginatedResponse(
        items=items,
        total=total,
        page=page,
        per_page=per_page,
        pages=pages
    )


@router.get("/{issue_id}", response_model=IssueResponse)
async def get_issue(
    issue_id: UUID,
    db: AsyncSession = Depends(get_db)
):
    return await get_issue_service(db).get_issue(issue_id)


@router.patch("/{issue_id}/status", response_model=IssueResponse)
async def update_status(
    issue_id: UUID,
    body: StatusUpdateRequest,
    db: AsyncSession = Depends(get_db),
    actor_id: UUID = Depends(get_actor_id)
):
    """
    Move an issue to a new status.

    Returns 409 with ``current_status`` and ``requested_status`` when the
    transition is not allowed.
    """
    service = get_issue_service(db)
    return await service.update_status(issue_id, body.status.value, actor_id, reason=body.reason)


@router.post("/{issue_id}/reopen", response_model=IssueResponse)
async def reopen_issue(
    issue_id: UUID,
    body: ReasonRequest = ReasonRequest(),
    db: AsyncSession = Depends(get_db),
    actor_id: UUID = Depends(get_actor_id)
):
    """Reopen a resolved or closed issue."""
    return await get_issue_service(db).reopen(issue_id, actor_id, reason=body.reason)


@router.post("/{issue_id}/escalate", response_model=IssueResponse)
async def escalate_issue(
    issue_id: UUID,
    body: ReasonRequest = ReasonRequest(),
    db: AsyncSession = Depends(get_db),
    actor_id: UUID = Depends(get_actor_id)
):
    """Escalate an in-progress issue; its priority becomes urgent."""
    return await get_issue_service(db).escalate(issue_id, actor_id, reason=body.reason)


@router.patch("/{issue_id}/priority", response_model=IssueResponse)
async def update_priority(
    issue_id: UUID,
    body: PriorityUpdateRequest,
    db: AsyncSession = Depends(get_db),
    actor_id: UUID = Depends(get_actor_id)
):
    return await get_issue_service(db).update_priority(issue_id, body.priority.value, actor_id)


@router.patch("/{issue_id}/mapping", response_model=IssueResponse)
async def map_issue_type(
    issue_id: UUID,
    body: TypeMappingRequest,
    db: AsyncSession = Depends(get_db),
    actor_id: UUID = Depends(get_actor_id)
):
    """Reclassify an issue against the type catalog."""
    service = get_issue_service(db)
    return await service.map_type(issue_id, body.type_id, body.sub_type_id, actor_id)


@router.put("/{issue_id}/assignee", response_model=IssueResponse)
async def assign_issue(
    issue_id: UUID,
    body: AssignRequest,
    db: AsyncSession = Depends(get_db),
    actor_id: UUID = Depends(get_actor_id)
):
    """
    Assign an issue to an active user, or unassign it with a null assignee.

    Closed issues cannot be reassigned (409).
    """
    return await get_issue_service(db).assign(issue_id, body.assignee_id, actor_id)


@router.post(
    "/{issue_id}/comments",
    response_model=CommentResponse,
    status_code=status.HTTP_201_CREATED
)
async def add_comment(
    issue_id: UUID,
    body: CommentCreate,
    db: AsyncSession = Depends(get_db),
    actor_id: UUID = Depends(get_actor_id)
):
    """Add a public comment or an internal note. Allowed in every status."""
    service = get_issue_service(db)
    return await service.add_comment(issue_id, actor_id, body.content, body.is_internal)


@router.get("/{issue_id}/comments", response_model=List[CommentResponse])
async def list_comments(
    issue_id: UUID,
    db: AsyncSession = Depends(get_db),
    viewer_role: str = Depends(get_actor_role)
):
    """
    List comments on an issue.

    Internal notes are returned only when X-Actor-Role is a resolver role
    (agent, manager, admin).
    """
    return await get_issue_service(db).list_comments(issue_id, viewer_role)


@router.get("/{issue_id}/audit", response_model=List[AuditEntryResponse])
async def list_audit(
    issue_id: UUID,
    db: AsyncSession = Depends(get_db)
):
    return await get_issue_service(db).list_audit(issue_id)


@router.get("/{issue_id}/sla", response_model=SlaResponse)
async def get_issue_sla(
    issue_id: UUID,
    db: AsyncSession = Depends(get_db)
):
    """
    SLA evaluation of an issue in working hours.

    Issues with unusable timestamps are reported as breached with
    ``data_integrity_error`` set.
    """
    service = get_issue_service(db)
    issue = await service.get_issue(issue_id)
    evaluation = await service.evaluate_sla(issue_id)

    return SlaResponse(
        **evaluation.to_dict(),
        allowed_transitions=sorted(allowed_next_statuses(issue.status)),
    )
