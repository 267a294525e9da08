"""
Export API endpoints for downloading issues as CSV.
"""

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse
from sqlalchemy.ext.asyncio import AsyncSession
import csv
import io
from typing import Optional
from datetime import date
from uuid import UUID

from app.api.deps import get_db
from app.config import business_now
from app.schemas import StatusEnum, PriorityEnum
from app.services import BusinessCalendar, IssueFilter, IssueStore, SlaPolicy, evaluate_issue_sla

router = APIRouter(prefix="/export", tags=["export"])


@router.get("/issues")
async def export_issues(
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    city: Optional[str] = None,
    cluster: Optional[str] = None,
    status: Optional[StatusEnum] = None,
    priority: Optional[PriorityEnum] = None,
    assigned_to: Optional[UUID] = None,
    db: AsyncSession = Depends(get_db)
):
    """
    Export issues as CSV.

    Returns a CSV file with all issues matching the filters, including
    their SLA figures in working hours.

    CSV columns:
    - Issue ID, Status, Priority, Type, Sub Type, Mapped Type, Mapped Sub Type,
      Employee ID, Assigned To, City, Cluster, Escalation Level,
      Created At, Updated At, Closed At, First Response Hours,
      Resolution Hours, SLA Status, SLA Deadline, Data Error
    """
    issue_filter = IssueFilter(
        start_date=start_date,
        end_date=end_date,
        city=city,
        cluster=cluster,
        status=status.value if status else None,
        priority=priority.value if priority else None,
        assigned_to=assigned_to,
    )
    issues = await IssueStore(db).list_issues(issue_filter, with_history=True)

    calendar = BusinessCalendar.from_settings()
    policy = SlaPolicy.from_settings()
    now = business_now()

    # Create CSV in memory
    output = io.StringIO()
    writer = csv.writer(output)

    writer.writerow([
        'Issue ID',
        'Status',
        'Priority',
        'Type',
        'Sub Type',
        'Mapped Type',
        'Mapped Sub Type',
        'Employee ID',
        'Assigned To',
        'City',
        'Cluster',
        'Escalation Level',
        'Created At',
        'Updated At',
        'Closed At',
        'First Response Hours',
        'Resolution Hours',
        'SLA Status',
        'SLA Deadline',
        'Data Error'
    ])

    for issue in issues:
        sla = evaluate_issue_sla(
            issue, issue.comments, issue.audit_entries,
            calendar=calendar, policy=policy, now=now
        )
        writer.writerow([
            str(issue.id),
            issue.status,
            issue.priority,
            issue.type_id,
            issue.sub_type_id or '',
            issue.mapped_type_id or '',
            issue.mapped_sub_type_id or '',
            str(issue.employee_id),
            str(issue.assigned_to) if issue.assigned_to else '',
            issue.city or '',
            issue.cluster or '',
            issue.escalation_level or 0,
            issue.created_at.isoformat() if issue.created_at else '',
            issue.updated_at.isoformat() if issue.updated_at else '',
            issue.closed_at.isoformat() if issue.closed_at else '',
            '' if sla.first_response_hours is None else sla.first_response_hours,
            '' if sla.resolution_hours is None else sla.resolution_hours,
            sla.status,
            sla.deadline.isoformat() if sla.deadline else '',
            sla.data_integrity_error or ''
        ])

    output.seek(0)
    return StreamingResponse(
        iter([output.getvalue()]),
        media_type="text/csv",
        headers={
            "Content-Disposition": f"attachment; filename=issues_export_{now.date().isoformat()}.csv"
        }
    )
