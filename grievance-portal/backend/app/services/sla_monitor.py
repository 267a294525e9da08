"""
Periodic SLA breach sweep.

Flags open and in-progress issues whose resolution time has exceeded
their priority threshold, records one ``sla_breach`` audit entry per issue
(actor ``system``) and optionally escalates in-progress ones through the
normal lifecycle rules.
"""

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.config import business_now, settings
from app.services.errors import DataIntegrityError, InvalidTransition
from app.services.issues import IssueService
from app.services.sla import SYSTEM_ACTOR, BusinessCalendar, SlaPolicy
from app.services.store import IssueStore

logger = logging.getLogger(__name__)

MONITORED_STATUSES = ("open", "in_progress")


class SlaMonitor:
    """Finds resolution SLA breaches and acts on them."""

    def __init__(
        self,
        db: AsyncSession,
        calendar: Optional[BusinessCalendar] = None,
        policy: Optional[SlaPolicy] = None,
        auto_escalate: Optional[bool] = None,
    ):
        self.db = db
        self.store = IssueStore(db)
        self.calendar = calendar or BusinessCalendar.from_settings()
        self.policy = policy or SlaPolicy.from_settings()
        self.auto_escalate = (
            settings.SLA_AUTO_ESCALATE if auto_escalate is None else auto_escalate
        )

    async def sweep(self, now: Optional[datetime] = None) -> dict:
        """
        Run one breach check over every monitored issue not yet flagged.

        Issues whose ``created_at`` cannot be read are flagged as breached.
        The caller commits.

        Returns:
            Dict with stats: checked, breached, escalated, integrity_errors
        """
        now = now or business_now()
        issues = await self.store.list_by_status(MONITORED_STATUSES, sla_breached=False)
        issue_service = IssueService(self.db, store=self.store, clock=lambda: now)

        stats = {"checked": len(issues), "breached": 0, "escalated": 0, "integrity_errors": 0}

        for issue in issues:
            threshold = self.policy.threshold(issue.priority, "resolution")
            try:
                elapsed = self.calendar.working_hours_between(issue.created_at, now)
            except DataIntegrityError as e:
                logger.warning(f"Issue {issue.id} has unusable timestamps: {e}")
                stats["integrity_errors"] += 1
                elapsed = None

            if not self.policy.is_breached(issue.priority, elapsed, "resolution"):
                continue

            issue.sla_breached = True
            await self.store.save_issue(issue)
            await self.store.append_audit(
                issue.id, SYSTEM_ACTOR, "sla_breach",
                previous_value=None,
                new_value=issue.status,
                details={"elapsed_hours": elapsed, "threshold_hours": threshold},
                created_at=now,
            )
            stats["breached"] += 1
            logger.info(
                f"SLA breached on issue {issue.id}: {elapsed}h against {threshold}h "
                f"({issue.priority})"
            )

            if self.auto_escalate and issue.status == "in_progress":
                try:
                    await issue_service.escalate(
                        issue.id, SYSTEM_ACTOR, reason="Resolution SLA breached"
                    )
                    stats["escalated"] += 1
                except InvalidTransition as e:
                    logger.warning(f"Could not escalate issue {issue.id}: {e}")

        logger.info(
            f"SLA sweep complete: {stats['checked']} checked, "
            f"{stats['breached']} breached, {stats['escalated']} escalated"
        )
        return stats


def get_sla_monitor(db: AsyncSession) -> SlaMonitor:
    return SlaMonitor(db)
