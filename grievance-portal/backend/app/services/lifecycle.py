"""
Issue status state machine.

Pure functions over the allowed transition table. Anything not listed
is rejected, including self-transitions; ``pending`` has no edges in or
out and can only be set at the storage level.
"""

from datetime import datetime
from typing import Dict, FrozenSet, Optional

from app.models import CLOSED_STATUSES


ALLOWED_TRANSITIONS: Dict[str, FrozenSet[str]] = {
    "open": frozenset({"in_progress", "resolved", "closed"}),
    "in_progress": frozenset({"open", "resolved", "escalated"}),
    "resolved": frozenset({"closed", "open"}),
    "closed": frozenset({"open"}),
    "escalated": frozenset({"in_progress", "resolved"}),
}

# Statuses from which moving back to open counts as a reopen
REOPENABLE_STATUSES = frozenset(CLOSED_STATUSES)


def can_transition(current: str, next_status: str) -> bool:
    """Return True if ``current -> next_status`` is an allowed edge."""
    return next_status in ALLOWED_TRANSITIONS.get(current, frozenset())


def allowed_next_statuses(current: str) -> FrozenSet[str]:
    """Statuses reachable in one step from ``current``."""
    return ALLOWED_TRANSITIONS.get(current, frozenset())


def is_reopen(current: str, next_status: str) -> bool:
    return current in REOPENABLE_STATUSES and next_status == "open"


def closed_at_for(next_status: str, now: datetime) -> Optional[datetime]:
    """
    Value ``closed_at`` must take once the issue is in ``next_status``.

    Every move into resolved or closed (resolved -> closed included) stamps
    ``now``; every other status clears it.
    """
    if next_status in CLOSED_STATUSES:
        return now
    return None
