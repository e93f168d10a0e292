"""Punch-list (eksik/kusur listesi) counters."""
from typing import Any, Dict, Iterable

from santiye.models.domain import PunchItem, PunchSeverity, PunchStatus


def punch_stats(items: Iterable[PunchItem]) -> Dict[str, Any]:
    """
    Totals per status plus the open items split by severity.
    ``critical`` counts open items of high severity.
    """
    items = list(items)
    by_status = {s.value: 0 for s in PunchStatus}
    open_by_severity = {s.value: 0 for s in PunchSeverity}
    for item in items:
        by_status[item.status.value] += 1
        if item.status == PunchStatus.OPEN:
            open_by_severity[item.severity.value] += 1

    return {
        "total": len(items),
        "open": by_status[PunchStatus.OPEN.value],
        "resolved": by_status[PunchStatus.RESOLVED.value],
        "approved": by_status[PunchStatus.APPROVED.value],
        "critical": open_by_severity[PunchSeverity.HIGH.value],
        "open_by_severity": open_by_severity,
    }
