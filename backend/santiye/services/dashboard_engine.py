"""Portfolio summary counters for the dashboard."""
from typing import Any, Dict, Iterable, Optional

from santiye.models.domain import (
    Project,
    ProjectStatus,
    PunchItem,
    PunchSeverity,
    PunchStatus,
    Subcontractor,
    TaskStatus,
)
from santiye.services.schedule_engine import aggregate_earned_value


def portfolio_summary(
    projects: Iterable[Project],
    punch_items: Iterable[PunchItem] = (),
    subcontractors: Iterable[Subcontractor] = (),
) -> Dict[str, Any]:
    """
    Headline figures across all projects.

    ``earned_progress_pct`` is derived from task weights; the average of
    the manually entered ``progress`` fields is reported separately as
    ``avg_manual_progress_pct``. The two are different metrics.
    """
    projects = list(projects)
    status_counts = {s.value: 0 for s in ProjectStatus}
    task_counts = {s.value: 0 for s in TaskStatus}
    for project in projects:
        status_counts[project.status.value] += 1
        for task in project.tasks:
            task_counts[task.status.value] += 1

    earned = aggregate_earned_value(projects)
    avg_manual = sum(p.progress for p in projects) / len(projects) if projects else 0.0

    open_punch = [i for i in punch_items if i.status == PunchStatus.OPEN]
    subs = list(subcontractors)
    top_sub: Optional[Subcontractor] = max(subs, key=lambda s: s.rating) if subs else None

    return {
        "total_projects": len(projects),
        "total_budget": sum(p.budget for p in projects),
        "total_spent": sum(p.spent for p in projects),
        "projects_by_status": status_counts,
        "tasks_by_status": task_counts,
        "total_earned": earned.total_earned,
        "earned_progress_pct": earned.global_progress,
        "avg_manual_progress_pct": avg_manual,
        "open_punch_items": len(open_punch),
        "high_severity_punch_items": sum(1 for i in open_punch if i.severity == PunchSeverity.HIGH),
        "top_subcontractor": {"id": top_sub.id, "name": top_sub.name, "rating": top_sub.rating} if top_sub else None,
    }
