"""
schedule_engine.py — Gantt timeline and earned-value calculator.

Covers:
  - Timeline range resolution (padded month window + month buckets)
  - Bar positioning: date → horizontal offset / width in percent
  - Task completion derived from status
  - Earned value: budget-weighted progress from task weights (pursantaj)
  - Gantt row assembly for the schedule view

Functions read a snapshot of projects and return new values; projects
are never mutated and nothing is cached. The one side effect is metrics:
calls decorated with @timed record their duration on
``perf_monitor.tracker``.
"""
import calendar
import logging
import math
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Optional

from santiye import config
from santiye.models.domain import Project, Task, TaskStatus
from santiye.services.perf_monitor import timed

logger = logging.getLogger("santiye-schedule")


# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

# Completion percentage per task status. Keyed by every TaskStatus member;
# a new member without an entry fails the module-level check below.
TASK_COMPLETION_PCT: Dict[TaskStatus, int] = {
    TaskStatus.DONE:        100,
    TaskStatus.IN_PROGRESS: 50,
    TaskStatus.REVIEW:      0,
    TaskStatus.TODO:        0,
}
if set(TASK_COMPLETION_PCT) != set(TaskStatus):
    raise RuntimeError("TASK_COMPLETION_PCT must cover every TaskStatus member")

MONTH_LABELS: Dict[str, List[str]] = {
    "tr": ["Oca", "Şub", "Mar", "Nis", "May", "Haz", "Tem", "Ağu", "Eyl", "Eki", "Kas", "Ara"],
    "en": ["Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"],
}

VIEW_SINGLE = "single"
VIEW_ALL = "all"


# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class MonthBucket:
    label: str
    year: int
    month_index: int   # 0-based, January = 0

    def to_dict(self) -> Dict[str, Any]:
        return {"label": self.label, "year": self.year, "month_index": self.month_index}


@dataclass(frozen=True)
class TimelineRange:
    start: datetime
    end: datetime
    months: List[MonthBucket] = field(default_factory=list)
    duration_ms: float = config.MIN_DURATION_MS

    def to_dict(self) -> Dict[str, Any]:
        return {
            "start": self.start.isoformat(),
            "end": self.end.isoformat(),
            "months": [m.to_dict() for m in self.months],
            "duration_ms": self.duration_ms,
        }


@dataclass(frozen=True)
class EarnedValue:
    total_budget: float
    total_earned: float
    global_progress: float

    def to_dict(self) -> Dict[str, float]:
        return {
            "total_budget": self.total_budget,
            "total_earned": self.total_earned,
            "global_progress": self.global_progress,
        }


# ---------------------------------------------------------------------------
# Date helpers
# ---------------------------------------------------------------------------

def _as_datetime(value: date) -> datetime:
    if isinstance(value, datetime):
        return value
    return datetime(value.year, value.month, value.day)


def _shift_month(year: int, month: int, delta: int) -> tuple:
    """Return (year, month) moved by ``delta`` months; month is 1-based."""
    idx = year * 12 + (month - 1) + delta
    return idx // 12, idx % 12 + 1


def _first_of_month(year: int, month: int) -> datetime:
    return datetime(year, month, 1)


def _last_of_month(year: int, month: int) -> datetime:
    return datetime(year, month, calendar.monthrange(year, month)[1])


def _month_label(month: int, locale: str) -> str:
    labels = MONTH_LABELS.get(locale, MONTH_LABELS["tr"])
    return labels[month - 1]


def _duration_ms(start: datetime, end: datetime) -> float:
    return (end - start).total_seconds() * 1000.0


def month_buckets(start: datetime, end: datetime, locale: Optional[str] = None) -> List[MonthBucket]:
    """One bucket per calendar month from ``start`` to ``end`` inclusive."""
    locale = locale or config.TIMELINE_LOCALE
    buckets: List[MonthBucket] = []
    year, month = start.year, start.month
    while _first_of_month(year, month) <= end:
        buckets.append(MonthBucket(_month_label(month, locale), year, month - 1))
        year, month = _shift_month(year, month, 1)
    return buckets


# ---------------------------------------------------------------------------
# 1. Timeline Range Resolver
# ---------------------------------------------------------------------------

def task_bar_start(task: Task, project: Project) -> date:
    """A task without its own start date begins with its project."""
    return task.start_date or project.start_date


def _window(min_date: datetime, max_date: datetime, locale: Optional[str]) -> TimelineRange:
    view_start = _first_of_month(*_shift_month(min_date.year, min_date.month, -1))
    view_end = _last_of_month(*_shift_month(max_date.year, max_date.month, 1))
    return TimelineRange(
        start=view_start,
        end=view_end,
        months=month_buckets(view_start, view_end, locale),
        duration_ms=max(_duration_ms(view_start, view_end), config.MIN_DURATION_MS),
    )


@timed
def resolve_timeline(
    projects: Iterable[Project],
    today: Optional[date] = None,
    locale: Optional[str] = None,
) -> TimelineRange:
    """
    Compute the padded chart window for the given projects.

    Task starts, task due dates and every project's own start/end dates
    go into one min/max pool. The window opens on the first day of the
    month before the earliest date and closes on the last day of the
    month after the latest date.

    With nothing to pool (an empty project list) the window is the
    three months around ``today``: last month, this month, next month.
    """
    starts: List[datetime] = []
    ends: List[datetime] = []
    for project in projects:
        for task in project.tasks:
            starts.append(_as_datetime(task_bar_start(task, project)))
            ends.append(_as_datetime(task.due_date))
        starts.append(_as_datetime(project.start_date))
        ends.append(_as_datetime(project.end_date))

    if not starts:
        anchor = _as_datetime(today or date.today())
        logger.debug("No dates to pool, using default window around %s", anchor.date())
        return _window(anchor, anchor, locale)

    pool = starts + ends
    return _window(min(pool), max(pool), locale)


# ---------------------------------------------------------------------------
# 2. Position / Width Mapper
# ---------------------------------------------------------------------------

def get_position(value: date, timeline: TimelineRange) -> float:
    """Horizontal offset of ``value`` in percent, clamped to [0, 100]."""
    diff = _duration_ms(timeline.start, _as_datetime(value))
    pos = (diff / timeline.duration_ms) * 100
    return max(0.0, min(100.0, pos))


def get_width(start: date, end: date, timeline: TimelineRange) -> float:
    """Bar width in percent; never below MIN_BAR_WIDTH_PCT, no upper clamp."""
    duration = _duration_ms(_as_datetime(start), _as_datetime(end))
    width = (duration / timeline.duration_ms) * 100
    return max(config.MIN_BAR_WIDTH_PCT, width)


def duration_days(start: Optional[date], end: Optional[date]) -> int:
    """Whole days between two dates, rounded up; 0 if either side is missing."""
    if not start or not end:
        return 0
    seconds = _duration_ms(_as_datetime(start), _as_datetime(end)) / 1000.0
    return math.ceil(seconds / 86400)


# ---------------------------------------------------------------------------
# 3. Earned-Value Aggregator
# ---------------------------------------------------------------------------

def task_progress(task: Task) -> int:
    return TASK_COMPLETION_PCT[task.status]


def project_earned_value(project: Project) -> Dict[str, Any]:
    """
    Per-project earned value.

    The ratio comes from task weights only; ``project.progress`` (the
    manually entered figure) is not consulted. A project whose weights
    sum to zero earns nothing.
    """
    project_weight = 0.0
    project_completed = 0.0
    for task in project.tasks:
        weight = task.effective_weight
        project_weight += weight
        project_completed += weight * (task_progress(task) / 100)

    ratio = project_completed / project_weight if project_weight > 0 else 0.0
    return {
        "project_id": project.id,
        "project_name": project.name,
        "budget": project.budget,
        "total_weight": project_weight,
        "completed_weight": project_completed,
        "progress_ratio": ratio,
        "earned_amount": project.budget * ratio,
        "earned_progress_pct": ratio * 100,
        "manual_progress_pct": project.progress,
    }


@timed
def aggregate_earned_value(projects: Iterable[Project]) -> EarnedValue:
    """Budget-weighted global progress across ``projects``."""
    total_budget = 0.0
    total_earned = 0.0
    for project in projects:
        total_budget += project.budget
        total_earned += project_earned_value(project)["earned_amount"]

    global_progress = (total_earned / total_budget) * 100 if total_budget > 0 else 0.0
    return EarnedValue(total_budget, total_earned, global_progress)


# ---------------------------------------------------------------------------
# 4. View helpers
# ---------------------------------------------------------------------------

def select_display_projects(
    projects: List[Project],
    view_mode: str = VIEW_ALL,
    selected_id: Optional[str] = None,
) -> List[Project]:
    """``all`` shows every project; ``single`` shows only the selected one."""
    if view_mode == VIEW_ALL:
        return list(projects)
    if view_mode != VIEW_SINGLE:
        raise ValueError(f"Unknown view mode '{view_mode}' (expected 'single' or 'all')")
    return [p for p in projects if p.id == selected_id][:1]


def build_gantt_rows(projects: Iterable[Project], timeline: TimelineRange) -> List[Dict[str, Any]]:
    """Header bar per project followed by one bar per task."""
    rows: List[Dict[str, Any]] = []
    for project in projects:
        task_rows = []
        for task in project.tasks:
            start = task_bar_start(task, project)
            task_rows.append({
                "task_id": task.id,
                "title": task.title,
                "status": task.status.value,
                "priority": task.priority.value,
                "assignee": task.assignee,
                "start_date": start.isoformat(),
                "due_date": task.due_date.isoformat(),
                "weight": task.effective_weight,
                "progress_pct": task_progress(task),
                "duration_days": duration_days(start, task.due_date),
                "position_pct": get_position(start, timeline),
                "width_pct": get_width(start, task.due_date, timeline),
            })
        rows.append({
            "project_id": project.id,
            "project_name": project.name,
            "manual_progress_pct": project.progress,
            "position_pct": get_position(project.start_date, timeline),
            "width_pct": get_width(project.start_date, project.end_date, timeline),
            "tasks": task_rows,
        })
    return rows
