"""
Gantt schedule (iş programı) routes.

GET  /api/v1/schedule/timeline          — padded timeline + bar geometry
GET  /api/v1/schedule/earned-value      — budget-weighted progress
GET  /api/v1/schedule/position          — map a date (range) onto the timeline
POST /api/v1/schedule/{id}/import       — bulk-add tasks from a CSV body
GET  /api/v1/schedule/template.csv      — CSV import template
"""
import logging
from datetime import date
from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response

from santiye.api.deps import get_project_or_404, store_errors
from santiye.models.domain import Project
from santiye.services import schedule_engine
from santiye.services.task_import import TEMPLATE_FILENAME, csv_template, parse_task_csv
from santiye.store import SiteStore, get_store

router = APIRouter(prefix="/api/v1/schedule", tags=["Schedule"])
logger = logging.getLogger("santiye-schedule-routes")

ViewMode = Literal["single", "all"]


def _display_projects(
    view: ViewMode = Query("all"),
    project_id: Optional[str] = Query(None),
    store: SiteStore = Depends(get_store),
) -> List[Project]:
    return schedule_engine.select_display_projects(store.list_projects(), view, project_id)


@router.get("/timeline")
async def get_timeline(projects: List[Project] = Depends(_display_projects)):
    timeline = schedule_engine.resolve_timeline(projects)
    return {
        "timeline": timeline.to_dict(),
        "rows": schedule_engine.build_gantt_rows(projects, timeline),
        "earned_value": schedule_engine.aggregate_earned_value(projects).to_dict(),
    }


@router.get("/earned-value")
async def get_earned_value(projects: List[Project] = Depends(_display_projects)):
    summary = schedule_engine.aggregate_earned_value(projects)
    return {
        **summary.to_dict(),
        "projects": [schedule_engine.project_earned_value(p) for p in projects],
    }


@router.get("/position")
async def get_position(
    start: date,
    end: Optional[date] = None,
    projects: List[Project] = Depends(_display_projects),
):
    timeline = schedule_engine.resolve_timeline(projects)
    result = {"position_pct": schedule_engine.get_position(start, timeline)}
    if end is not None:
        result["width_pct"] = schedule_engine.get_width(start, end, timeline)
        result["duration_days"] = schedule_engine.duration_days(start, end)
    return result


@router.get("/template.csv")
async def download_template():
    return Response(
        content=csv_template(),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{TEMPLATE_FILENAME}"'},
    )


@router.post("/{project_id}/import")
async def import_tasks(
    request: Request,
    project: Project = Depends(get_project_or_404),
    store: SiteStore = Depends(get_store),
):
    """Add every valid CSV row to the project as a new To Do task."""
    try:
        text = (await request.body()).decode("utf-8")
    except UnicodeDecodeError:
        raise HTTPException(status_code=400, detail="CSV file must be UTF-8 encoded")
    result = parse_task_csv(text)
    with store_errors():
        for task in result.tasks:
            store.add_task(project.id, task)

    logger.info(
        "Imported %d task(s) into project %s", result.added_count, project.id,
        extra={"project_id": project.id},
    )
    return {
        "project_id": project.id,
        "added_count": result.added_count,
        "task_ids": [t.id for t in result.tasks],
        "skipped_rows": [{"line": s.line, "reason": s.reason} for s in result.skipped_rows],
    }
