"""
Project, task and document CRUD.

Deletion is immediate; there is no undo and no tombstone.
"""
import logging
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel, Field

from santiye.api.deps import get_project_or_404, store_errors
from santiye.models.domain import (
    DocumentType,
    Project,
    ProjectDocument,
    ProjectStatus,
    Task,
    TaskPriority,
    TaskStatus,
)
from santiye.store import SiteStore, get_store

router = APIRouter(prefix="/api/v1/projects", tags=["Projects"])
logger = logging.getLogger("santiye-project-routes")


# ── Pydantic Models ─────────────────────────────────────────────────────────

class ProjectCreateRequest(BaseModel):
    name: str = Field(..., min_length=1)
    location: str = ""
    status: ProjectStatus = ProjectStatus.PLANNING
    progress: int = Field(0, ge=0, le=100)
    budget: float = Field(0.0, ge=0)
    spent: float = Field(0.0, ge=0)
    start_date: date
    end_date: date
    description: Optional[str] = None
    client: Optional[str] = None
    site_manager: Optional[str] = None
    image_url: Optional[str] = None


class ProjectUpdateRequest(BaseModel):
    name: Optional[str] = None
    location: Optional[str] = None
    status: Optional[ProjectStatus] = None
    progress: Optional[int] = Field(None, ge=0, le=100)
    budget: Optional[float] = Field(None, ge=0)
    spent: Optional[float] = Field(None, ge=0)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    description: Optional[str] = None
    client: Optional[str] = None
    site_manager: Optional[str] = None
    image_url: Optional[str] = None


class TaskCreateRequest(BaseModel):
    title: str = Field(..., min_length=1)
    status: TaskStatus = TaskStatus.TODO
    priority: TaskPriority = TaskPriority.MEDIUM
    due_date: date
    start_date: Optional[date] = None
    assignee: Optional[str] = None
    description: Optional[str] = None
    weight: Optional[float] = Field(None, ge=0, le=100)


class TaskUpdateRequest(BaseModel):
    title: Optional[str] = None
    status: Optional[TaskStatus] = None
    priority: Optional[TaskPriority] = None
    due_date: Optional[date] = None
    start_date: Optional[date] = None
    assignee: Optional[str] = None
    description: Optional[str] = None
    weight: Optional[float] = Field(None, ge=0, le=100)
    updated_by: str = "Sistem"


class DocumentCreateRequest(BaseModel):
    name: str
    type: DocumentType = DocumentType.OTHER
    url: str
    size: Optional[str] = None


# ── Projects ─────────────────────────────────────────────────────────────────

@router.get("", response_model=List[Project])
async def list_projects(store: SiteStore = Depends(get_store)):
    return store.list_projects()


@router.post("", response_model=Project, status_code=status.HTTP_201_CREATED)
async def create_project(req: ProjectCreateRequest, store: SiteStore = Depends(get_store)):
    with store_errors():
        return store.add_project(Project(**req.model_dump()))


@router.get("/{project_id}", response_model=Project)
async def get_project(project: Project = Depends(get_project_or_404)):
    return project


@router.patch("/{project_id}", response_model=Project)
async def update_project(
    project_id: str,
    req: ProjectUpdateRequest,
    store: SiteStore = Depends(get_store),
):
    with store_errors():
        return store.update_project(project_id, req.model_dump(exclude_unset=True))


@router.delete("/{project_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_project(project_id: str, store: SiteStore = Depends(get_store)):
    with store_errors():
        store.delete_project(project_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ── Tasks ────────────────────────────────────────────────────────────────────

@router.post("/{project_id}/tasks", response_model=Task, status_code=status.HTTP_201_CREATED)
async def create_task(project_id: str, req: TaskCreateRequest, store: SiteStore = Depends(get_store)):
    with store_errors():
        return store.add_task(project_id, Task(**req.model_dump()))


@router.patch("/{project_id}/tasks/{task_id}", response_model=Task)
async def update_task(
    project_id: str,
    task_id: str,
    req: TaskUpdateRequest,
    store: SiteStore = Depends(get_store),
):
    updates = req.model_dump(exclude_unset=True)
    user = updates.pop("updated_by", "Sistem")
    with store_errors():
        return store.update_task(project_id, task_id, updates, user=user)


@router.delete("/{project_id}/tasks/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_task(project_id: str, task_id: str, store: SiteStore = Depends(get_store)):
    with store_errors():
        store.delete_task(project_id, task_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ── Documents ────────────────────────────────────────────────────────────────

@router.post(
    "/{project_id}/documents",
    response_model=ProjectDocument,
    status_code=status.HTTP_201_CREATED,
)
async def add_document(project_id: str, req: DocumentCreateRequest, store: SiteStore = Depends(get_store)):
    doc = ProjectDocument(upload_date=date.today(), **req.model_dump())
    with store_errors():
        return store.add_document(project_id, doc)


@router.delete("/{project_id}/documents/{doc_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_document(project_id: str, doc_id: str, store: SiteStore = Depends(get_store)):
    with store_errors():
        store.delete_document(project_id, doc_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
