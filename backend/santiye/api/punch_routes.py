"""Punch list (eksik listesi): snag items found on site and their sign-off cycle."""
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response, status
from pydantic import BaseModel, Field

from santiye.api.deps import store_errors
from santiye.models.domain import PunchItem, PunchSeverity, PunchStatus
from santiye.services.punch_engine import punch_stats
from santiye.store import SiteStore, get_store

router = APIRouter(prefix="/api/v1/punch-items", tags=["Punch List"])


class PunchItemCreateRequest(BaseModel):
    title: str = Field(..., min_length=1)
    location: str = Field(..., min_length=1)
    severity: PunchSeverity = PunchSeverity.MEDIUM
    assignee: str = ""
    project_id: Optional[str] = None
    image_url: Optional[str] = None
    description: Optional[str] = None


class PunchItemUpdateRequest(BaseModel):
    title: Optional[str] = Field(None, min_length=1)
    location: Optional[str] = Field(None, min_length=1)
    status: Optional[PunchStatus] = None
    severity: Optional[PunchSeverity] = None
    assignee: Optional[str] = None
    project_id: Optional[str] = None
    image_url: Optional[str] = None
    description: Optional[str] = None


@router.get("", response_model=List[PunchItem])
async def list_punch_items(
    project_id: Optional[str] = None,
    item_status: Optional[PunchStatus] = Query(None, alias="status"),
    store: SiteStore = Depends(get_store),
):
    return store.list_punch_items(project_id, item_status)


@router.post("", response_model=PunchItem, status_code=status.HTTP_201_CREATED)
async def create_punch_item(req: PunchItemCreateRequest, store: SiteStore = Depends(get_store)):
    with store_errors():
        return store.add_punch_item(PunchItem(reported_on=date.today(), **req.model_dump()))


@router.get("/stats")
async def get_punch_stats(project_id: Optional[str] = None, store: SiteStore = Depends(get_store)):
    return punch_stats(store.list_punch_items(project_id))


@router.patch("/{item_id}", response_model=PunchItem)
async def update_punch_item(item_id: str, req: PunchItemUpdateRequest, store: SiteStore = Depends(get_store)):
    with store_errors():
        return store.update_punch_item(item_id, req.model_dump(exclude_unset=True))


@router.post("/{item_id}/advance", response_model=PunchItem)
async def advance_punch_item(item_id: str, store: SiteStore = Depends(get_store)):
    """Move the item to its next status: Açık → Çözüldü → Onaylandı → Açık."""
    with store_errors():
        return store.advance_punch_status(item_id)


@router.delete("/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_punch_item(item_id: str, store: SiteStore = Depends(get_store)):
    with store_errors():
        store.delete_punch_item(item_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
