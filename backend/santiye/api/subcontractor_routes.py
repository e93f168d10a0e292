"""
Subcontractor (taşeron) registry, ratings and unit-price comparison.

A subcontractor that still has contracts cannot be deleted.
"""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel, Field

from santiye.api.deps import store_errors
from santiye.models.domain import Subcontractor
from santiye.services.subcontractor_engine import subcontractor_stats, unit_price_analysis
from santiye.store import SiteStore, get_store

router = APIRouter(prefix="/api/v1/subcontractors", tags=["Subcontractors"])
logger = logging.getLogger("santiye-subcontractor-routes")


class SubcontractorCreateRequest(BaseModel):
    name: str = Field(..., min_length=1)
    tax_id: str = Field(..., min_length=1)
    trade: str = ""
    phone: Optional[str] = None
    email: Optional[str] = None
    contact_person: Optional[str] = None
    rating: float = Field(8.0, ge=0, le=10)
    total_score: float = Field(0.0, ge=0)
    avatar_url: Optional[str] = None


class SubcontractorUpdateRequest(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    tax_id: Optional[str] = Field(None, min_length=1)
    trade: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    contact_person: Optional[str] = None
    rating: Optional[float] = Field(None, ge=0, le=10)
    total_score: Optional[float] = Field(None, ge=0)
    avatar_url: Optional[str] = None


@router.get("", response_model=List[Subcontractor])
async def list_subcontractors(store: SiteStore = Depends(get_store)):
    return store.list_subcontractors()


@router.post("", response_model=Subcontractor, status_code=status.HTTP_201_CREATED)
async def create_subcontractor(req: SubcontractorCreateRequest, store: SiteStore = Depends(get_store)):
    with store_errors():
        return store.add_subcontractor(Subcontractor(**req.model_dump()))


@router.get("/stats")
async def get_stats(store: SiteStore = Depends(get_store)):
    return subcontractor_stats(store.list_subcontractors(), store.list_contracts())


@router.get("/unit-prices")
async def get_unit_prices(store: SiteStore = Depends(get_store)):
    return unit_price_analysis(
        store.list_contracts(), store.list_subcontractors(), store.list_projects()
    )


@router.get("/{subcontractor_id}", response_model=Subcontractor)
async def get_subcontractor(subcontractor_id: str, store: SiteStore = Depends(get_store)):
    with store_errors():
        return store.get_subcontractor(subcontractor_id)


@router.patch("/{subcontractor_id}", response_model=Subcontractor)
async def update_subcontractor(
    subcontractor_id: str,
    req: SubcontractorUpdateRequest,
    store: SiteStore = Depends(get_store),
):
    with store_errors():
        return store.update_subcontractor(subcontractor_id, req.model_dump(exclude_unset=True))


@router.delete("/{subcontractor_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_subcontractor(subcontractor_id: str, store: SiteStore = Depends(get_store)):
    with store_errors():
        store.delete_subcontractor(subcontractor_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
