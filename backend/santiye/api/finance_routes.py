"""
Financial routes — hakediş records, contracts, price difference, budget.

Employer (İdare) payments carry a manually entered amount; subcontractor
(Taşeron) payments are computed from contract item quantities.
"""
import datetime as dt
import logging
from datetime import date
from typing import Annotated, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from pydantic import BaseModel, Field

from santiye.api.deps import store_errors
from santiye.models.domain import (
    Contract,
    ContractItem,
    ContractStatus,
    PaymentRecord,
    PaymentType,
)
from santiye.services.finance_engine import finance_engine
from santiye.store import SiteStore, get_store

router = APIRouter(prefix="/api/v1/finance", tags=["Financials"])
logger = logging.getLogger("santiye-finance-routes")

# Contract item id → quantity; a hakediş never pays back a negative quantity
Quantities = Dict[str, Annotated[float, Field(ge=0)]]


# ── Pydantic Models ─────────────────────────────────────────────────────────

class ContractCreateRequest(BaseModel):
    subcontractor_id: str
    project_id: str
    items: List[ContractItem] = Field(default_factory=list)
    start_date: date
    end_date: date
    status: ContractStatus = ContractStatus.DRAFT


class PaymentCreateRequest(BaseModel):
    type: PaymentType
    month: str = Field(..., min_length=1)
    project_id: Optional[str] = None
    subcontractor_id: Optional[str] = None
    amount: Optional[float] = Field(None, gt=0)          # İdare only
    quantities: Quantities = Field(default_factory=dict)   # Taşeron only


class PaymentUpdateRequest(BaseModel):
    month: Optional[str] = None
    date: Optional[dt.date] = None
    amount: Optional[float] = Field(None, gt=0)


class HakedisPreviewRequest(BaseModel):
    project_id: str
    subcontractor_id: str
    quantities: Quantities = Field(default_factory=dict)


class PriceDifferenceRequest(BaseModel):
    amount: float
    base_index: float
    current_index: float


# ── Contracts ────────────────────────────────────────────────────────────────

@router.get("/contracts", response_model=List[Contract])
async def list_contracts(project_id: Optional[str] = None, store: SiteStore = Depends(get_store)):
    return store.list_contracts(project_id)


@router.post("/contracts", response_model=Contract, status_code=status.HTTP_201_CREATED)
async def create_contract(req: ContractCreateRequest, store: SiteStore = Depends(get_store)):
    with store_errors():
        return store.add_contract(Contract(**req.model_dump()))


# ── Payments ─────────────────────────────────────────────────────────────────

@router.get("/payments", response_model=List[PaymentRecord])
async def list_payments(
    payment_type: Optional[PaymentType] = Query(None, alias="type"),
    store: SiteStore = Depends(get_store),
):
    return store.list_payments(payment_type)


@router.post("/payments", response_model=PaymentRecord, status_code=status.HTTP_201_CREATED)
async def create_payment(req: PaymentCreateRequest, store: SiteStore = Depends(get_store)):
    items = None
    if req.type == PaymentType.SUBCONTRACTOR:
        if not (req.project_id and req.subcontractor_id):
            raise HTTPException(status_code=400, detail="Subcontractor payments need project_id and subcontractor_id")
        contract = store.find_contract(req.project_id, req.subcontractor_id)
        if contract is None:
            raise HTTPException(status_code=404, detail="No contract for this project and subcontractor")
        amount = finance_engine.subcontractor_payment_total(contract, req.quantities)
        items = finance_engine.build_payment_items(contract, req.quantities) or None
    else:
        amount = req.amount or 0.0

    if amount <= 0:
        raise HTTPException(status_code=400, detail="Payment amount must be greater than zero")

    with store_errors():
        return store.add_payment(PaymentRecord(
            date=date.today(),
            month=req.month,
            amount=amount,
            type=req.type,
            project_id=req.project_id,
            subcontractor_id=req.subcontractor_id,
            items=items,
        ))


@router.patch("/payments/{payment_id}", response_model=PaymentRecord)
async def update_payment(payment_id: str, req: PaymentUpdateRequest, store: SiteStore = Depends(get_store)):
    updates = req.model_dump(exclude_unset=True)
    with store_errors():
        payment = store.get_payment(payment_id)
        # Taşeron amounts are the sum of their item lines
        if "amount" in updates and payment.type == PaymentType.SUBCONTRACTOR:
            raise ValueError("Subcontractor payment amounts follow their item quantities and cannot be edited")
        return store.update_payment(payment_id, updates)


@router.delete("/payments/{payment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_payment(payment_id: str, store: SiteStore = Depends(get_store)):
    with store_errors():
        store.delete_payment(payment_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/payments/{payment_id}/statement")
async def payment_statement(payment_id: str, store: SiteStore = Depends(get_store)):
    with store_errors():
        payment = store.get_payment(payment_id)
    contract = None
    if payment.project_id and payment.subcontractor_id:
        contract = store.find_contract(payment.project_id, payment.subcontractor_id)
    return finance_engine.hakedis_statement(payment, contract, store.list_payments())


# ── Calculators ──────────────────────────────────────────────────────────────

@router.post("/hakedis/preview")
async def preview_hakedis(req: HakedisPreviewRequest, store: SiteStore = Depends(get_store)):
    contract = store.find_contract(req.project_id, req.subcontractor_id)
    if contract is None:
        raise HTTPException(status_code=404, detail="No contract for this project and subcontractor")
    return finance_engine.preview_hakedis(contract, req.quantities, store.list_payments())


@router.post("/price-difference")
async def price_difference(req: PriceDifferenceRequest):
    with store_errors():
        return finance_engine.price_difference(req.amount, req.base_index, req.current_index)


@router.get("/budget")
async def budget_overview(store: SiteStore = Depends(get_store)):
    return {
        "projects": finance_engine.budget_overview(store.list_projects()),
        "total_paid": finance_engine.payment_total(store.list_payments()),
    }
