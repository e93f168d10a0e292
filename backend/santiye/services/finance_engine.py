"""
finance_engine.py — Hakediş (progress payment) and budget calculations.

Covers:
  - Subcontractor hakediş: quantity × unit price against contract items
  - Cumulative (previous + current) quantities per contract item
  - Hakediş statement rows for a recorded payment
  - Price difference (fiyat farkı) from base vs. current cost index
  - Budget vs. spent per project (overspend is a valid state)

All monetary values are in TRY. Nothing here touches the store; callers
pass snapshots of contracts, payments and projects.
"""
import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional

from santiye.models.domain import (
    Contract,
    PaymentItemDetail,
    PaymentRecord,
    PaymentType,
    Project,
)
from santiye.services.perf_monitor import timed

logger = logging.getLogger("santiye-finance")

CURRENCY = "TRY"


class FinanceEngine:
    """
    Stateless hakediş and budget calculator.

    Quantities handed in as ``{contract_item_id: quantity}``; unknown item
    ids are ignored, missing ones count as zero.
    """

    # -----------------------------------------------------------------------
    # 1. Subcontractor hakediş
    # -----------------------------------------------------------------------

    def previous_quantity(
        self,
        payments: Iterable[PaymentRecord],
        project_id: str,
        subcontractor_id: str,
        item_id: str,
        exclude_payment_id: Optional[str] = None,
    ) -> float:
        """Quantity of ``item_id`` already paid to this subcontractor on this project."""
        total = 0.0
        for payment in payments:
            if payment.project_id != project_id or payment.subcontractor_id != subcontractor_id:
                continue
            if exclude_payment_id and payment.id == exclude_payment_id:
                continue
            for item in payment.items or []:
                if item.item_id == item_id:
                    total += item.quantity
        return total

    def subcontractor_payment_total(
        self, contract: Contract, quantities: Mapping[str, float]
    ) -> float:
        """Σ current quantity × unit price over the contract items."""
        return sum(quantities.get(item.id, 0) * item.unit_price for item in contract.items)

    def build_payment_items(
        self, contract: Contract, quantities: Mapping[str, float]
    ) -> List[PaymentItemDetail]:
        """Item details for a new payment; lines with a zero total are dropped."""
        items = [
            PaymentItemDetail(
                item_id=item.id,
                quantity=quantities.get(item.id, 0),
                total=quantities.get(item.id, 0) * item.unit_price,
            )
            for item in contract.items
        ]
        return [i for i in items if i.total > 0]

    @timed
    def preview_hakedis(
        self,
        contract: Contract,
        quantities: Mapping[str, float],
        payments: Iterable[PaymentRecord],
    ) -> Dict[str, Any]:
        """
        Preview of the next subcontractor hakediş before it is recorded.

        Each contract item gets previous / current / cumulative quantity and
        the amount due for the current quantity.
        """
        payments = list(payments)
        rows = []
        for item in contract.items:
            prev_qty = self.previous_quantity(
                payments, contract.project_id, contract.subcontractor_id, item.id
            )
            current_qty = quantities.get(item.id, 0)
            rows.append({
                "item_id": item.id,
                "code": item.code,
                "description": item.description,
                "unit": item.unit,
                "unit_price": item.unit_price,
                "previous_quantity": prev_qty,
                "current_quantity": current_qty,
                "cumulative_quantity": prev_qty + current_qty,
                "current_amount": current_qty * item.unit_price,
            })

        return {
            "contract_id": contract.id,
            "project_id": contract.project_id,
            "subcontractor_id": contract.subcontractor_id,
            "rows": rows,
            "total_amount": self.subcontractor_payment_total(contract, quantities),
            "currency": CURRENCY,
        }

    def hakedis_statement(
        self,
        payment: PaymentRecord,
        contract: Optional[Contract],
        payments: Iterable[PaymentRecord],
    ) -> Dict[str, Any]:
        """
        Statement rows for an already recorded payment. Earlier quantities
        exclude the payment itself; items no longer on the contract are
        shown as unknown lines.
        """
        payments = list(payments)
        contract_items = {i.id: i for i in contract.items} if contract else {}
        rows = []
        for detail in payment.items or []:
            ci = contract_items.get(detail.item_id)
            prev_qty = self.previous_quantity(
                payments,
                payment.project_id or "",
                payment.subcontractor_id or "",
                detail.item_id,
                exclude_payment_id=payment.id,
            )
            rows.append({
                "item_id": detail.item_id,
                "code": ci.code if ci else "-",
                "description": ci.description if ci else "Bilinmeyen Kalem",
                "unit": ci.unit if ci else "-",
                "unit_price": ci.unit_price if ci else None,
                "previous_quantity": prev_qty,
                "current_quantity": detail.quantity,
                "cumulative_quantity": prev_qty + detail.quantity,
                "current_amount": detail.total,
            })

        title = "İDARE HAKEDİŞ RAPORU" if payment.type == PaymentType.EMPLOYER else "TAŞERON HAKEDİŞ RAPORU"
        return {
            "payment_id": payment.id,
            "title": title,
            "month": payment.month,
            "date": payment.date.isoformat(),
            "amount": payment.amount,
            "rows": rows,
            "currency": CURRENCY,
        }

    # -----------------------------------------------------------------------
    # 2. Price difference (fiyat farkı)
    # -----------------------------------------------------------------------

    def price_difference(self, amount: float, base_index: float, current_index: float) -> Dict[str, float]:
        """
        Additional payment owed for index movement between tender date and
        hakediş date:  amount × (current − base) / base.
        """
        if base_index <= 0:
            raise ValueError("base_index must be greater than zero")
        coefficient = (current_index - base_index) / base_index
        return {
            "amount": amount,
            "base_index": base_index,
            "current_index": current_index,
            "coefficient": coefficient,
            "price_difference": amount * coefficient,
        }

    # -----------------------------------------------------------------------
    # 3. Budget overview
    # -----------------------------------------------------------------------

    def budget_overview(self, projects: Iterable[Project]) -> List[Dict[str, Any]]:
        """Budget, spent and remaining per project; remaining < 0 is overspend."""
        return [
            {
                "project_id": p.id,
                "name": p.name,
                "budget": p.budget,
                "spent": p.spent,
                "remaining": p.budget - p.spent,
                "is_overspent": p.spent > p.budget,
            }
            for p in projects
        ]

    def payment_total(
        self, payments: Iterable[PaymentRecord], payment_type: Optional[PaymentType] = None
    ) -> float:
        return sum(p.amount for p in payments if payment_type is None or p.type == payment_type)


finance_engine = FinanceEngine()
