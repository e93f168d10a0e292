"""
subcontractor_engine.py — Subcontractor scoring and unit-price comparison.

Covers:
  - Registry headline figures: count, active contracts, average rating
  - Awards: sub of the month (highest rating), sub of the year (highest
    cumulative score)
  - Unit-price analysis: the same contract item description priced by
    different subcontractors / projects, with spread and history
"""
import logging
from collections import defaultdict
from typing import Any, Dict, Iterable, List, Optional

from santiye.models.domain import Contract, ContractStatus, Project, Subcontractor
from santiye.services.perf_monitor import timed

logger = logging.getLogger("santiye-subcontractors")

UNKNOWN_NAME = "Bilinmiyor"


def _award(subs: List[Subcontractor], key) -> Optional[Dict[str, Any]]:
    # max() keeps the first of equal scores, so earlier entries win ties
    if not subs:
        return None
    best = max(subs, key=key)
    return {"id": best.id, "name": best.name, "trade": best.trade, "score": key(best)}


def subcontractor_stats(
    subcontractors: Iterable[Subcontractor],
    contracts: Iterable[Contract],
) -> Dict[str, Any]:
    subs = list(subcontractors)
    avg_rating = round(sum(s.rating for s in subs) / len(subs), 1) if subs else 0.0
    return {
        "total_subcontractors": len(subs),
        "active_contracts": sum(1 for c in contracts if c.status == ContractStatus.ACTIVE),
        "avg_rating": avg_rating,
        "sub_of_month": _award(subs, lambda s: s.rating),
        "sub_of_year": _award(subs, lambda s: s.total_score),
    }


@timed
def unit_price_analysis(
    contracts: Iterable[Contract],
    subcontractors: Iterable[Subcontractor],
    projects: Iterable[Project],
) -> Dict[str, Any]:
    """
    Group contract items by description and compare their unit prices.

    ``variance`` is max − min; ``variance_pct`` is that spread relative to
    the cheapest price (0 when the cheapest is free). Items come back
    most expensive (by average) first.
    """
    sub_names = {s.id: s.name for s in subcontractors}
    project_names = {p.id: p.name for p in projects}

    groups: Dict[str, List[Dict[str, Any]]] = defaultdict(list)
    for contract in contracts:
        for item in contract.items:
            groups[item.description].append({
                "price": item.unit_price,
                "date": contract.start_date,
                "subcontractor": sub_names.get(contract.subcontractor_id, UNKNOWN_NAME),
                "project": project_names.get(contract.project_id, UNKNOWN_NAME),
            })

    summary = []
    for name, entries in groups.items():
        prices = [e["price"] for e in entries]
        low, high = min(prices), max(prices)
        history = sorted(entries, key=lambda e: e["date"])
        summary.append({
            "name": name,
            "count": len(prices),
            "min": low,
            "max": high,
            "avg": sum(prices) / len(prices),
            "variance": high - low,
            "variance_pct": (high - low) / low * 100 if low > 0 else 0.0,
            "history": [{**e, "date": e["date"].isoformat()} for e in history],
        })

    most_volatile = max(summary, key=lambda s: s["variance"])["name"] if summary else None
    logger.debug("Unit-price analysis over %d item description(s)", len(summary))
    return {
        "items": sorted(summary, key=lambda s: s["avg"], reverse=True),
        "most_volatile": most_volatile,
    }
