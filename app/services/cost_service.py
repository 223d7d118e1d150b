"""
Deterministic cost and production aggregation over in-memory record snapshots.

Nothing here performs I/O or keeps state between calls, so the same functions
back the live dashboard endpoints and the point-in-time harvest report.
"""
import logging
from collections import OrderedDict
from datetime import date
from typing import Dict, List, Optional, Sequence

from app.core.config import SUPPLY_PURCHASE_CATEGORY
from app.models.schemas import (
    AgronomistLogEntry,
    BatchCostSummary,
    CollectorPaymentLog,
    CulturalPracticeLog,
    HarvestRecord,
    PackagingLog,
    ProductionSummary,
    Transaction,
    TransactionType,
)

logger = logging.getLogger(__name__)


def _supply_purchases(transactions: Sequence[Transaction]) -> List[Transaction]:
    """Priced supply purchases, most recent first."""
    purchases = [
        t for t in transactions
        if t.type == TransactionType.EXPENSE
        and t.category == SUPPLY_PURCHASE_CATEGORY
        and t.price_per_unit
    ]
    # Stable sort keeps input order between purchases on the same date
    return sorted(purchases, key=lambda t: t.date, reverse=True)


def find_purchase_price(product: str, purchases: Sequence[Transaction]) -> Optional[float]:
    needle = product.strip().lower()
    if not needle:
        return None
    for purchase in purchases:
        if needle in purchase.description.lower():
            return purchase.price_per_unit
    return None


def compute_batch_profitability(
    harvests: Sequence[HarvestRecord],
    collector_payments: Sequence[CollectorPaymentLog],
    cultural_practice_logs: Sequence[CulturalPracticeLog],
    agronomist_logs: Sequence[AgronomistLogEntry],
    transactions: Sequence[Transaction],
) -> List[BatchCostSummary]:
    """
    Per-batch production and cost metrics, in order of each batch's first harvest.

    Applications whose product has no priced purchase contribute zero to the
    input cost; the product is reported in ``unpriced_products`` instead of
    being dropped silently.
    """
    batches: "OrderedDict[str, List[HarvestRecord]]" = OrderedDict()
    for harvest in harvests:
        batches.setdefault(harvest.batch_number, []).append(harvest)

    purchases = _supply_purchases(transactions)
    summaries = []

    for batch_id, batch_harvests in batches.items():
        total_kilos = sum(h.kilograms for h in batch_harvests)
        harvest_ids = {h.id for h in batch_harvests}

        harvest_labor_cost = sum(p.payment for p in collector_payments if p.harvest_id in harvest_ids)
        cultural_practice_cost = sum(p.payment for p in cultural_practice_logs if p.batch_id == batch_id)
        total_labor_cost = harvest_labor_cost + cultural_practice_cost

        input_cost = 0.0
        unpriced_products: List[str] = []
        for application in agronomist_logs:
            if application.batch_id != batch_id or not application.product or not application.quantity_used:
                continue
            price = find_purchase_price(application.product, purchases)
            if price is None:
                if application.product not in unpriced_products:
                    unpriced_products.append(application.product)
                continue
            input_cost += application.quantity_used * price

        if unpriced_products:
            logger.warning(
                f"Batch {batch_id}: no priced supply purchase found for {unpriced_products}; "
                f"their applications are excluded from the input cost"
            )

        total_cost = total_labor_cost + input_cost
        cost_per_kg = total_cost / total_kilos if total_kilos > 0 else 0.0

        summaries.append(BatchCostSummary(
            batch_id=batch_id,
            total_kilos=total_kilos,
            harvest_labor_cost=harvest_labor_cost,
            cultural_practice_cost=cultural_practice_cost,
            total_labor_cost=total_labor_cost,
            input_cost=input_cost,
            total_cost=total_cost,
            cost_per_kg=cost_per_kg,
            unpriced_products=unpriced_products,
        ))

    return summaries


def compute_cost_distribution(
    collector_payments: Sequence[CollectorPaymentLog],
    packaging_logs: Sequence[PackagingLog],
    cultural_practice_logs: Sequence[CulturalPracticeLog],
    transactions: Sequence[Transaction],
) -> Dict[str, float]:
    """Farm-wide cost split: the three labor streams, then each expense category."""
    costs: Dict[str, float] = {
        "Harvest": sum(p.payment for p in collector_payments),
        "Packaging": sum(p.payment for p in packaging_logs),
        "Labor": sum(p.payment for p in cultural_practice_logs),
    }
    for transaction in transactions:
        if transaction.type != TransactionType.EXPENSE:
            continue
        costs[transaction.category] = costs.get(transaction.category, 0.0) + transaction.amount
    return costs


def summarize_production(harvests: Sequence[HarvestRecord], area_hectares: float) -> ProductionSummary:
    total_kilos = sum(h.kilograms for h in harvests)

    by_batch: Dict[str, float] = {}
    by_day: "OrderedDict[date, float]" = OrderedDict()
    for harvest in harvests:
        by_batch[harvest.batch_number] = by_batch.get(harvest.batch_number, 0.0) + harvest.kilograms
        day = harvest.date.date()
        by_day[day] = by_day.get(day, 0.0) + harvest.kilograms

    peak_day = None
    peak_day_kilos = 0.0
    for day, kilos in by_day.items():
        if kilos > peak_day_kilos:
            peak_day, peak_day_kilos = day, kilos

    batch_count = len(by_batch)
    return ProductionSummary(
        total_kilos=total_kilos,
        area_hectares=area_hectares,
        yield_per_hectare=total_kilos / area_hectares if area_hectares > 0 else 0.0,
        batch_count=batch_count,
        average_kilos_per_batch=total_kilos / batch_count if batch_count else 0.0,
        peak_day=peak_day,
        peak_day_kilos=peak_day_kilos,
    )
