"""
Flow input assembly: pick a bounded window of records per flow and serialize it.

Every window is bounded by time, by count, or both, so prompt size stays
bounded however large the farm history grows.
"""
import json
import logging
from datetime import datetime, timedelta
from typing import Any, Dict, Iterable, List, Optional, Sequence, Type, TypeVar

from pydantic import BaseModel, ValidationError

from app.core.config import (
    GENERAL_BATCH_ID,
    HARVEST_SUMMARY_AGRONOMIST_LOGS,
    RECENT_WINDOW_DAYS,
    RECENT_WINDOW_MAX_ENTRIES,
    RECOMMENDATION_AGRONOMIST_LOGS,
    RECOMMENDATION_PHENOLOGY_LOGS,
    REPORT_AGRONOMIST_LOGS,
    REPORT_PHENOLOGY_LOGS,
)
from app.core.exceptions import FlowValidationError, InsufficientDataError
from app.models.schemas import (
    AgronomistLogType,
    AgronomistReportInput,
    ApplicationRecommendationInput,
    Coordinates,
    FarmRecords,
    FlowContext,
    HarvestSummaryInput,
    WeatherAlertsInput,
    YieldPredictionInput,
)
from app.services.cost_service import compute_batch_profitability, compute_cost_distribution, summarize_production

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


def validate_input(model_cls: Type[M], data: Any) -> M:
    """Coerce a dict (or model) into model_cls, raising FlowValidationError on failure."""
    if isinstance(data, model_cls):
        return data
    try:
        if isinstance(data, BaseModel):
            data = data.model_dump()
        return model_cls.model_validate(data)
    except ValidationError as e:
        raise FlowValidationError(
            f"Invalid {model_cls.__name__}: {e.error_count()} error(s)",
            errors=e.errors(include_url=False),
        ) from e


def serialize_records(records: Iterable[Any]) -> str:
    items = []
    for record in records:
        if isinstance(record, BaseModel):
            items.append(record.model_dump(mode="json", exclude_none=True))
        else:
            items.append(record)
    return json.dumps(items, ensure_ascii=False, separators=(",", ":"))


def latest(records: Sequence[Any], limit: int) -> List[Any]:
    return sorted(records, key=lambda r: r.date, reverse=True)[:limit]


def recent(records: Sequence[Any], as_of: datetime, days: int = RECENT_WINDOW_DAYS,
           limit: int = RECENT_WINDOW_MAX_ENTRIES) -> List[Any]:
    cutoff = as_of - timedelta(days=days)
    return latest([r for r in records if cutoff < r.date <= as_of], limit)


def resolve_batch_id(batch_id: Optional[str], records: FarmRecords) -> str:
    """Known batch ids pass through; anything else is filed under the general batch."""
    if not batch_id or not batch_id.strip():
        return GENERAL_BATCH_ID
    known = {b.id for b in records.batches} | {h.batch_number for h in records.harvests}
    return batch_id if batch_id in known else GENERAL_BATCH_ID


def build_yield_prediction_input(
    batch_id: str,
    coordinates: Coordinates,
    records: FarmRecords,
    context: FlowContext,
) -> YieldPredictionInput:
    if not batch_id or not batch_id.strip():
        raise FlowValidationError("batch_id is required for a yield prediction")

    recent_harvests = recent([h for h in records.harvests if h.batch_number == batch_id], context.as_of)
    if not recent_harvests:
        raise InsufficientDataError(
            f"No harvests recorded for batch {batch_id} in the last {RECENT_WINDOW_DAYS} days"
        )

    scoped_logs = [
        log for log in records.agronomist_logs
        if log.batch_id in (None, batch_id)
    ]
    environmental_logs = recent(
        [log for log in scoped_logs if log.type == AgronomistLogType.ENVIRONMENTAL_CONDITIONS],
        context.as_of,
    )
    agronomist_logs = recent(
        [log for log in scoped_logs if log.type != AgronomistLogType.ENVIRONMENTAL_CONDITIONS],
        context.as_of,
    )
    phenology_logs = recent(
        [log for log in records.phenology_logs if log.batch_id in (None, batch_id)],
        context.as_of,
    )

    logger.info(
        f"Yield prediction context for {batch_id}: {len(recent_harvests)} harvests, "
        f"{len(agronomist_logs)} agronomist logs, {len(phenology_logs)} phenology logs, "
        f"{len(environmental_logs)} environmental logs"
    )

    return validate_input(YieldPredictionInput, {
        "batch_id": batch_id,
        "latitude": coordinates.latitude,
        "longitude": coordinates.longitude,
        "recent_harvests": serialize_records(recent_harvests),
        "agronomist_logs": serialize_records(agronomist_logs),
        "phenology_logs": serialize_records(phenology_logs),
        "environmental_logs": serialize_records(environmental_logs),
    })


def _supply_inventory(records: FarmRecords) -> List[Dict[str, Any]]:
    return [
        {"name": s.name, "type": s.type.value, "composition": s.composition}
        for s in records.supplies
    ]


def build_application_recommendation_input(
    coordinates: Coordinates,
    records: FarmRecords,
) -> ApplicationRecommendationInput:
    # Supplies and logs are optional here: an empty farm still gets monitoring advice
    return validate_input(ApplicationRecommendationInput, {
        "latitude": coordinates.latitude,
        "longitude": coordinates.longitude,
        "supplies": serialize_records(_supply_inventory(records)),
        "agronomist_logs": serialize_records(latest(records.agronomist_logs, RECOMMENDATION_AGRONOMIST_LOGS)),
        "phenology_logs": serialize_records(latest(records.phenology_logs, RECOMMENDATION_PHENOLOGY_LOGS)),
    })


def build_weather_alerts_input(coordinates: Coordinates, records: FarmRecords) -> WeatherAlertsInput:
    return validate_input(WeatherAlertsInput, {
        "latitude": coordinates.latitude,
        "longitude": coordinates.longitude,
        "phenology_logs": serialize_records(latest(records.phenology_logs, RECOMMENDATION_PHENOLOGY_LOGS)),
        "agronomist_logs": serialize_records(latest(records.agronomist_logs, RECOMMENDATION_AGRONOMIST_LOGS)),
    })


def build_agronomist_report_input(records: FarmRecords) -> AgronomistReportInput:
    agronomist_logs = latest(records.agronomist_logs, REPORT_AGRONOMIST_LOGS)
    phenology_logs = latest(records.phenology_logs, REPORT_PHENOLOGY_LOGS)
    if not agronomist_logs and not phenology_logs:
        raise InsufficientDataError("No agronomist or phenology logs to summarize")

    return validate_input(AgronomistReportInput, {
        "agronomist_logs": serialize_records(agronomist_logs),
        "phenology_logs": serialize_records(phenology_logs),
    })


def build_harvest_summary_input(records: FarmRecords, area_hectares: float) -> HarvestSummaryInput:
    if not records.harvests:
        raise InsufficientDataError("No harvests recorded to summarize")

    production = summarize_production(records.harvests, area_hectares)
    distribution = compute_cost_distribution(
        records.collector_payments,
        records.packaging_logs,
        records.cultural_practice_logs,
        records.transactions,
    )
    batches = compute_batch_profitability(
        records.harvests,
        records.collector_payments,
        records.cultural_practice_logs,
        records.agronomist_logs,
        records.transactions,
    )
    cost_data = {
        "total_cost": sum(distribution.values()),
        "by_category": distribution,
        "batches": [b.model_dump(include={"batch_id", "total_kilos", "total_cost", "cost_per_kg"}) for b in batches],
    }
    agronomist_logs = [
        {"type": log.type.value, "product": log.product, "notes": log.notes}
        for log in latest(records.agronomist_logs, HARVEST_SUMMARY_AGRONOMIST_LOGS)
    ]

    return validate_input(HarvestSummaryInput, {
        "production_data": json.dumps(production.model_dump(mode="json"), ensure_ascii=False, separators=(",", ":")),
        "cost_data": json.dumps(cost_data, ensure_ascii=False, separators=(",", ":")),
        "agronomist_logs": serialize_records(agronomist_logs),
    })
