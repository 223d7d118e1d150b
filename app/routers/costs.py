import logging
from typing import List

from fastapi import APIRouter, HTTPException, Query

from app.core.config import FARM_AREA_HECTARES
from app.models.schemas import BatchCostSummary, CostDistributionResponse, ProductionSummary
from app.services.cost_service import compute_batch_profitability, compute_cost_distribution, summarize_production
from app.services.database_service import load_farm_records

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/costs", tags=["costs"])


@router.get("/batches", response_model=List[BatchCostSummary])
async def get_batch_profitability():
    """Per-batch kilos, labor and input costs, and cost per kilogram."""
    try:
        records = await load_farm_records()
        return compute_batch_profitability(
            records.harvests,
            records.collector_payments,
            records.cultural_practice_logs,
            records.agronomist_logs,
            records.transactions,
        )
    except Exception as e:
        logger.error(f"Error computing batch profitability: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Failed to compute batch costs: {str(e)}")


@router.get("/distribution", response_model=CostDistributionResponse)
async def get_cost_distribution():
    try:
        records = await load_farm_records()
        by_category = compute_cost_distribution(
            records.collector_payments,
            records.packaging_logs,
            records.cultural_practice_logs,
            records.transactions,
        )
        return CostDistributionResponse(total=sum(by_category.values()), by_category=by_category)
    except Exception as e:
        logger.error(f"Error computing cost distribution: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Failed to compute cost distribution: {str(e)}")


@router.get("/production", response_model=ProductionSummary)
async def get_production_summary(area_hectares: float = Query(default=FARM_AREA_HECTARES, gt=0)):
    try:
        records = await load_farm_records()
        return summarize_production(records.harvests, area_hectares)
    except Exception as e:
        logger.error(f"Error summarizing production: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Failed to summarize production: {str(e)}")
