import logging
from typing import Optional

from fastapi import APIRouter, HTTPException
from fastapi.concurrency import run_in_threadpool

from app.core.exceptions import DecisionFlowError
from app.models.schemas import AgronomistReportSummary, HarvestSummary, HarvestSummaryRequest
from app.routers.errors import flow_http_exception
from app.services.context_builder import build_agronomist_report_input, build_harvest_summary_input
from app.services.database_service import load_farm_records
from app.services.flows import summarize_agronomist_report, summarize_harvest_data

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/reports", tags=["reports"])


@router.post("/agronomist", response_model=AgronomistReportSummary)
async def create_agronomist_report():
    """Technical analysis and recommendations drawn from the field logs."""
    try:
        records = await load_farm_records()
        return await run_in_threadpool(summarize_agronomist_report, build_agronomist_report_input(records))
    except HTTPException:
        raise
    except DecisionFlowError as e:
        logger.warning(f"Agronomist report failed: {e}")
        raise flow_http_exception(e)
    except Exception as e:
        logger.error(f"Agronomist report error: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Failed to generate agronomist report: {str(e)}")


@router.post("/harvest", response_model=HarvestSummary)
async def create_harvest_summary(request: Optional[HarvestSummaryRequest] = None):
    """Production and cost report for the producer, amounts in ARS."""
    request = request or HarvestSummaryRequest()

    try:
        records = await load_farm_records()
        flow_input = build_harvest_summary_input(records, request.area_hectares)
        return await run_in_threadpool(summarize_harvest_data, flow_input)
    except HTTPException:
        raise
    except DecisionFlowError as e:
        logger.warning(f"Harvest summary failed: {e}")
        raise flow_http_exception(e)
    except Exception as e:
        logger.error(f"Harvest summary error: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Failed to generate harvest summary: {str(e)}")
