import logging
from typing import List, Optional

from fastapi import APIRouter, HTTPException, Query
from fastapi.concurrency import run_in_threadpool

from app.core.exceptions import DecisionFlowError
from app.models.schemas import FlowContext, PredictionLog, PredictionResponse, YieldPredictionRequest
from app.routers.errors import flow_http_exception
from app.services.context_builder import build_yield_prediction_input
from app.services.database_service import list_prediction_logs, load_farm_records, save_prediction_log
from app.services.flows import predict_yield

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/predictions", tags=["predictions"])


@router.post("/{batch_id}", response_model=PredictionResponse)
async def create_yield_prediction(batch_id: str, request: Optional[YieldPredictionRequest] = None):
    """
    Predict next week's yield for a batch from its recent records and the
    weather forecast, and keep the prediction in the history.
    """
    request = request or YieldPredictionRequest()
    context = FlowContext()

    try:
        records = await load_farm_records()
        flow_input = build_yield_prediction_input(batch_id, request.coordinates, records, context)
        result = await run_in_threadpool(predict_yield, flow_input)

        log = PredictionLog(
            date=context.as_of,
            batch_id=batch_id,
            prediction=result.prediction,
            confidence=result.confidence,
        )
        log_id = await save_prediction_log(log)

        return PredictionResponse(
            id=log_id,
            batch_id=batch_id,
            prediction=result.prediction,
            confidence=result.confidence,
        )
    except HTTPException:
        raise
    except DecisionFlowError as e:
        logger.warning(f"Yield prediction for batch {batch_id} failed: {e}")
        raise flow_http_exception(e)
    except Exception as e:
        logger.error(f"Yield prediction error: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Yield prediction failed: {str(e)}")


@router.get("/history", response_model=List[PredictionLog])
async def get_prediction_history(limit: int = Query(default=50, ge=1, le=500)):
    try:
        return await list_prediction_logs(limit)
    except Exception as e:
        logger.error(f"Error fetching prediction history: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Failed to fetch prediction history: {str(e)}")
