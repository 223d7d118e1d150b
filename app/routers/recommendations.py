import logging
from typing import Optional

from fastapi import APIRouter, HTTPException
from fastapi.concurrency import run_in_threadpool

from app.core.exceptions import DecisionFlowError
from app.models.schemas import (
    ApplicationRecommendationRequest,
    ApplicationRecommendations,
    WeatherAlerts,
    WeatherAlertsRequest,
)
from app.routers.errors import flow_http_exception
from app.services.context_builder import build_application_recommendation_input, build_weather_alerts_input
from app.services.database_service import load_farm_records
from app.services.flows import generate_weather_alerts, recommend_applications

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/recommendations", tags=["recommendations"])


@router.post("/applications", response_model=ApplicationRecommendations)
async def get_application_recommendations(request: Optional[ApplicationRecommendationRequest] = None):
    """
    Weekly application and field-work plan built from the supply inventory,
    recent activity, phenology and the weather forecast.
    """
    request = request or ApplicationRecommendationRequest()

    try:
        records = await load_farm_records()
        flow_input = build_application_recommendation_input(request.coordinates, records)
        return await run_in_threadpool(recommend_applications, flow_input)
    except HTTPException:
        raise
    except DecisionFlowError as e:
        logger.warning(f"Application recommendation failed: {e}")
        raise flow_http_exception(e)
    except Exception as e:
        logger.error(f"Application recommendation error: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Failed to generate recommendations: {str(e)}")


@router.post("/weather-alerts", response_model=WeatherAlerts)
async def get_weather_alerts(request: Optional[WeatherAlertsRequest] = None):
    request = request or WeatherAlertsRequest()

    try:
        records = await load_farm_records()
        flow_input = build_weather_alerts_input(request.coordinates, records)
        return await run_in_threadpool(generate_weather_alerts, flow_input)
    except HTTPException:
        raise
    except DecisionFlowError as e:
        logger.warning(f"Weather alerts failed: {e}")
        raise flow_http_exception(e)
    except Exception as e:
        logger.error(f"Weather alerts error: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Failed to generate weather alerts: {str(e)}")
