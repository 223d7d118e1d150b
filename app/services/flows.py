"""
Decision flows. Each flow validates its input, renders its prompt and makes
exactly one model invocation whose answer is validated against the flow's
output schema.
"""
import logging
from typing import Any

from app.models.schemas import (
    AgronomistReportInput,
    AgronomistReportSummary,
    ApplicationRecommendationInput,
    ApplicationRecommendations,
    HarvestSummary,
    HarvestSummaryInput,
    PlantDiagnosis,
    PlantDiagnosisInput,
    WeatherAlerts,
    WeatherAlertsInput,
    YieldPrediction,
    YieldPredictionInput,
)
from app.services.context_builder import validate_input
from app.services.gemini_service import generate_structured
from app.services.prompts import (
    AGRONOMIST_REPORT_PROMPT,
    APPLICATION_RECOMMENDATION_PROMPT,
    HARVEST_SUMMARY_PROMPT,
    PLANT_DIAGNOSIS_PROMPT,
    WEATHER_ALERTS_PROMPT,
    YIELD_PREDICTION_PROMPT,
)
from app.services.weather_service import WEATHER_TOOL, get_weather_forecast_or_notice

logger = logging.getLogger(__name__)


def predict_yield(flow_input: Any) -> YieldPrediction:
    """
    Project next week's yield for one batch.

    The forecast is fetched up front so the model does not depend on calling
    the tool; the tool stays declared in case it wants a fresher lookup. A
    failed lookup only degrades the context.
    """
    data = validate_input(YieldPredictionInput, flow_input)
    weather_forecast = get_weather_forecast_or_notice(data.latitude, data.longitude)

    prompt = YIELD_PREDICTION_PROMPT.format(
        batch_id=data.batch_id,
        latitude=data.latitude,
        longitude=data.longitude,
        recent_harvests=data.recent_harvests,
        agronomist_logs=data.agronomist_logs,
        phenology_logs=data.phenology_logs,
        environmental_logs=data.environmental_logs,
        weather_forecast=weather_forecast,
    )
    result = generate_structured("yield prediction", prompt, YieldPrediction, tools=[WEATHER_TOOL])
    logger.info(f"Yield prediction for batch {data.batch_id}: confidence {result.confidence.value}")
    return result


def recommend_applications(flow_input: Any) -> ApplicationRecommendations:
    data = validate_input(ApplicationRecommendationInput, flow_input)
    prompt = APPLICATION_RECOMMENDATION_PROMPT.format(
        latitude=data.latitude,
        longitude=data.longitude,
        supplies=data.supplies,
        agronomist_logs=data.agronomist_logs,
        phenology_logs=data.phenology_logs,
    )
    result = generate_structured(
        "application recommendation", prompt, ApplicationRecommendations, tools=[WEATHER_TOOL]
    )
    logger.info(f"Generated {len(result.recommendations)} application recommendation(s)")
    return result


def generate_weather_alerts(flow_input: Any) -> WeatherAlerts:
    data = validate_input(WeatherAlertsInput, flow_input)
    prompt = WEATHER_ALERTS_PROMPT.format(
        latitude=data.latitude,
        longitude=data.longitude,
        phenology_logs=data.phenology_logs,
        agronomist_logs=data.agronomist_logs,
    )
    return generate_structured("weather alerts", prompt, WeatherAlerts, tools=[WEATHER_TOOL])


def diagnose_plant(flow_input: Any) -> PlantDiagnosis:
    """Diagnose a plant from a photo data URI and the grower's description."""
    data = validate_input(PlantDiagnosisInput, flow_input)
    prompt = PLANT_DIAGNOSIS_PROMPT.format(description=data.description)
    result = generate_structured(
        "plant diagnosis", prompt, PlantDiagnosis, photo_data_uri=data.photo_data_uri
    )
    logger.info(
        f"Plant diagnosis: {result.diagnostico_principal} "
        f"({len(result.posibles_diagnosticos)} hypotheses)"
    )
    return result


def summarize_agronomist_report(flow_input: Any) -> AgronomistReportSummary:
    data = validate_input(AgronomistReportInput, flow_input)
    prompt = AGRONOMIST_REPORT_PROMPT.format(
        agronomist_logs=data.agronomist_logs,
        phenology_logs=data.phenology_logs,
    )
    return generate_structured("agronomist report", prompt, AgronomistReportSummary)


def summarize_harvest_data(flow_input: Any) -> HarvestSummary:
    data = validate_input(HarvestSummaryInput, flow_input)
    prompt = HARVEST_SUMMARY_PROMPT.format(
        production_data=data.production_data,
        cost_data=data.cost_data,
        agronomist_logs=data.agronomist_logs,
    )
    return generate_structured("harvest summary", prompt, HarvestSummary)
