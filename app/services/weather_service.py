import logging
from datetime import datetime
from typing import Dict, Any

import requests

from app.core.config import WEATHER_API_URL, WEATHER_FORECAST_DAYS, WEATHER_TIMEOUT
from app.core.exceptions import FlowValidationError, WeatherLookupError
from app.services.gemini_service import ModelTool

logger = logging.getLogger(__name__)

WEATHER_UNAVAILABLE_NOTICE = (
    "Weather forecast unavailable: the weather provider could not be reached. "
    "Weather context may be missing; base the analysis on the farm records only "
    "and lower the confidence accordingly."
)

DAILY_FIELDS = [
    "temperature_2m_max",
    "temperature_2m_min",
    "precipitation_probability_mean",
    "wind_speed_10m_max",
]


def validate_coordinates(latitude: Any, longitude: Any) -> None:
    for name, value, bound in (("latitude", latitude, 90), ("longitude", longitude, 180)):
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise FlowValidationError(f"{name} must be a number, got {value!r}")
        if not -bound <= value <= bound:
            raise FlowValidationError(f"{name} must be within [-{bound}, {bound}], got {value}")


def _format_forecast(daily: Dict[str, Any]) -> str:
    lines = [f"Forecast summary for the next {len(daily['time'])} days:"]
    for i, day in enumerate(daily["time"]):
        label = datetime.strptime(day, "%Y-%m-%d").strftime("%a %d %b")
        lines.append(
            f"- {label}: Temp {daily['temperature_2m_min'][i]}°C to "
            f"{daily['temperature_2m_max'][i]}°C, "
            f"Rain probability: {daily['precipitation_probability_mean'][i]}%, "
            f"Wind: up to {daily['wind_speed_10m_max'][i]} km/h."
        )
    return "\n".join(lines)


def get_weather_forecast(latitude: float, longitude: float) -> str:
    """
    Fetch the daily forecast from Open-Meteo and render it as prompt-ready text.

    Raises WeatherLookupError on any network, HTTP or payload problem.
    """
    validate_coordinates(latitude, longitude)

    params = {
        "latitude": latitude,
        "longitude": longitude,
        "daily": ",".join(DAILY_FIELDS),
        "timezone": "auto",
        "forecast_days": WEATHER_FORECAST_DAYS,
    }

    logger.info(f"Fetching weather from Open-Meteo: lat={latitude}, lon={longitude}")

    try:
        response = requests.get(WEATHER_API_URL, params=params, timeout=WEATHER_TIMEOUT)
        response.raise_for_status()
        data = response.json()
    except requests.exceptions.RequestException as e:
        raise WeatherLookupError(f"Weather provider request failed: {e}") from e
    except ValueError as e:
        raise WeatherLookupError(f"Weather provider returned invalid JSON: {e}") from e

    daily = data.get("daily") if isinstance(data, dict) else None
    if not daily or not daily.get("time"):
        raise WeatherLookupError("Weather provider returned no daily forecast")

    try:
        return _format_forecast(daily)
    except (KeyError, IndexError, TypeError, ValueError) as e:
        raise WeatherLookupError(f"Unexpected forecast payload: {e}") from e


def get_weather_forecast_or_notice(latitude: float, longitude: float) -> str:
    """Forecast text, or a degraded notice when the lookup fails."""
    try:
        return get_weather_forecast(latitude, longitude)
    except WeatherLookupError as e:
        logger.warning(f"Weather lookup failed, continuing without forecast: {e}")
        return WEATHER_UNAVAILABLE_NOTICE


def _weather_tool_handler(args: Dict[str, Any]) -> Dict[str, Any]:
    latitude = args.get("latitude")
    longitude = args.get("longitude")
    try:
        validate_coordinates(latitude, longitude)
    except FlowValidationError as e:
        # Bad arguments from the model degrade the same way a provider failure does
        raise WeatherLookupError(str(e)) from e
    return {"forecast": get_weather_forecast(float(latitude), float(longitude))}


WEATHER_TOOL = ModelTool(
    name="getWeatherForecast",
    description=(
        "Gets the weather forecast for a specific latitude and longitude: daily "
        "temperature range, precipitation probability and maximum wind speed "
        f"for the next {WEATHER_FORECAST_DAYS} days."
    ),
    parameters={
        "type": "OBJECT",
        "properties": {
            "latitude": {"type": "NUMBER", "description": "Latitude of the location."},
            "longitude": {"type": "NUMBER", "description": "Longitude of the location."},
        },
        "required": ["latitude", "longitude"],
    },
    handler=_weather_tool_handler,
    unavailable_notice=WEATHER_UNAVAILABLE_NOTICE,
)
