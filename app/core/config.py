import os
from dotenv import load_dotenv

load_dotenv()

GEMINI_API_KEY = os.getenv("GEMINI_API_KEY")
GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-2.0-flash")
GEMINI_API_URL = os.getenv(
    "GEMINI_API_URL",
    "https://generativelanguage.googleapis.com/v1beta/models"
)
HTTP_TIMEOUT = int(os.getenv("HTTP_TIMEOUT", "60"))
# Upper bound on model <-> tool exchanges inside a single flow invocation
MAX_TOOL_ROUNDTRIPS = int(os.getenv("MAX_TOOL_ROUNDTRIPS", "4"))

WEATHER_API_URL = os.getenv("WEATHER_API_URL", "https://api.open-meteo.com/v1/forecast")
WEATHER_FORECAST_DAYS = int(os.getenv("WEATHER_FORECAST_DAYS", "7"))
WEATHER_TIMEOUT = int(os.getenv("WEATHER_TIMEOUT", "15"))

MONGODB_URL = os.getenv("MONGODB_URL", "mongodb://localhost:27017")
DATABASE_NAME = os.getenv("DATABASE_NAME", "agrovision")

# Default establishment location (Coronda, Santa Fe) and cultivated surface
FARM_LATITUDE = float(os.getenv("FARM_LATITUDE", "-31.9729"))
FARM_LONGITUDE = float(os.getenv("FARM_LONGITUDE", "-60.9195"))
FARM_AREA_HECTARES = float(os.getenv("FARM_AREA_HECTARES", "2.5"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# Input assembler windows
RECENT_WINDOW_DAYS = 30
RECENT_WINDOW_MAX_ENTRIES = 50
RECOMMENDATION_AGRONOMIST_LOGS = 20
RECOMMENDATION_PHENOLOGY_LOGS = 10
REPORT_AGRONOMIST_LOGS = 50
REPORT_PHENOLOGY_LOGS = 20
HARVEST_SUMMARY_AGRONOMIST_LOGS = 5

SUPPLY_PURCHASE_CATEGORY = "Supplies"
GENERAL_BATCH_ID = "general"
