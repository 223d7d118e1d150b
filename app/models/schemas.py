from pydantic import AfterValidator, BaseModel, ConfigDict, Field
from typing import Annotated, Optional, List, Dict, Literal
from datetime import date, datetime, timezone
from enum import Enum

from app.core.config import FARM_LATITUDE, FARM_LONGITUDE, FARM_AREA_HECTARES


def _ensure_utc(value: datetime) -> datetime:
    # Records arrive both with and without offsets; naive timestamps are UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


UtcDatetime = Annotated[datetime, AfterValidator(_ensure_utc)]


class Level(str, Enum):
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"


class AgronomistLogType(str, Enum):
    FERTILIZATION = "Fertilization"
    FUMIGATION = "Fumigation"
    CONTROL = "Control"
    SANITATION = "Sanitation"
    CULTURAL_PRACTICE = "CulturalPractice"
    IRRIGATION = "Irrigation"
    ENVIRONMENTAL_CONDITIONS = "EnvironmentalConditions"


class DevelopmentState(str, Enum):
    FLOWERING = "Flowering"
    FRUITING = "Fruiting"
    RIPENING = "Ripening"


class SupplyType(str, Enum):
    FERTILIZER = "Fertilizer"
    FUNGICIDE = "Fungicide"
    INSECTICIDE = "Insecticide"
    ACARICIDE = "Acaricide"


class TransactionType(str, Enum):
    INCOME = "Income"
    EXPENSE = "Expense"


# ---------- Farm records ----------

class ImageWithHint(BaseModel):
    url: str
    hint: Optional[str] = None


class AgronomistLogEntry(BaseModel):
    id: str
    date: UtcDatetime
    type: AgronomistLogType
    batch_id: Optional[str] = None
    product: Optional[str] = None
    quantity_used: Optional[float] = Field(default=None, ge=0)
    notes: str = ""
    images: List[ImageWithHint] = []


class PhenologyLogEntry(BaseModel):
    id: str
    date: UtcDatetime
    development_state: DevelopmentState
    batch_id: Optional[str] = None
    flower_count: Optional[int] = Field(default=None, ge=0)
    fruit_count: Optional[int] = Field(default=None, ge=0)
    notes: str = ""
    images: List[ImageWithHint] = []


class CollectorRef(BaseModel):
    id: str
    name: str


class HarvestRecord(BaseModel):
    id: str
    date: UtcDatetime
    batch_number: str
    collector: CollectorRef
    kilograms: float = Field(ge=0)


class SupplyItem(BaseModel):
    id: str
    name: str
    type: SupplyType
    composition: str = ""
    stock: float = 0
    low_stock_threshold: float = 0


class CollectorPaymentLog(BaseModel):
    id: str
    date: UtcDatetime
    harvest_id: str
    collector_id: str
    collector_name: str
    kilograms: float
    hours: float
    rate_per_kg: float
    payment: float


class PackagingLog(BaseModel):
    id: str
    date: UtcDatetime
    packer_id: str
    packer_name: str
    kilograms_packaged: float
    hours_worked: float
    cost_per_hour: float
    payment: float


class CulturalPracticeLog(BaseModel):
    id: str
    date: UtcDatetime
    practice_type: str
    personnel_id: str
    personnel_name: str
    hours_worked: float
    cost_per_hour: float
    payment: float
    notes: str = ""
    batch_id: Optional[str] = None


class Transaction(BaseModel):
    id: str
    date: UtcDatetime
    type: TransactionType
    category: str
    description: str
    amount: float
    price_per_unit: Optional[float] = None


class Batch(BaseModel):
    id: str
    preloaded_date: UtcDatetime
    status: Literal["pending", "completed"] = "pending"
    completion_date: Optional[UtcDatetime] = None


class FarmRecords(BaseModel):
    """Snapshot of the record collections a flow or report operates on."""
    harvests: List[HarvestRecord] = []
    collector_payments: List[CollectorPaymentLog] = []
    packaging_logs: List[PackagingLog] = []
    cultural_practice_logs: List[CulturalPracticeLog] = []
    agronomist_logs: List[AgronomistLogEntry] = []
    phenology_logs: List[PhenologyLogEntry] = []
    supplies: List[SupplyItem] = []
    transactions: List[Transaction] = []
    batches: List[Batch] = []


# ---------- Flow context & inputs ----------

class FlowContext(BaseModel):
    user_id: Optional[str] = None
    as_of: UtcDatetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class Coordinates(BaseModel):
    latitude: float = Field(default=FARM_LATITUDE, ge=-90, le=90)
    longitude: float = Field(default=FARM_LONGITUDE, ge=-180, le=180)


class YieldPredictionInput(BaseModel):
    batch_id: str = Field(min_length=1)
    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)
    recent_harvests: str = Field(min_length=1)
    agronomist_logs: str
    phenology_logs: str
    environmental_logs: str


class ApplicationRecommendationInput(BaseModel):
    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)
    supplies: str
    agronomist_logs: str
    phenology_logs: str


class WeatherAlertsInput(BaseModel):
    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)
    phenology_logs: str
    agronomist_logs: str


class PlantDiagnosisInput(BaseModel):
    photo_data_uri: str = Field(pattern=r"^data:image/[a-zA-Z0-9.+-]+;base64,.+")
    description: str = Field(min_length=10)


class AgronomistReportInput(BaseModel):
    agronomist_logs: str
    phenology_logs: str


class HarvestSummaryInput(BaseModel):
    production_data: str = Field(min_length=1)
    cost_data: str = Field(min_length=1)
    agronomist_logs: str


# ---------- Model outputs ----------

class YieldPrediction(BaseModel):
    prediction: str = Field(min_length=1)
    confidence: Level


class ApplicationRecommendation(BaseModel):
    recommendation: str = Field(min_length=1)
    reason: str = Field(min_length=1)
    urgency: Level
    suggested_products: List[str]


class ApplicationRecommendations(BaseModel):
    recommendations: List[ApplicationRecommendation] = Field(min_length=1)


class PossibleDiagnosis(BaseModel):
    nombre: str = Field(min_length=1)
    probabilidad: float = Field(ge=0, le=100)
    descripcion: str = Field(min_length=1)


class PlantDiagnosis(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    diagnostico_principal: str = Field(alias="diagnosticoPrincipal", min_length=1)
    posibles_diagnosticos: List[PossibleDiagnosis] = Field(
        alias="posiblesDiagnosticos", min_length=1, max_length=3
    )
    recomendacion_general: str = Field(alias="recomendacionGeneral", min_length=1)


class AgronomistReportSummary(BaseModel):
    technical_analysis: str = Field(min_length=1)
    conclusions_and_recommendations: str = Field(min_length=1)


class WeatherAlert(BaseModel):
    risk: str = Field(min_length=1)
    recommendation: str = Field(min_length=1)
    urgency: Level


class WeatherAlerts(BaseModel):
    alerts: List[WeatherAlert] = Field(min_length=1)


class HarvestSummary(BaseModel):
    executive_summary: str = Field(min_length=1)
    analysis_and_interpretation: str = Field(min_length=1)
    conclusions_and_recommendations: str = Field(min_length=1)


# ---------- Cost engine ----------

class BatchCostSummary(BaseModel):
    batch_id: str
    total_kilos: float
    harvest_labor_cost: float
    cultural_practice_cost: float
    total_labor_cost: float
    input_cost: float
    total_cost: float
    cost_per_kg: float
    unpriced_products: List[str] = []


class ProductionSummary(BaseModel):
    total_kilos: float
    area_hectares: float
    yield_per_hectare: float
    batch_count: int
    average_kilos_per_batch: float
    peak_day: Optional[date] = None
    peak_day_kilos: float = 0


# ---------- Persisted logs ----------

class PredictionLog(BaseModel):
    id: Optional[str] = None
    date: UtcDatetime
    batch_id: str
    prediction: str
    confidence: Level


class DiagnosisLog(BaseModel):
    id: Optional[str] = None
    date: UtcDatetime
    batch_id: str
    result: PlantDiagnosis
    final_diagnosis: str
    probability: Optional[float] = None
    user_correction: Optional[str] = None
    user_id: Optional[str] = None


# ---------- HTTP requests & responses ----------

class YieldPredictionRequest(BaseModel):
    coordinates: Coordinates = Field(default_factory=Coordinates)


class ApplicationRecommendationRequest(BaseModel):
    coordinates: Coordinates = Field(default_factory=Coordinates)


class WeatherAlertsRequest(BaseModel):
    coordinates: Coordinates = Field(default_factory=Coordinates)


class PlantDiagnosisRequest(BaseModel):
    photo_data_uri: str
    description: str


class DiagnosisConfirmRequest(BaseModel):
    batch_id: Optional[str] = None
    result: PlantDiagnosis
    action: Literal["validate", "correct"]
    selection: Optional[str] = None
    note: Optional[str] = None
    user_id: Optional[str] = None


class HarvestSummaryRequest(BaseModel):
    area_hectares: float = Field(default=FARM_AREA_HECTARES, gt=0)


class PredictionResponse(BaseModel):
    id: str
    batch_id: str
    prediction: str
    confidence: Level


class DiagnosisLogResponse(BaseModel):
    id: str
    state: Literal["Validated", "Corrected"]
    log: DiagnosisLog


class CostDistributionResponse(BaseModel):
    total: float
    by_category: Dict[str, float]


class CascadeDeleteResponse(BaseModel):
    message: str
    deleted_counts: Dict[str, int]
