import json
from datetime import datetime, timedelta, timezone

import pytest
import requests
from mongomock_motor import AsyncMongoMockClient

from app.core.database import mongodb
from app.models.schemas import (
    AgronomistLogEntry,
    AgronomistLogType,
    Batch,
    CollectorPaymentLog,
    CollectorRef,
    CulturalPracticeLog,
    DevelopmentState,
    FarmRecords,
    FlowContext,
    HarvestRecord,
    PackagingLog,
    PhenologyLogEntry,
    SupplyItem,
    SupplyType,
    Transaction,
    TransactionType,
)
from app.services import gemini_service, weather_service
from app.services.database_service import RECORD_COLLECTIONS

AS_OF = datetime(2026, 10, 18, 12, 0, tzinfo=timezone.utc)

FORECAST_PAYLOAD = {
    "daily": {
        "time": ["2026-10-18", "2026-10-19"],
        "temperature_2m_max": [24.1, 26.0],
        "temperature_2m_min": [12.3, 14.0],
        "precipitation_probability_mean": [10, 80],
        "wind_speed_10m_max": [15.2, 30.1],
    }
}

PNG_DATA_URI = "data:image/png;base64,iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNk"


def days_ago(n):
    return AS_OF - timedelta(days=n)


class FakeResponse:
    def __init__(self, payload, status_code=200):
        self._payload = payload
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.exceptions.HTTPError(f"{self.status_code} error", response=self)

    def json(self):
        if isinstance(self._payload, Exception):
            raise self._payload
        return self._payload


def gemini_text(answer):
    text = answer if isinstance(answer, str) else json.dumps(answer)
    return {"candidates": [{"content": {"role": "model", "parts": [{"text": text}]}}]}


def gemini_function_call(name="getWeatherForecast", args=None):
    args = args if args is not None else {"latitude": -31.97, "longitude": -60.92}
    return {"candidates": [{"content": {"role": "model", "parts": [{"functionCall": {"name": name, "args": args}}]}}]}


class FakeGemini:
    """Stands in for requests.post at the Gemini boundary, answering from a queue."""

    def __init__(self):
        self.responses = []
        self.payloads = []

    def queue(self, *responses):
        self.responses.extend(responses)

    def __call__(self, url, headers=None, json=None, timeout=None):
        self.payloads.append(json)
        if not self.responses:
            raise AssertionError("Unexpected call to the Gemini API")
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response if isinstance(response, FakeResponse) else FakeResponse(response)

    def prompt(self, index=0):
        return self.payloads[index]["contents"][0]["parts"][0]["text"]


class FakeWeather:
    def __init__(self):
        self.payload = FORECAST_PAYLOAD
        self.error = None
        self.calls = []

    def __call__(self, url, params=None, timeout=None):
        self.calls.append(params)
        if self.error is not None:
            raise self.error
        return FakeResponse(self.payload)


@pytest.fixture
def fake_gemini(monkeypatch):
    fake = FakeGemini()
    monkeypatch.setattr(gemini_service, "GEMINI_API_KEY", "test-key")
    monkeypatch.setattr(gemini_service.requests, "post", fake)
    return fake


@pytest.fixture
def fake_weather(monkeypatch):
    fake = FakeWeather()
    monkeypatch.setattr(weather_service.requests, "get", fake)
    return fake


@pytest.fixture
def mock_db(monkeypatch):
    client = AsyncMongoMockClient()
    monkeypatch.setattr(mongodb, "client", client)
    monkeypatch.setattr(mongodb, "database", client["agrovision_test"])
    return mongodb.database


async def seed_records(db, records):
    """Insert records keeping their ids as document ids."""
    for field, collection_name in RECORD_COLLECTIONS.items():
        for record in getattr(records, field):
            await db[collection_name].insert_one({
                "_id": record.id,
                "timestamp": AS_OF,
                "data": record.model_dump(mode="json", exclude={"id"}),
            })


@pytest.fixture
def context():
    return FlowContext(user_id="user-1", as_of=AS_OF)


@pytest.fixture
def farm_records():
    juan = CollectorRef(id="c1", name="Juan")
    return FarmRecords(
        harvests=[
            HarvestRecord(id="h1", date=days_ago(2), batch_number="L014", collector=juan, kilograms=100),
            HarvestRecord(id="h2", date=days_ago(3), batch_number="L015", collector=juan, kilograms=80),
            HarvestRecord(id="h3", date=days_ago(45), batch_number="L014", collector=juan, kilograms=60),
        ],
        collector_payments=[
            CollectorPaymentLog(
                id="p1", date=days_ago(2), harvest_id="h1", collector_id="c1", collector_name="Juan",
                kilograms=100, hours=5, rate_per_kg=0.45, payment=45,
            ),
            CollectorPaymentLog(
                id="p2", date=days_ago(3), harvest_id="h2", collector_id="c1", collector_name="Juan",
                kilograms=80, hours=4, rate_per_kg=0.5, payment=40,
            ),
        ],
        packaging_logs=[
            PackagingLog(
                id="k1", date=days_ago(2), packer_id="e1", packer_name="Ana",
                kilograms_packaged=100, hours_worked=3, cost_per_hour=10, payment=30,
            ),
        ],
        cultural_practice_logs=[
            CulturalPracticeLog(
                id="cp1", date=days_ago(6), practice_type="Deshoje", personnel_id="e2",
                personnel_name="Pedro", hours_worked=2, cost_per_hour=10, payment=20, batch_id="L015",
            ),
        ],
        agronomist_logs=[
            AgronomistLogEntry(
                id="a1", date=days_ago(1), type=AgronomistLogType.FERTILIZATION,
                batch_id="L015", product="Nitrofoska", quantity_used=2, notes="Fertilización de fructificación",
            ),
            AgronomistLogEntry(
                id="a2", date=days_ago(4), type=AgronomistLogType.ENVIRONMENTAL_CONDITIONS,
                notes="Lluvia intensa durante la noche",
            ),
            AgronomistLogEntry(
                id="a3", date=days_ago(5), type=AgronomistLogType.FUMIGATION,
                batch_id="L015", product="Abamectina", quantity_used=1, notes="Araña roja en bordes",
            ),
        ],
        phenology_logs=[
            PhenologyLogEntry(
                id="f1", date=days_ago(1), development_state=DevelopmentState.FRUITING,
                flower_count=12, fruit_count=30,
            ),
        ],
        supplies=[
            SupplyItem(id="s1", name="Nitrofoska", type=SupplyType.FERTILIZER, composition="NPK 12-12-17", stock=40),
        ],
        transactions=[
            Transaction(
                id="t1", date=days_ago(20), type=TransactionType.EXPENSE, category="Supplies",
                description="Compra Nitrofoska 25kg", amount=500, price_per_unit=20,
            ),
            Transaction(
                id="t2", date=days_ago(10), type=TransactionType.EXPENSE, category="Supplies",
                description="Compra NITROFOSKA", amount=300, price_per_unit=25,
            ),
            Transaction(
                id="t3", date=days_ago(5), type=TransactionType.INCOME, category="Sales",
                description="Venta mercado central", amount=1000,
            ),
            Transaction(
                id="t4", date=days_ago(6), type=TransactionType.EXPENSE, category="Fuel",
                description="Gasoil", amount=150,
            ),
        ],
        batches=[
            Batch(id="L014", preloaded_date=days_ago(60)),
            Batch(id="L015", preloaded_date=days_ago(60)),
        ],
    )
