import pytest
import requests

from app.core.exceptions import FlowValidationError, MalformedModelOutput
from app.models.schemas import Coordinates, FarmRecords, Level
from app.services.context_builder import (
    build_application_recommendation_input,
    build_harvest_summary_input,
    build_yield_prediction_input,
)
from app.services.flows import (
    diagnose_plant,
    generate_weather_alerts,
    predict_yield,
    recommend_applications,
    summarize_agronomist_report,
    summarize_harvest_data,
)
from app.services.weather_service import WEATHER_UNAVAILABLE_NOTICE

from conftest import PNG_DATA_URI, gemini_function_call, gemini_text

COORDS = Coordinates(latitude=-31.97, longitude=-60.92)

MONITORING = {
    "recommendations": [{
        "recommendation": "Monitorear el cultivo",
        "reason": "Sin registros recientes",
        "urgency": "Low",
        "suggested_products": [],
    }]
}

DIAGNOSIS = {
    "diagnosticoPrincipal": "Botrytis",
    "posiblesDiagnosticos": [
        {"nombre": "Botrytis", "probabilidad": 80, "descripcion": "Moho gris en frutos"},
        {"nombre": "Antracnosis", "probabilidad": 35, "descripcion": "Lesiones hundidas"},
    ],
    "recomendacionGeneral": "Aumentar la ventilación del túnel",
}


def test_yield_prediction_with_prefetched_forecast(fake_gemini, fake_weather, farm_records, context):
    fake_gemini.queue(gemini_text({"prediction": "Aumento del 10-15%.", "confidence": "High"}))
    flow_input = build_yield_prediction_input("L014", COORDS, farm_records, context)

    result = predict_yield(flow_input)

    assert result.confidence == Level.HIGH
    prompt = fake_gemini.prompt()
    assert "Batch: L014" in prompt
    assert "Forecast summary for the next 2 days" in prompt
    assert fake_gemini.payloads[0]["tools"][0]["functionDeclarations"][0]["name"] == "getWeatherForecast"


def test_yield_prediction_survives_weather_failure(fake_gemini, fake_weather, farm_records, context):
    fake_weather.error = requests.exceptions.ConnectionError("down")
    fake_gemini.queue(
        gemini_function_call(),
        gemini_text({"prediction": "Rendimiento estable.", "confidence": "Low"}),
    )
    flow_input = build_yield_prediction_input("L014", COORDS, farm_records, context)

    result = predict_yield(flow_input)

    assert result.confidence == Level.LOW
    assert WEATHER_UNAVAILABLE_NOTICE in fake_gemini.prompt()


def test_invalid_flow_input_fails_before_any_call(fake_gemini, fake_weather):
    with pytest.raises(FlowValidationError):
        predict_yield({"batch_id": "L014", "latitude": -31.97, "longitude": -60.92})
    assert fake_gemini.payloads == []
    assert fake_weather.calls == []


def test_recommendations_for_empty_farm(fake_gemini, fake_weather):
    fake_gemini.queue(gemini_function_call(), gemini_text(MONITORING))
    flow_input = build_application_recommendation_input(COORDS, FarmRecords())

    result = recommend_applications(flow_input)

    assert len(result.recommendations) >= 1
    assert result.recommendations[0].suggested_products == []
    assert "latitude -31.97" in fake_gemini.prompt()


def test_empty_recommendation_list_is_malformed(fake_gemini, fake_weather):
    fake_gemini.queue(gemini_text({"recommendations": []}))
    flow_input = build_application_recommendation_input(COORDS, FarmRecords())

    with pytest.raises(MalformedModelOutput):
        recommend_applications(flow_input)


def test_weather_alerts(fake_gemini, fake_weather, farm_records):
    fake_gemini.queue(
        gemini_function_call(),
        gemini_text({"alerts": [{
            "risk": "Riesgo de Botrytis por lluvia",
            "recommendation": "Aplicar fungicida preventivo",
            "urgency": "High",
        }]}),
    )

    result = generate_weather_alerts({
        "latitude": -31.97,
        "longitude": -60.92,
        "phenology_logs": "[]",
        "agronomist_logs": "[]",
    })

    assert result.alerts[0].urgency == Level.HIGH
    assert len(fake_weather.calls) == 1


def test_diagnose_plant(fake_gemini):
    fake_gemini.queue(gemini_text(DIAGNOSIS))

    result = diagnose_plant({"photo_data_uri": PNG_DATA_URI, "description": "Frutos con moho gris"})

    assert result.diagnostico_principal == "Botrytis"
    assert all(0 <= d.probabilidad <= 100 for d in result.posibles_diagnosticos)
    assert "tools" not in fake_gemini.payloads[0]
    assert "Frutos con moho gris" in fake_gemini.prompt()


def test_diagnosis_probability_out_of_range(fake_gemini):
    bad = dict(DIAGNOSIS, posiblesDiagnosticos=[
        {"nombre": "Botrytis", "probabilidad": 120, "descripcion": "Moho gris"},
    ])
    fake_gemini.queue(gemini_text(bad))

    with pytest.raises(MalformedModelOutput):
        diagnose_plant({"photo_data_uri": PNG_DATA_URI, "description": "Frutos con moho gris"})


def test_diagnosis_requires_description_and_image(fake_gemini):
    with pytest.raises(FlowValidationError):
        diagnose_plant({"photo_data_uri": PNG_DATA_URI, "description": "moho"})
    with pytest.raises(FlowValidationError):
        diagnose_plant({"photo_data_uri": "https://example.com/leaf.png", "description": "Frutos con moho gris"})
    assert fake_gemini.payloads == []


def test_agronomist_report(fake_gemini):
    fake_gemini.queue(gemini_text({
        "technical_analysis": "Manejo consistente.",
        "conclusions_and_recommendations": "Mantener el plan.",
    }))

    result = summarize_agronomist_report({"agronomist_logs": "[]", "phenology_logs": "[]"})

    assert result.technical_analysis == "Manejo consistente."
    assert "tools" not in fake_gemini.payloads[0]


def test_harvest_summary(fake_gemini, farm_records):
    fake_gemini.queue(gemini_text({
        "executive_summary": "Se cosecharon 240 kg.",
        "analysis_and_interpretation": "La mano de obra domina el costo.",
        "conclusions_and_recommendations": "Revisar el costo por kg del lote L015.",
    }))

    result = summarize_harvest_data(build_harvest_summary_input(farm_records, 2.5))

    assert result.executive_summary.startswith("Se cosecharon")
    assert '"total_kilos":240.0' in fake_gemini.prompt()


def test_harvest_summary_missing_section(fake_gemini, farm_records):
    fake_gemini.queue(gemini_text({"executive_summary": "Resumen"}))
    with pytest.raises(MalformedModelOutput):
        summarize_harvest_data(build_harvest_summary_input(farm_records, 2.5))


@pytest.mark.parametrize("probability", ["80", True, None])
def test_diagnosis_probability_must_be_a_number(fake_gemini, probability):
    bad = dict(DIAGNOSIS, posiblesDiagnosticos=[
        {"nombre": "Botrytis", "probabilidad": probability, "descripcion": "Moho gris"},
    ])
    fake_gemini.queue(gemini_text(bad))

    with pytest.raises(MalformedModelOutput):
        diagnose_plant({"photo_data_uri": PNG_DATA_URI, "description": "Frutos con moho gris"})


@pytest.mark.parametrize("field,value", [
    ("recomendacionGeneral", ""),
    ("posiblesDiagnosticos", [{"nombre": "Botrytis", "probabilidad": 80, "descripcion": ""}]),
])
def test_diagnosis_rejects_empty_texts(fake_gemini, field, value):
    fake_gemini.queue(gemini_text(dict(DIAGNOSIS, **{field: value})))

    with pytest.raises(MalformedModelOutput):
        diagnose_plant({"photo_data_uri": PNG_DATA_URI, "description": "Frutos con moho gris"})


def test_recommendation_products_must_be_strings(fake_gemini, fake_weather):
    answer = {"recommendations": [dict(MONITORING["recommendations"][0], suggested_products=[1])]}
    fake_gemini.queue(gemini_text(answer))
    flow_input = build_application_recommendation_input(COORDS, FarmRecords())

    with pytest.raises(MalformedModelOutput):
        recommend_applications(flow_input)
