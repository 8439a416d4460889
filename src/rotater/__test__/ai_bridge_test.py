import json

import pytest

from ..controllers import ai_bridge
from ..controllers.ai_bridge import (
    CHAT_FAILURE,
    CHAT_GREETING,
    INSIGHTS_FALLBACK_SUMMARY,
    AIBridge,
    build_system_instruction,
    clean_json,
    http_transport,
)
from ..errors import GeoResolutionError
from ..models import Prediction
from .conftest import FakeTransport, make_stats


# -------------------- clean_json --------------------
@pytest.mark.parametrize("raw, expected", [
    ("", "{}"),
    (None, "{}"),
    ('Sure! {"a": 1} Hope that helps.', '{"a": 1}'),
    ('```json\n{"a": {"b": 2}}\n```', '{"a": {"b": 2}}'),
    ("```json\n[1, 2]\n```", "[1, 2]"),
    ("```\n[]\n```", "[]"),
])
def test_clean_json(raw, expected):
    assert clean_json(raw) == expected


# -------------------- Geospatial --------------------
def test_resolve_geospatial_query(transport):
    result = AIBridge(transport).resolve_geospatial_query("Mumbai")

    assert transport.payloads("geospatial") == [{"query": "Mumbai"}]
    assert result.resolved_name == "Mumbai, India"
    assert result.lat == pytest.approx(19.076)
    assert result.bbox.lat_min == pytest.approx(18.89)
    assert result.bbox.lon_max == pytest.approx(72.98)


def test_resolve_point_has_no_bbox():
    transport = FakeTransport(replies={
        "geospatial": '{"lat": 48.8584, "lon": 2.2945, "resolvedName": "Eiffel Tower", "bbox": null}'
    })
    assert AIBridge(transport).resolve_geospatial_query("Eiffel Tower").bbox is None


@pytest.mark.parametrize("transport", [
    FakeTransport(replies={"geospatial": "I could not find that place."}),
    FakeTransport(replies={"geospatial": '{"resolvedName": "Nowhere"}'}),
    FakeTransport(fail=["geospatial"]),
])
def test_resolve_failure_raises(transport):
    with pytest.raises(GeoResolutionError, match="Failed to resolve location coordinates."):
        AIBridge(transport).resolve_geospatial_query("???")


# -------------------- Insights --------------------
def test_insights_sends_last_24_months(transport):
    stats = make_stats(2020, 2022)
    insights = AIBridge(transport).get_climate_insights(stats, 20.5, 78.9)

    payload = transport.payloads("insights")[0]
    assert payload["lat"] == 20.5
    assert payload["lon"] == 78.9
    assert len(payload["stats"]) == 24
    assert payload["stats"][0]["date"] == "2021-01"
    assert payload["stats"][-1]["date"] == "2022-12"

    assert insights.summary.startswith("Warming trend")
    assert [p.risk_level for p in insights.predictions] == ["Critical", "Low"]
    assert insights.predictions[0].predicted_temp == 34.5


@pytest.mark.parametrize("transport", [
    FakeTransport(fail=["insights"]),
    FakeTransport(replies={"insights": "The model is overloaded"}),
])
def test_insights_fallback(transport):
    insights = AIBridge(transport).get_climate_insights(make_stats(2024, 2024), 0, 0)

    assert insights.summary == INSIGHTS_FALLBACK_SUMMARY
    assert len(insights.predictions) == 1
    assert insights.predictions[0].month == "Next Month"
    assert insights.predictions[0].risk_level == "Medium"
    assert insights.predictions[0].description == "Prediction unavailable"


def test_insights_tolerate_null_fields():
    transport = FakeTransport(replies={"insights": json.dumps({
        "summary": "Hot spell ahead.",
        "predictions": [
            {"month": "July", "riskLevel": "High", "predictedTemp": None, "description": None},
        ],
    })})
    insights = AIBridge(transport).get_climate_insights(make_stats(2024, 2024), 0, 0)

    assert insights.summary == "Hot spell ahead."
    prediction = insights.predictions[0]
    assert prediction.risk_level == "High"
    assert prediction.predicted_temp == 0
    assert prediction.description == ""


def test_unknown_risk_level_becomes_medium():
    assert Prediction(month="May", risk_level="extreme").risk_level == "Medium"
    assert Prediction.model_validate({"month": "May", "riskLevel": "HIGH"}).risk_level == "High"


# -------------------- Speech --------------------
def test_generate_speech(transport):
    assert AIBridge(transport).generate_speech("Hot summer ahead") == "UklGRg=="
    assert transport.payloads("speech") == [{"text": "Hot summer ahead"}]


def test_generate_speech_failure_returns_none():
    assert AIBridge(FakeTransport(fail=["speech"])).generate_speech("hi") is None


# -------------------- Chat --------------------
def test_system_instruction_only_carries_major_events(calamities):
    predictions = [
        Prediction(month="July", risk_level="Critical", predicted_temp=35, description="Heatwave"),
        Prediction(month="August", risk_level="Low", predicted_temp=30, description="Calm"),
    ]
    text = build_system_instruction(12.5, 77.6, predictions, calamities)

    assert "Lat 12.5, Lon 77.6" in text
    assert json.dumps([calamities[0].to_json()]) in text
    assert "Heatwave" in text
    assert "Calm" not in text
    assert "Moderate" not in text


def test_chat_session_round_trip(transport, calamities):
    session = AIBridge(transport).create_chat_session(1.0, 2.0, [], calamities)
    assert session.messages[0].text == CHAT_GREETING

    reply = session.send_message("How was the rainfall?")

    assert reply.text == "Rainfall has been below average."
    assert [m.role for m in session.messages] == ["model", "user", "model"]

    payload = transport.payloads("chat")[0]
    assert payload["message"] == "How was the rainfall?"
    assert payload["systemInstruction"] == session.system_instruction
    assert payload["history"] == [{"role": "model", "text": CHAT_GREETING}]


def test_chat_ignores_blank_input(transport):
    session = AIBridge(transport).create_chat_session(0, 0, [], [])

    assert session.send_message("   ") is None
    assert len(session.messages) == 1
    assert transport.calls == []


def test_chat_failure_appends_interference_message():
    session = AIBridge(FakeTransport(fail=["chat"])).create_chat_session(0, 0, [], [])
    session.send_message("Any alerts?")

    assert session.messages[-1].role == "model"
    assert session.messages[-1].text == CHAT_FAILURE


# -------------------- HTTP transport --------------------
class FakeResponse:
    def __init__(self, body):
        self.body = body

    def raise_for_status(self):
        pass

    def json(self):
        return self.body


def test_http_transport_posts_task_and_payload(monkeypatch):
    sent = {}

    def fake_post(url, json, timeout):
        sent.update(url=url, json=json, timeout=timeout)
        return FakeResponse({"text": "ok"})

    monkeypatch.setattr(ai_bridge.requests, "post", fake_post)
    send = http_transport("https://rotater.example/", timeout=5)

    assert send("chat", {"message": "hi"}) == "ok"
    assert sent["url"] == "https://rotater.example/ai/proxy"
    assert sent["json"] == {"task": "chat", "payload": {"message": "hi"}}
    assert sent["timeout"] == 5


def test_default_transport_follows_config(monkeypatch):
    monkeypatch.setattr(ai_bridge.config, "AI_PROXY_URL", None)
    assert ai_bridge.default_transport() is ai_bridge.local_transport

    monkeypatch.setattr(ai_bridge.config, "AI_PROXY_URL", "http://proxy:8000")
    assert ai_bridge.default_transport() is not ai_bridge.local_transport
