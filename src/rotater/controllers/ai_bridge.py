"""
Client side of the AI proxy.

Shapes task-specific requests for the proxy and parses what the model sends
back. The transport is any callable ``(task, payload) -> str``: by default the
proxy is called in-process, or over HTTP when ``AI_PROXY_URL`` is configured.
"""

import json
import logging
import re
from typing import Callable, List, Optional

import requests

from rotater import config
from rotater.controllers import ai_proxy
from rotater.errors import GeoResolutionError
from rotater.models import (
    Calamity,
    ChatMessage,
    ClimateInsights,
    ClimateStats,
    Prediction,
    ResolvedLocation,
)

logger = logging.getLogger(__name__)

Transport = Callable[[str, dict], str]

INSIGHTS_FALLBACK_SUMMARY = "AI Analysis unavailable. Displaying raw data only."
CHAT_GREETING = (
    "Interface connected. I am monitoring the climate vectors for this sector. "
    "How can I assist with your analysis?"
)
CHAT_FAILURE = "Signal interference detected. Encryption failure or session timeout."

_FENCE_START = re.compile(r"^```json\s*")
_FENCE_BARE = re.compile(r"^```\s*")
_FENCE_END = re.compile(r"\s*```$")


def clean_json(text: Optional[str]) -> str:
    """Cut the JSON object out of a model reply that may carry prose or code fences."""
    if not text:
        return "{}"
    first = text.find("{")
    last = text.rfind("}")
    if first != -1 and last != -1 and last > first:
        return text[first:last + 1]
    text = _FENCE_START.sub("", text)
    text = _FENCE_BARE.sub("", text)
    return _FENCE_END.sub("", text)


def local_transport(task: str, payload: dict) -> str:
    return ai_proxy.run_task(task, payload)


def http_transport(base_url: str, timeout: float = config.AI_PROXY_TIMEOUT) -> Transport:
    url = f"{base_url.rstrip('/')}/ai/proxy"

    def send(task: str, payload: dict) -> str:
        response = requests.post(url, json={"task": task, "payload": payload}, timeout=timeout)
        response.raise_for_status()
        return response.json()["text"]

    return send


def default_transport() -> Transport:
    if config.AI_PROXY_URL:
        return http_transport(config.AI_PROXY_URL)
    return local_transport


def fallback_insights() -> ClimateInsights:
    return ClimateInsights(
        summary=INSIGHTS_FALLBACK_SUMMARY,
        predictions=[
            Prediction(
                month="Next Month",
                risk_level="Medium",
                predicted_temp=0,
                description="Prediction unavailable",
            )
        ],
    )


def build_system_instruction(lat, lon, predictions: List[Prediction], calamities: List[Calamity]) -> str:
    severe = [c.to_json() for c in calamities if c.is_severe]
    alerts = [p.to_json() for p in predictions if p.is_alert]
    return f"""
You are ROTATER's advanced climate AI assistant.
CURRENT CONTEXT:
- Location: Lat {lat}, Lon {lon}
- Major Historical Events: {json.dumps(severe)}
- AI Projected Risks: {json.dumps(alerts)}

Interpret the data on the dashboard for the user. When users ask for "alerts" or "major events",
refer to the historical and projected data provided in your context.
Be scientific, professional, and helpful.
"""


class ChatSession:
    """A conversation pinned to one dashboard context."""

    def __init__(self, transport: Transport, system_instruction: str,
                 messages: Optional[List[ChatMessage]] = None):
        self.transport = transport
        self.system_instruction = system_instruction
        self.messages: List[ChatMessage] = list(messages or [ChatMessage(role="model", text=CHAT_GREETING)])

    def send_message(self, text: str) -> Optional[ChatMessage]:
        if not text or not text.strip():
            return None

        history = [m.to_json() for m in self.messages]
        self.messages.append(ChatMessage(role="user", text=text))
        try:
            reply = self.transport("chat", {
                "message": text,
                "systemInstruction": self.system_instruction,
                "history": history,
            })
        except Exception as e:
            logger.error("Chat error: %s", e)
            reply = CHAT_FAILURE

        message = ChatMessage(role="model", text=reply or "")
        self.messages.append(message)
        return message


class AIBridge:
    def __init__(self, transport: Optional[Transport] = None):
        self.transport = transport or default_transport()

    def resolve_geospatial_query(self, query: str) -> ResolvedLocation:
        try:
            text = self.transport("geospatial", {"query": query})
            return ResolvedLocation.model_validate(json.loads(clean_json(text)))
        except Exception as e:
            logger.error("Geospatial Resolution Error: %s", e)
            raise GeoResolutionError("Failed to resolve location coordinates.") from e

    def get_climate_insights(self, stats: List[ClimateStats], lat: float, lon: float) -> ClimateInsights:
        recent = stats[-config.INSIGHT_WINDOW_MONTHS:]
        try:
            text = self.transport("insights", {
                "lat": lat,
                "lon": lon,
                "stats": [s.to_json() for s in recent],
            })
            return ClimateInsights.model_validate(json.loads(clean_json(text)))
        except Exception as e:
            logger.error("AI insights error: %s", e)
            return fallback_insights()

    def generate_speech(self, text: str) -> Optional[str]:
        try:
            return self.transport("speech", {"text": text}) or None
        except Exception as e:
            logger.error("TTS Error: %s", e)
            return None

    def create_chat_session(self, lat, lon, predictions, calamities, messages=None) -> ChatSession:
        """New context for the model; an existing transcript can be carried over."""
        return ChatSession(
            self.transport, build_system_instruction(lat, lon, predictions, calamities), messages
        )
