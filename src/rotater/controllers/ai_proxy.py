import base64
import json
import logging

from groq import Groq

from rotater import config
from rotater.errors import UnknownTaskError

logger = logging.getLogger(__name__)

_client = None


def get_client() -> Groq:
    """Provider client, created on first use so the key is only read when needed."""
    global _client
    if _client is None:
        _client = Groq(api_key=config.GROQ_API_KEY)
    return _client


def _complete(model: str, messages: list, json_mode: bool = False, **kwargs) -> str:
    params = dict(model=model, messages=messages, **kwargs)
    if json_mode:
        params["response_format"] = {"type": "json_object"}
    completion = get_client().chat.completions.create(**params)
    return completion.choices[0].message.content or ""


def geospatial(payload: dict) -> str:
    prompt = f"""
Resolve the following location query into geographic coordinates: "{payload.get('query', '')}".
If it is a city, town, or region, provide a bounding box that covers the area.
If it is a specific building or point, return null for the bounding box.
Respond with a single JSON object of the form:
{{"lat": number, "lon": number, "resolvedName": string,
  "bbox": {{"latMin": number, "latMax": number, "lonMin": number, "lonMax": number}} or null}}
"""
    return _complete(
        config.GROQ_GEO_MODEL,
        [{"role": "user", "content": prompt}],
        json_mode=True,
        temperature=0.1,
    )


def insights(payload: dict) -> str:
    prompt = f"""
Analyze the following climate data for location ({payload.get('lat')}, {payload.get('lon')}).
Data (monthly, most recent last): {json.dumps(payload.get('stats', []))}

Task:
1. Provide a concise summary of recent trends.
2. Predict potential risks for the next 12 months.
3. Identify signs of drought or flood risks.

Respond with a single JSON object of the form:
{{"summary": string,
  "predictions": [{{"month": string, "riskLevel": "Low" | "Medium" | "High" | "Critical",
                    "predictedTemp": number, "description": string}}]}}
"""
    return _complete(
        config.GROQ_INSIGHTS_MODEL,
        [{"role": "user", "content": prompt}],
        json_mode=True,
        temperature=0.4,
    )


def chat(payload: dict) -> str:
    messages = []
    if payload.get("systemInstruction"):
        messages.append({"role": "system", "content": payload["systemInstruction"]})
    for turn in payload.get("history") or []:
        role = "assistant" if turn.get("role") == "model" else "user"
        messages.append({"role": role, "content": turn.get("text", "")})
    messages.append({"role": "user", "content": payload.get("message", "")})
    return _complete(
        config.GROQ_CHAT_MODEL,
        messages,
        temperature=0.7,
        max_completion_tokens=800,
    )


def speech(payload: dict) -> str:
    """Returns base64-encoded WAV audio."""
    response = get_client().audio.speech.create(
        model=config.GROQ_TTS_MODEL,
        voice=config.GROQ_TTS_VOICE,
        input=f"Read this climate report clearly and professionally: {payload.get('text', '')}",
        response_format="wav",
    )
    return base64.b64encode(response.read()).decode("ascii")


TASKS = {
    "geospatial": geospatial,
    "insights": insights,
    "chat": chat,
    "speech": speech,
}


def run_task(task: str, payload: dict | None) -> str:
    handler = TASKS.get(task)
    if handler is None:
        raise UnknownTaskError(task)
    logger.info("AI proxy task=%s", task)
    return handler(payload or {})
