import logging
from typing import Any, Dict, List

from fastapi import APIRouter, HTTPException
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from rotater.controllers.ai_bridge import AIBridge
from rotater.controllers.ai_proxy import run_task
from rotater.errors import GeoResolutionError, UnknownTaskError
from rotater.models import ClimateStats

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/ai",
    tags=["AI"]
)


class ProxyRequest(BaseModel):
    task: str = ""
    payload: Dict[str, Any] = {}


class GeocodeRequest(BaseModel):
    query: str


class InsightsRequest(BaseModel):
    lat: float
    lon: float
    stats: List[ClimateStats]


class SpeechRequest(BaseModel):
    text: str


def get_bridge() -> AIBridge:
    return AIBridge()


@router.post("/proxy", summary="Forward a task to the hosted model")
def proxy_endpoint(request: ProxyRequest):
    try:
        return {"text": run_task(request.task, request.payload)}
    except UnknownTaskError:
        return JSONResponse(status_code=400, content={"error": "Unknown task"})
    except Exception as e:
        logger.error("AI proxy error (task=%s): %s", request.task, e)
        return JSONResponse(status_code=500, content={"error": str(e)})


@router.post("/geocode", summary="Resolve a place name to coordinates")
def geocode_endpoint(request: GeocodeRequest):
    try:
        return get_bridge().resolve_geospatial_query(request.query).to_json()
    except GeoResolutionError as e:
        raise HTTPException(status_code=502, detail=str(e))


@router.post("/insights", summary="Summary and risk predictions for a series")
def insights_endpoint(request: InsightsRequest):
    return get_bridge().get_climate_insights(request.stats, request.lat, request.lon).to_json()


@router.post("/speech", summary="Synthesize speech for a text")
def speech_endpoint(request: SpeechRequest):
    audio = get_bridge().generate_speech(request.text)
    if audio is None:
        raise HTTPException(status_code=502, detail="Speech synthesis unavailable")
    return {"audio": audio, "mimeType": "audio/wav"}
