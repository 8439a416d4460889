from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException
from fastapi.responses import HTMLResponse, Response
from pydantic import BaseModel, Field

from rotater.controllers.alerts import major_alerts
from rotater.controllers.charts import CHARTS, generate_chart_data
from rotater.controllers.climate_data import csv_filename
from rotater.controllers.dashboard import Dashboard, DashboardState, DashboardStore
from rotater.controllers.map_view import render_map
from rotater.models import BoundingBox

router = APIRouter(
    prefix="/dashboard",
    tags=["Dashboard"],
)

store = DashboardStore()
_dashboard = None


def get_dashboard() -> Dashboard:
    global _dashboard
    if _dashboard is None:
        _dashboard = Dashboard()
    return _dashboard


def get_state(x_session_id: str = Header("default")) -> DashboardState:
    return store.get(x_session_id)


class EpochRequest(BaseModel):
    start_year: int
    start_month: int = Field(1, ge=1, le=12)
    end_year: int
    end_month: int = Field(12, ge=1, le=12)


class LocationRequest(BaseModel):
    lat: float = Field(..., ge=-90, le=90)
    lon: float = Field(..., ge=-180, le=180)
    bbox: Optional[BoundingBox] = None


class SearchRequest(BaseModel):
    query: str


class ChatRequest(BaseModel):
    message: str


@router.get("/", summary="Current dashboard state")
def dashboard_state(state: DashboardState = Depends(get_state)):
    return state.to_json()


@router.post("/sync", summary="Fetch data and request AI insights")
def sync(state: DashboardState = Depends(get_state), dashboard: Dashboard = Depends(get_dashboard)):
    return dashboard.load_data(state).to_json()


@router.post("/epoch", summary="Set the analysis epoch")
def set_epoch(request: EpochRequest, state: DashboardState = Depends(get_state),
              dashboard: Dashboard = Depends(get_dashboard)):
    if (request.start_year, request.start_month) > (request.end_year, request.end_month):
        raise HTTPException(status_code=422, detail="Epoch start must not be after its end")
    dashboard.set_epoch(state, request.start_year, request.start_month, request.end_year, request.end_month)
    return state.to_json()


@router.post("/location", summary="Select a location and reload")
def select_location(request: LocationRequest, state: DashboardState = Depends(get_state),
                    dashboard: Dashboard = Depends(get_dashboard)):
    return dashboard.select_location(state, request.lat, request.lon, request.bbox).to_json()


@router.post("/search", summary="Resolve a place name, select it and reload")
def search(request: SearchRequest, state: DashboardState = Depends(get_state),
           dashboard: Dashboard = Depends(get_dashboard)):
    return dashboard.search(state, request.query).to_json()


@router.post("/notifications/toggle", summary="Open or close the notification panel")
def toggle_notifications(state: DashboardState = Depends(get_state),
                         dashboard: Dashboard = Depends(get_dashboard)):
    dashboard.toggle_notifications(state)
    return {
        "showNotifications": state.show_notifications,
        "unreadCount": state.unread_count,
        "notifications": [n.to_json() for n in state.notifications],
    }


@router.post("/toast/dismiss", summary="Dismiss the early-warning toast")
def dismiss_toast(state: DashboardState = Depends(get_state), dashboard: Dashboard = Depends(get_dashboard)):
    dashboard.dismiss_toast(state)
    return {"activeToast": None}


@router.get("/alerts", summary="Major alerts panel")
def alerts(state: DashboardState = Depends(get_state)):
    return major_alerts(state.calamities, state.predictions)


@router.get("/map", summary="Map of the selected location", response_class=HTMLResponse)
def map_view(state: DashboardState = Depends(get_state)):
    return HTMLResponse(render_map(state.lat, state.lon, state.bbox))


@router.get("/charts/data", summary="Chart series as JSON")
def chart_data(state: DashboardState = Depends(get_state)):
    return generate_chart_data(state.data, state.calamities)


@router.get("/charts/{name}.png", summary="Rendered chart")
def chart_png(name: str, state: DashboardState = Depends(get_state)):
    renderer = CHARTS.get(name)
    if renderer is None:
        raise HTTPException(status_code=404, detail=f"Unknown chart '{name}'")
    return Response(content=renderer(state.data), media_type="image/png")


@router.get("/export.csv", summary="Download the current series as CSV")
def export_csv(state: DashboardState = Depends(get_state), dashboard: Dashboard = Depends(get_dashboard)):
    content = dashboard.export_csv(state)
    if not content:
        raise HTTPException(status_code=404, detail="No data loaded")
    return Response(
        content=content,
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{csv_filename(state.lat, state.lon)}"'},
    )


@router.get("/chat", summary="Chat transcript")
def chat_transcript(state: DashboardState = Depends(get_state), dashboard: Dashboard = Depends(get_dashboard)):
    return [m.to_json() for m in dashboard.chat_session(state).messages]


@router.post("/chat", summary="Send a message to the climate assistant")
def chat(request: ChatRequest, state: DashboardState = Depends(get_state),
         dashboard: Dashboard = Depends(get_dashboard)):
    session = dashboard.chat_session(state)
    session.send_message(request.message)
    return [m.to_json() for m in session.messages]


@router.post("/chat/{index}/speech", summary="Speak a chat message")
def speak(index: int, state: DashboardState = Depends(get_state), dashboard: Dashboard = Depends(get_dashboard)):
    try:
        audio = dashboard.speak(state, index)
    except IndexError:
        raise HTTPException(status_code=404, detail=f"No chat message at index {index}")
    if audio is None:
        raise HTTPException(status_code=502, detail="Speech synthesis unavailable")
    return {"audio": audio, "mimeType": "audio/wav"}
