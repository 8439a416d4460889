import logging
import threading
import time
import uuid
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Callable, Dict, List, Optional

from rotater import config
from rotater.controllers import climate_data
from rotater.controllers.ai_bridge import AIBridge, ChatSession
from rotater.errors import GeoResolutionError
from rotater.models import (
    BoundingBox,
    Calamity,
    ClimateInsights,
    ClimateStats,
    Notification,
    Prediction,
)

logger = logging.getLogger(__name__)

STATUS_READY = "System Ready"
STATUS_SYNCING = "Syncing with Orbital Array..."
STATUS_ANALYZING = "Requesting AI insights..."
STATUS_COMPLETE = "Analysis Complete"
ERROR_SYNC = "Critical Link Failure: Unable to synchronize with satellite data arrays."
ERROR_RESOLVE = "Address resolution failed."


def _default_epoch():
    today = date.today()
    return today.year - config.DEFAULT_EPOCH_YEARS, 1, today.year, today.month


@dataclass
class DashboardState:
    lat: float = config.DEFAULT_LAT
    lon: float = config.DEFAULT_LON
    bbox: Optional[BoundingBox] = None
    start_year: int = 0
    start_month: int = 1
    end_year: int = 0
    end_month: int = 1
    data: List[ClimateStats] = field(default_factory=list)
    calamities: List[Calamity] = field(default_factory=list)
    prediction: Optional[ClimateInsights] = None
    notifications: List[Notification] = field(default_factory=list)
    unread_count: int = 0
    show_notifications: bool = False
    active_toast: Optional[Notification] = None
    toast_expires_at: float = 0.0
    status_message: str = STATUS_READY
    error_message: Optional[str] = None
    loading: bool = False
    chat: Optional[ChatSession] = None
    lock: threading.RLock = field(default_factory=threading.RLock, repr=False)

    def __post_init__(self):
        if not self.start_year:
            self.start_year, self.start_month, self.end_year, self.end_month = _default_epoch()

    @property
    def predictions(self) -> List[Prediction]:
        return self.prediction.predictions if self.prediction else []

    @property
    def major_events_count(self) -> int:
        severe = sum(1 for c in self.calamities if c.is_severe)
        return severe + sum(1 for p in self.predictions if p.is_alert)

    def current_toast(self, now: Optional[float] = None) -> Optional[Notification]:
        now = time.time() if now is None else now
        if self.active_toast is not None and now >= self.toast_expires_at:
            self.active_toast = None
        return self.active_toast

    def to_json(self) -> dict:
        toast = self.current_toast()
        return {
            "location": {
                "lat": self.lat,
                "lon": self.lon,
                "bbox": self.bbox.to_json() if self.bbox else None,
            },
            "epoch": {
                "startYear": self.start_year,
                "startMonth": f"{self.start_month:02d}",
                "endYear": self.end_year,
                "endMonth": f"{self.end_month:02d}",
            },
            "data": [s.to_json() for s in self.data],
            "calamities": [c.to_json() for c in self.calamities],
            "prediction": self.prediction.to_json() if self.prediction else None,
            "notifications": [n.to_json() for n in self.notifications],
            "unreadCount": self.unread_count,
            "showNotifications": self.show_notifications,
            "activeToast": toast.to_json() if toast else None,
            "majorEventsCount": self.major_events_count,
            "statusMessage": self.status_message,
            "errorMessage": self.error_message,
            "loading": self.loading,
        }


def derive_notifications(predictions: List[Prediction], now: Optional[datetime] = None) -> List[Notification]:
    """One notification per High/Critical prediction."""
    now = now or datetime.now()
    return [
        Notification(
            id=uuid.uuid4().hex,
            title=f"CRITICAL RISK: {p.month}",
            description=p.description,
            severity=p.risk_level,
            timestamp=now.strftime("%H:%M:%S"),
        )
        for p in predictions
        if p.is_alert
    ]


class Dashboard:
    """
    Orchestrates fetch -> filter -> AI insights -> notifications for a session.

    Fetchers are injectable so the container can run against fakes.
    """

    def __init__(
        self,
        bridge: Optional[AIBridge] = None,
        fetch_climate: Callable = climate_data.fetch_climate_data,
        fetch_calamities: Callable = climate_data.fetch_calamity_history,
    ):
        self.bridge = bridge or AIBridge()
        self.fetch_climate = fetch_climate
        self.fetch_calamities = fetch_calamities

    def load_data(self, state: DashboardState) -> DashboardState:
        with state.lock:
            if state.loading:
                return state
            state.loading = True
            state.error_message = None

        try:
            state.status_message = STATUS_SYNCING
            stats = self.fetch_climate(state.lat, state.lon, state.start_year, state.end_year)
            events = self.fetch_calamities(state.lat, state.lon)

            filtered = climate_data.filter_stats_by_epoch(
                stats, state.start_year, state.start_month, state.end_year, state.end_month
            )
            state.data = filtered
            state.calamities = events

            state.status_message = STATUS_ANALYZING
            insights = self.bridge.get_climate_insights(filtered, state.lat, state.lon)
            state.prediction = insights

            self._raise_notifications(state, derive_notifications(insights.predictions))
            state.status_message = STATUS_COMPLETE
        except Exception:
            logger.exception("Dashboard sync failed for (%s, %s)", state.lat, state.lon)
            state.error_message = ERROR_SYNC
        finally:
            state.loading = False

        transcript = state.chat.messages if state.chat else None
        state.chat = self.bridge.create_chat_session(
            state.lat, state.lon, state.predictions, state.calamities, transcript
        )
        return state

    def _raise_notifications(self, state: DashboardState, new: List[Notification]):
        if not new:
            return
        logger.warning("%d critical risk(s) projected for (%s, %s)", len(new), state.lat, state.lon)
        state.notifications = new + state.notifications
        state.unread_count += len(new)
        state.active_toast = new[0]
        state.toast_expires_at = time.time() + config.TOAST_SECONDS

    def select_location(self, state: DashboardState, lat: float, lon: float,
                        bbox: Optional[BoundingBox] = None) -> DashboardState:
        state.lat = lat
        state.lon = lon
        state.bbox = bbox
        return self.load_data(state)

    def search(self, state: DashboardState, query: str) -> DashboardState:
        if not query or not query.strip():
            return state
        try:
            result = self.bridge.resolve_geospatial_query(query)
        except GeoResolutionError:
            state.error_message = ERROR_RESOLVE
            return state
        return self.select_location(state, result.lat, result.lon, result.bbox)

    def set_epoch(self, state: DashboardState, start_year: int, start_month: int,
                  end_year: int, end_month: int) -> DashboardState:
        for month in (start_month, end_month):
            if not 1 <= int(month) <= 12:
                raise ValueError(f"Month out of range: {month}")
        state.start_year = int(start_year)
        state.start_month = int(start_month)
        state.end_year = int(end_year)
        state.end_month = int(end_month)
        return state

    def toggle_notifications(self, state: DashboardState) -> DashboardState:
        state.show_notifications = not state.show_notifications
        if state.show_notifications:
            state.unread_count = 0
        return state

    def dismiss_toast(self, state: DashboardState) -> DashboardState:
        state.active_toast = None
        return state

    def chat_session(self, state: DashboardState) -> ChatSession:
        if state.chat is None:
            state.chat = self.bridge.create_chat_session(
                state.lat, state.lon, state.predictions, state.calamities
            )
        return state.chat

    def speak(self, state: DashboardState, index: int) -> Optional[str]:
        messages = self.chat_session(state).messages
        if not 0 <= index < len(messages) or messages[index].role != "model":
            raise IndexError(index)
        return self.bridge.generate_speech(messages[index].text)

    def export_csv(self, state: DashboardState) -> str:
        return climate_data.stats_to_csv(state.data)


class DashboardStore:
    """
    In-memory dashboard sessions with a sliding TTL (expires ttl_seconds after
    last touch). At most max_sessions are held; when full, the session closest
    to expiry makes room for a new one. Thread-safe.
    """

    def __init__(self, ttl_seconds: int = config.SESSION_TTL_SECONDS,
                 max_sessions: int = config.SESSION_MAX):
        self.ttl_seconds = ttl_seconds
        self.max_sessions = max_sessions
        self._lock = threading.Lock()
        # session_id -> {"state": DashboardState, "expires_at": float}
        self._items: Dict[str, dict] = {}

    def get(self, session_id: str) -> DashboardState:
        now = time.time()
        with self._lock:
            self._evict_unlocked(now)
            item = self._items.get(session_id)
            if item is None:
                if len(self._items) >= self.max_sessions:
                    oldest = min(self._items, key=lambda k: self._items[k]["expires_at"])
                    logger.info("Session store full, dropping %s", oldest)
                    del self._items[oldest]
                item = {"state": DashboardState()}
                self._items[session_id] = item
            item["expires_at"] = now + self.ttl_seconds
            return item["state"]

    def drop(self, session_id: str) -> None:
        with self._lock:
            self._items.pop(session_id, None)

    def __len__(self):
        with self._lock:
            return len(self._items)

    def _evict_unlocked(self, now: float) -> None:
        expired = [k for k, v in self._items.items() if v["expires_at"] <= now]
        for k in expired:
            del self._items[k]
