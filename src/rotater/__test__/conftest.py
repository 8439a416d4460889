import json
from datetime import date

import numpy as np
import pytest

from rotater.controllers.ai_bridge import AIBridge
from rotater.controllers.dashboard import Dashboard
from rotater.models import Calamity, ClimateStats


class FakeTransport:
    """Stands in for the AI proxy: canned replies per task, records every call."""

    def __init__(self, replies=None, fail=()):
        self.replies = replies or {}
        self.fail = set(fail)
        self.calls = []

    def __call__(self, task, payload):
        self.calls.append((task, payload))
        if task in self.fail:
            raise RuntimeError(f"{task} failed")
        reply = self.replies.get(task, "")
        return reply(payload) if callable(reply) else reply

    def payloads(self, task):
        return [p for t, p in self.calls if t == task]


INSIGHTS_REPLY = json.dumps({
    "summary": "Warming trend with erratic monsoon rainfall.",
    "predictions": [
        {"month": "July", "riskLevel": "critical", "predictedTemp": 34.5, "description": "Heatwave likely"},
        {"month": "August", "riskLevel": "Low", "predictedTemp": 30.1, "description": "Normal conditions"},
    ],
})

GEO_REPLY = """```json
{"lat": 19.076, "lon": 72.8777, "resolvedName": "Mumbai, India",
 "bbox": {"latMin": 18.89, "latMax": 19.27, "lonMin": 72.77, "lonMax": 72.98}}
```"""


# -------------------- Helper: synthetic monthly series --------------------
def make_stats(start_year, end_year, temperature=25.0):
    stats = []
    for year in range(start_year, end_year + 1):
        for month in range(1, 13):
            stats.append(ClimateStats(
                date=f"{year}-{month:02d}",
                temperature=temperature + month * 0.5,
                rainfall=month * 10.0,
                ndvi=0.5,
                anomaly=0.0,
            ))
    return stats


@pytest.fixture
def rng():
    return np.random.default_rng(42)


@pytest.fixture
def today():
    return date(2025, 6, 15)


@pytest.fixture
def transport():
    return FakeTransport(replies={
        "insights": INSIGHTS_REPLY,
        "geospatial": GEO_REPLY,
        "chat": "Rainfall has been below average.",
        "speech": "UklGRg==",
    })


@pytest.fixture
def calamities():
    return [
        Calamity(year=2018, type="Flood", intensity="Severe", month="07"),
        Calamity(year=2022, type="Heatwave", intensity="Moderate", month="07"),
    ]


@pytest.fixture
def dashboard(transport, calamities):
    fetch_calls = []

    def fetch_climate(lat, lon, start_year, end_year):
        fetch_calls.append((lat, lon, start_year, end_year))
        return make_stats(start_year, end_year)

    board = Dashboard(
        bridge=AIBridge(transport),
        fetch_climate=fetch_climate,
        fetch_calamities=lambda lat, lon: list(calamities),
    )
    board.fetch_calls = fetch_calls
    return board
