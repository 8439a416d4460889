import io

import pandas as pd
from matplotlib.figure import Figure

TEMP_COLOR = "#ff9900"
RAIN_COLOR = "#3b82f6"
NDVI_COLOR = "#22c55e"
GRID_COLOR = "#334155"
PANEL_COLOR = "#0f172a"
AXIS_COLOR = "#94a3b8"


def stats_frame(stats):
    """ClimateStats rows as a DataFrame indexed by month."""
    if not stats:
        return pd.DataFrame(columns=["temperature", "rainfall", "ndvi", "anomaly"])
    df = pd.DataFrame([s.model_dump() for s in stats])
    df.index = pd.to_datetime(df.pop("date"), format="%Y-%m")
    return df


def generate_chart_data(stats, calamities):
    """
    Structured data for client-side charting (no rendering).
    Returns the monthly series plus the calamity event log.
    """
    return {
        "dates": [s.date for s in stats],
        "temperature": [s.temperature for s in stats],
        "rainfall": [s.rainfall for s in stats],
        "ndvi": [s.ndvi for s in stats],
        "anomaly": [s.anomaly for s in stats],
        "calamities": [c.to_json() for c in calamities],
    }


def _style(fig, ax, title):
    fig.patch.set_facecolor(PANEL_COLOR)
    ax.set_facecolor(PANEL_COLOR)
    ax.set_title(title, color="#22d3ee", loc="left")
    ax.grid(True, axis="y", linestyle="--", color=GRID_COLOR)
    ax.tick_params(colors=AXIS_COLOR)
    for spine in ax.spines.values():
        spine.set_color(GRID_COLOR)


def _to_png(fig):
    buf = io.BytesIO()
    fig.tight_layout()
    fig.savefig(buf, format="png", facecolor=fig.get_facecolor())
    return buf.getvalue()


def render_temperature_chart(stats):
    df = stats_frame(stats)
    fig = Figure(figsize=(8, 4))
    ax = fig.subplots()
    _style(fig, ax, "Temperature Analysis (°C)")
    if not df.empty:
        ax.plot(df.index, df["temperature"], color=TEMP_COLOR)
        ax.fill_between(df.index, df["temperature"], df["temperature"].min(), color=TEMP_COLOR, alpha=0.3)
    ax.set_ylabel("°C", color=AXIS_COLOR)
    return _to_png(fig)


def render_rainfall_ndvi_chart(stats):
    df = stats_frame(stats)
    fig = Figure(figsize=(8, 4))
    ax = fig.subplots()
    _style(fig, ax, "Rainfall & Vegetation (NDVI)")
    ndvi_ax = ax.twinx()
    ndvi_ax.tick_params(colors=NDVI_COLOR)
    if not df.empty:
        ax.plot(df.index, df["rainfall"], color=RAIN_COLOR, linewidth=2, label="Rainfall (mm)")
        ndvi_ax.plot(df.index, df["ndvi"], color=NDVI_COLOR, linewidth=2, label="NDVI")
    ax.set_ylabel("Rainfall (mm)", color=RAIN_COLOR)
    ndvi_ax.set_ylabel("NDVI", color=NDVI_COLOR)
    return _to_png(fig)


CHARTS = {
    "temperature": render_temperature_chart,
    "rainfall": render_rainfall_ndvi_chart,
}
