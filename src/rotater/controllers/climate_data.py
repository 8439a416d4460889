import logging
import math
from datetime import date

import numpy as np
import pandas as pd

from rotater.errors import ClimateDataError
from rotater.models import Calamity, ClimateStats
from rotater.utils.power_api import fetch_power_api

logger = logging.getLogger(__name__)

PARAMETERS = ['T2M', 'PRECTOTCORR']  # temperature, corrected precipitation
MISSING_VALUES = [-999.0, -999.9]
ANNUAL_MONTH = "13"  # POWER monthly responses carry a yearly roll-up as month 13

CALAMITY_YEARS = [2018, 2020, 2022, 2023]

CSV_COLUMNS = {
    'date': 'Date',
    'temperature': 'Temperature (Celsius)',
    'rainfall': 'Rainfall (mm)',
    'ndvi': 'Vegetation Index (NDVI)',
    'anomaly': 'Anomaly',
}


def _rng(rng):
    return rng if rng is not None else np.random.default_rng()


def simulated_ndvi(lat, month):
    """Seasonal NDVI baseline; POWER has no vegetation index on this endpoint."""
    ndvi = 0.3
    if 5 <= month <= 9:
        ndvi = 0.7  # northern summer
    if lat < 0:
        ndvi = 0.7 if (month >= 11 or month <= 3) else 0.3
    return ndvi


def fetch_climate_data(lat, lon, start_year, end_year, rng=None, today=None):
    """
    Fetch monthly temperature/rainfall for a point from NASA POWER.

    The monthly API lags behind the calendar, so the request is clamped to the
    previous year and any missing tail is filled with simulated months. Any
    failure falls back to a fully simulated series.

    Args:
        lat (float): latitude
        lon (float): longitude
        start_year (int): first year requested
        end_year (int): last year requested
        rng (np.random.Generator, optional): randomness for NDVI/anomaly simulation
        today (date, optional): reference date, defaults to today

    Returns:
        list[ClimateStats]: one entry per month, sorted by date
    """
    rng = _rng(rng)
    today = today or date.today()
    current_year = today.year
    api_end_year = current_year - 1 if end_year >= current_year else end_year

    if start_year > api_end_year:
        logger.warning("Request range beyond NASA data availability, using simulation.")
        return generate_mock_data(start_year, end_year, rng=rng, today=today)

    try:
        raw = fetch_power_api(
            start=start_year,
            end=api_end_year,
            latitude=lat,
            longitude=lon,
            parameters=PARAMETERS,
        )
        stats = parse_power_monthly(raw, lat, rng)

        if end_year > api_end_year:
            stats.extend(generate_mock_data(api_end_year + 1, end_year, rng=rng, today=today))

        return stats
    except Exception as e:
        logger.error("Failed to fetch NASA data: %s", e)
        return generate_mock_data(start_year, end_year, rng=rng, today=today)


def parse_power_monthly(raw, lat, rng):
    """Turn a POWER monthly response into ClimateStats rows."""
    properties = raw.get('properties') if isinstance(raw, dict) else None
    param_block = properties.get('parameter') if isinstance(properties, dict) else None
    if not isinstance(param_block, dict) or not all(
        isinstance(param_block.get(p), dict) for p in PARAMETERS
    ):
        raise ClimateDataError("Invalid NASA API response structure")

    df = pd.DataFrame({
        'temperature': pd.Series(param_block['T2M'], dtype=float),
        'rainfall': pd.Series(param_block['PRECTOTCORR'], dtype=float),
    }).sort_index()

    df = df[df.index.str[4:6] != ANNUAL_MONTH]
    df = df.replace(MISSING_VALUES, np.nan).dropna(how='any')

    stats = []
    for key, row in df.iterrows():
        year, month = int(key[:4]), int(key[4:6])
        ndvi = simulated_ndvi(lat, month) + rng.random() * 0.1
        anomaly = (rng.random() * 2 - 1) * 1.5
        stats.append(ClimateStats(
            date=f"{year}-{month:02d}",
            temperature=float(row['temperature']),
            rainfall=float(row['rainfall']),
            ndvi=round(ndvi, 2),
            anomaly=round(anomaly, 2),
        ))
    return stats


def generate_mock_data(start, end, rng=None, today=None):
    """Synthetic monthly series; never runs past the current month."""
    rng = _rng(rng)
    today = today or date.today()
    stats = []

    for y in range(start, end + 1):
        if y > today.year:
            continue
        for m in range(1, 13):
            if y == today.year and m > today.month:
                continue
            stats.append(ClimateStats(
                date=f"{y}-{m:02d}",
                temperature=15 + math.sin(m / 2) * 10 + (y - start) * 0.1,
                rainfall=rng.random() * 100,
                ndvi=0.4 + rng.random() * 0.4,
                anomaly=(rng.random() - 0.5) * 2,
            ))
    return stats


def fetch_calamity_history(lat, lon, rng=None):
    # Mocked: a real source would be NOAA or EM-DAT
    rng = _rng(rng)
    calamities = []
    for year in CALAMITY_YEARS:
        if rng.random() > 0.5:
            calamities.append(Calamity(
                year=year,
                type='Flood' if rng.random() > 0.5 else 'Heatwave',
                intensity='Severe' if rng.random() > 0.5 else 'Moderate',
                month='07',
            ))
    return calamities


def filter_stats_by_epoch(stats, start_year, start_month, end_year, end_month):
    """Keep months inside the inclusive [start, end] epoch."""
    start_total = start_year * 100 + int(start_month)
    end_total = end_year * 100 + int(end_month)
    return [s for s in stats if start_total <= s.year * 100 + s.month <= end_total]


def stats_to_csv(stats):
    if not stats:
        return ""
    frame = pd.DataFrame([s.model_dump() for s in stats], columns=list(CSV_COLUMNS))
    frame = frame.rename(columns=CSV_COLUMNS)
    return frame.to_csv(index=False, float_format="%.2f", lineterminator="\n").rstrip("\n")


def csv_filename(lat, lon):
    return f"ROTATER_Climate_Analysis_{lat:.2f}_{lon:.2f}.csv"
