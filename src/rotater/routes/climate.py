from datetime import date

from fastapi import APIRouter, HTTPException, Query
from fastapi.responses import Response

from rotater.config import DEFAULT_EPOCH_YEARS
from rotater.controllers.climate_data import (
    csv_filename,
    fetch_calamity_history,
    fetch_climate_data,
    filter_stats_by_epoch,
    stats_to_csv,
)

router = APIRouter(
    prefix="/climate",
    tags=["Climate"],
)


def _check_range(start_year, end_year):
    if start_year > end_year:
        raise HTTPException(status_code=422, detail="start_year must not be after end_year")


@router.get("/series", summary="Monthly temperature/rainfall series")
def climate_series(
    lat: float = Query(..., ge=-90, le=90),
    lon: float = Query(..., ge=-180, le=180),
    start_year: int | None = None,
    end_year: int | None = None,
):
    today = date.today()
    start_year = start_year if start_year is not None else today.year - DEFAULT_EPOCH_YEARS
    end_year = end_year if end_year is not None else today.year
    _check_range(start_year, end_year)
    stats = fetch_climate_data(lat, lon, start_year, end_year)
    return [s.to_json() for s in stats]


@router.get("/calamities", summary="Calamity history near a point")
def calamities(
    lat: float = Query(..., ge=-90, le=90),
    lon: float = Query(..., ge=-180, le=180),
):
    return [c.to_json() for c in fetch_calamity_history(lat, lon)]


@router.get("/export.csv", summary="Export the filtered series as CSV")
def export_csv(
    lat: float = Query(..., ge=-90, le=90),
    lon: float = Query(..., ge=-180, le=180),
    start_year: int = Query(...),
    end_year: int = Query(...),
    start_month: int = Query(1, ge=1, le=12),
    end_month: int = Query(12, ge=1, le=12),
):
    _check_range(start_year, end_year)
    stats = fetch_climate_data(lat, lon, start_year, end_year)
    stats = filter_stats_by_epoch(stats, start_year, start_month, end_year, end_month)
    content = stats_to_csv(stats)
    if not content:
        raise HTTPException(status_code=404, detail="No climate data in the selected epoch")
    return Response(
        content=content,
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{csv_filename(lat, lon)}"'},
    )
