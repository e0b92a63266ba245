from __future__ import annotations

from collections.abc import Callable
from datetime import datetime
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status

from weather_delivery.api.deps import get_clock, get_collection_service, get_window
from weather_delivery.repositories.window import RetentionWindow
from weather_delivery.schemas.correlation import DashboardSummary, ReportRead, report_to_schema
from weather_delivery.schemas.weather import CollectionResponse, WeatherRead
from weather_delivery.services.collection import CollectionService

router = APIRouter()


@router.get("/correlations", response_model=ReportRead)
def correlations(
    service: Annotated[CollectionService, Depends(get_collection_service)],
) -> ReportRead:
    return report_to_schema(service.latest_report())


@router.get("/dashboard/summary", response_model=DashboardSummary)
def dashboard_summary(
    service: Annotated[CollectionService, Depends(get_collection_service)],
    window: Annotated[RetentionWindow, Depends(get_window)],
    clock: Annotated[Callable[[], datetime], Depends(get_clock)],
) -> DashboardSummary:
    weather, deliveries = window.snapshot()
    average_temperature = (
        sum(w.temperature for w in weather) / len(weather) if weather else 0.0
    )
    return DashboardSummary(
        total_deliveries=len(deliveries),
        average_temperature=average_temperature,
        correlations=report_to_schema(service.latest_report()),
        last_updated=clock(),
    )


@router.post("/collect", response_model=CollectionResponse)
def collect(
    service: Annotated[CollectionService, Depends(get_collection_service)],
    force: bool = False,
) -> CollectionResponse:
    try:
        result = service.trigger(force=force)
    except Exception as e:  # noqa: BLE001
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Data collection failed",
        ) from e
    return CollectionResponse(
        skipped=result.skipped,
        retry_after_seconds=result.retry_after_seconds,
        source=result.source,
        weather=WeatherRead.from_record(result.weather) if result.weather else None,
        deliveries_generated=result.deliveries_generated,
        weather_points=result.weather_points,
        delivery_points=result.delivery_points,
    )
