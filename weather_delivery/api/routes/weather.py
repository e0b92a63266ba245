from __future__ import annotations

from collections.abc import Callable
from datetime import datetime
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status

from weather_delivery.api.deps import get_clock, get_settings, get_weather_provider, get_window
from weather_delivery.core.config import Settings
from weather_delivery.repositories.window import RetentionWindow
from weather_delivery.schemas.weather import ForecastPointRead, WeatherRead
from weather_delivery.services.weather import WeatherProvider

router = APIRouter(prefix="/weather")

Clock = Annotated[Callable[[], datetime], Depends(get_clock)]


@router.get("/current", response_model=WeatherRead)
def current_weather(
    provider: Annotated[WeatherProvider, Depends(get_weather_provider)],
    settings: Annotated[Settings, Depends(get_settings)],
    clock: Clock,
) -> WeatherRead:
    try:
        observation, _ = provider.current(clock().astimezone(settings.tzinfo))
    except Exception as e:  # noqa: BLE001
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Failed to fetch weather data",
        ) from e
    return WeatherRead.from_record(observation)


@router.get("/history", response_model=list[WeatherRead])
def weather_history(
    window: Annotated[RetentionWindow, Depends(get_window)],
    hours: Annotated[int, Query(ge=1, le=24 * 90)] = 24,
) -> list[WeatherRead]:
    return [WeatherRead.from_record(r) for r in window.weather_history(limit=hours)]


@router.get("/forecast", response_model=list[ForecastPointRead])
def weather_forecast(
    provider: Annotated[WeatherProvider, Depends(get_weather_provider)],
    settings: Annotated[Settings, Depends(get_settings)],
    clock: Clock,
) -> list[ForecastPointRead]:
    try:
        points = provider.forecast(clock().astimezone(settings.tzinfo))
    except Exception as e:  # noqa: BLE001
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Failed to fetch forecast data",
        ) from e
    return [ForecastPointRead.from_record(p) for p in points]
