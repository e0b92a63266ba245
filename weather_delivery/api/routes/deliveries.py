from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timedelta
from typing import Annotated

from fastapi import APIRouter, Depends, Query

from weather_delivery.api.deps import get_clock, get_settings, get_window
from weather_delivery.core.config import Settings
from weather_delivery.repositories.window import RetentionWindow
from weather_delivery.schemas.deliveries import DeliveryRead

router = APIRouter(prefix="/deliveries")


@router.get("/current", response_model=list[DeliveryRead])
def current_deliveries(
    window: Annotated[RetentionWindow, Depends(get_window)],
    settings: Annotated[Settings, Depends(get_settings)],
    clock: Annotated[Callable[[], datetime], Depends(get_clock)],
) -> list[DeliveryRead]:
    rows = window.deliveries_in_hour(now=clock(), tz=settings.tzinfo)
    return [DeliveryRead.from_record(r) for r in rows]


@router.get("/history", response_model=list[DeliveryRead])
def delivery_history(
    window: Annotated[RetentionWindow, Depends(get_window)],
    clock: Annotated[Callable[[], datetime], Depends(get_clock)],
    hours: Annotated[int, Query(ge=1, le=24 * 90)] = 24,
) -> list[DeliveryRead]:
    cutoff = clock() - timedelta(hours=hours)
    return [DeliveryRead.from_record(r) for r in window.deliveries_since(cutoff=cutoff)]
