from __future__ import annotations

import threading
from collections.abc import Sequence
from datetime import datetime, timedelta, timezone, tzinfo

from weather_delivery.models.delivery import DeliveryEvent
from weather_delivery.models.weather import WeatherObservation


def _as_utc(ts: datetime) -> datetime:
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc)


class RetentionWindow:
    """In-memory, age-bounded store of recent weather and delivery records.

    Readers always get immutable tuples built under the lock, so a tick that
    is halfway through ``append`` is never observed.
    """

    def __init__(self, *, retention: timedelta) -> None:
        if retention <= timedelta(0):
            raise ValueError("retention must be positive")
        self._retention = retention
        self._lock = threading.Lock()
        self._weather: tuple[WeatherObservation, ...] = ()
        self._deliveries: tuple[DeliveryEvent, ...] = ()

    @property
    def retention(self) -> timedelta:
        return self._retention

    def append(
        self, weather: WeatherObservation, deliveries: Sequence[DeliveryEvent]
    ) -> None:
        with self._lock:
            self._weather = (*self._weather, weather)
            self._deliveries = (*self._deliveries, *deliveries)

    def evict(self, *, now: datetime) -> int:
        cutoff = _as_utc(now) - self._retention
        with self._lock:
            weather = tuple(w for w in self._weather if _as_utc(w.timestamp) > cutoff)
            deliveries = tuple(d for d in self._deliveries if _as_utc(d.timestamp) > cutoff)
            removed = (len(self._weather) - len(weather)) + (
                len(self._deliveries) - len(deliveries)
            )
            self._weather = weather
            self._deliveries = deliveries
        return removed

    def snapshot(
        self,
    ) -> tuple[tuple[WeatherObservation, ...], tuple[DeliveryEvent, ...]]:
        with self._lock:
            return self._weather, self._deliveries

    def weather_history(self, *, limit: int) -> list[WeatherObservation]:
        if limit <= 0:
            return []
        weather, _ = self.snapshot()
        return list(weather[-limit:])

    def deliveries_since(self, *, cutoff: datetime) -> list[DeliveryEvent]:
        cutoff = _as_utc(cutoff)
        _, deliveries = self.snapshot()
        return [d for d in deliveries if _as_utc(d.timestamp) > cutoff]

    def deliveries_in_hour(self, *, now: datetime, tz: tzinfo) -> list[DeliveryEvent]:
        current_hour = _as_utc(now).astimezone(tz).hour
        _, deliveries = self.snapshot()
        return [d for d in deliveries if _as_utc(d.timestamp).astimezone(tz).hour == current_hour]
