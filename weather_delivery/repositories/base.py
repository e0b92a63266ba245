from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime, tzinfo
from typing import Protocol

from weather_delivery.models.delivery import DeliveryEvent
from weather_delivery.models.weather import WeatherObservation


class ObservationStore(Protocol):
    def append(
        self, weather: WeatherObservation, deliveries: Sequence[DeliveryEvent]
    ) -> None: ...

    def evict(self, *, now: datetime) -> int: ...

    def snapshot(
        self,
    ) -> tuple[tuple[WeatherObservation, ...], tuple[DeliveryEvent, ...]]: ...

    def weather_history(self, *, limit: int) -> list[WeatherObservation]: ...

    def deliveries_since(self, *, cutoff: datetime) -> list[DeliveryEvent]: ...

    def deliveries_in_hour(self, *, now: datetime, tz: tzinfo) -> list[DeliveryEvent]: ...
