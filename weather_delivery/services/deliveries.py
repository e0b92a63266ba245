from __future__ import annotations

import itertools
import math
import random
from datetime import datetime

from weather_delivery.models.delivery import (
    DeliveryEvent,
    DeliveryLocation,
    Neighborhood,
    WeatherSnapshot,
)
from weather_delivery.models.weather import WeatherObservation

DELIVERY_TYPES: tuple[str, ...] = ("food", "grocery", "pharmacy", "retail", "electronics")

NEIGHBORHOODS: tuple[Neighborhood, ...] = (
    Neighborhood("Downtown", 37.7749, -122.4194, 15000),
    Neighborhood("Mission", 37.7599, -122.4148, 25000),
    Neighborhood("Castro", 37.7609, -122.4350, 12000),
    Neighborhood("Chinatown", 37.7941, -122.4078, 18000),
    Neighborhood("Marina", 37.8021, -122.4364, 20000),
    Neighborhood("SOMA", 37.7749, -122.4094, 22000),
)

BASELINE_POPULATION = 15000

# Orders per hour for a baseline neighborhood, by local hour of day.
HOURLY_BASE_RATES: dict[int, int] = {
    0: 2, 1: 1, 2: 1, 3: 1, 4: 1, 5: 2,
    6: 4, 7: 8, 8: 12, 9: 10, 10: 8, 11: 15,
    12: 25, 13: 20, 14: 15, 15: 12, 16: 10,
    17: 18, 18: 30, 19: 35, 20: 25, 21: 20,
    22: 15, 23: 8,
}
DEFAULT_BASE_RATE = 5

CATEGORY_BASE_WEIGHTS: dict[str, float] = {
    "food": 0.40,
    "grocery": 0.25,
    "pharmacy": 0.10,
    "retail": 0.15,
    "electronics": 0.10,
}

CATEGORY_BASE_VALUES: dict[str, float] = {
    "food": 35.0,
    "grocery": 65.0,
    "pharmacy": 25.0,
    "retail": 85.0,
    "electronics": 150.0,
}

MAX_WEATHER_MULTIPLIER = 3.0
COORDINATE_JITTER = 0.005

_ID_SEQUENCE = itertools.count(1)


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def get_base_delivery_rate(hour: int) -> int:
    return HOURLY_BASE_RATES.get(hour, DEFAULT_BASE_RATE)


def calculate_weather_multiplier(weather: WeatherObservation) -> float:
    multiplier = 1.0

    if weather.temperature < 5:
        multiplier *= 1.4
    elif weather.temperature < 15:
        multiplier *= 1.2
    elif weather.temperature > 30:
        multiplier *= 1.3

    if weather.rainfall > 0:
        multiplier *= 1.5 + weather.rainfall * 0.1

    if weather.humidity > 80:
        multiplier *= 1.1

    if weather.wind_speed > 20:
        multiplier *= 1.2

    return min(multiplier, MAX_WEATHER_MULTIPLIER)


def category_weights(weather: WeatherObservation, hour: int) -> dict[str, float]:
    """Normalized category weights, in the insertion order used for drawing."""
    weights = dict(CATEGORY_BASE_WEIGHTS)

    if weather.rainfall > 0:
        weights["food"] += 0.2
        weights["grocery"] += 0.15
        weights["retail"] -= 0.1

    if weather.temperature < 10:
        weights["food"] += 0.15
        weights["pharmacy"] += 0.05

    if 11 <= hour <= 14:
        weights["food"] += 0.2

    if 17 <= hour <= 21:
        weights["food"] += 0.25

    total = sum(weights.values())
    return {key: w / total for key, w in weights.items()}


def next_delivery_id(now: datetime) -> str:
    millis = int(now.timestamp() * 1000)
    return f"DEL_{millis}_{next(_ID_SEQUENCE):06d}"


class DeliverySimulator:
    """Synthetic delivery orders shaped by hour of day and weather."""

    def __init__(
        self,
        *,
        neighborhoods: tuple[Neighborhood, ...] = NEIGHBORHOODS,
        rng: random.Random | None = None,
    ) -> None:
        self._neighborhoods = neighborhoods
        self._rng = rng or random.Random()

    @property
    def neighborhoods(self) -> tuple[Neighborhood, ...]:
        return self._neighborhoods

    def expected_count(
        self, neighborhood: Neighborhood, weather: WeatherObservation, hour: int
    ) -> float:
        return (
            get_base_delivery_rate(hour)
            * (neighborhood.population / BASELINE_POPULATION)
            * calculate_weather_multiplier(weather)
        )

    def generate(self, weather: WeatherObservation, now: datetime) -> list[DeliveryEvent]:
        hour = now.hour
        deliveries: list[DeliveryEvent] = []
        for neighborhood in self._neighborhoods:
            expected = self.expected_count(neighborhood, weather, hour)
            count = max(0, _round_half_up(expected + self._rng.uniform(-2.5, 2.5)))
            for _ in range(count):
                deliveries.append(self._create_delivery(neighborhood, weather, now))
        return deliveries

    def _create_delivery(
        self, neighborhood: Neighborhood, weather: WeatherObservation, now: datetime
    ) -> DeliveryEvent:
        delivery_type = self.select_delivery_type(weather, now.hour)
        lat_offset = self._rng.uniform(-COORDINATE_JITTER, COORDINATE_JITTER)
        lon_offset = self._rng.uniform(-COORDINATE_JITTER, COORDINATE_JITTER)
        return DeliveryEvent(
            id=next_delivery_id(now),
            timestamp=now,
            type=delivery_type,
            location=DeliveryLocation(
                lat=neighborhood.lat + lat_offset,
                lon=neighborhood.lon + lon_offset,
                neighborhood=neighborhood.name,
            ),
            order_value=self.generate_order_value(delivery_type, weather),
            delivery_time_minutes=self.estimate_delivery_time(weather),
            weather_conditions=WeatherSnapshot(
                temperature=weather.temperature,
                rainfall=weather.rainfall,
                humidity=weather.humidity,
            ),
        )

    def select_delivery_type(self, weather: WeatherObservation, hour: int) -> str:
        draw = self._rng.random()
        cumulative = 0.0
        for delivery_type, weight in category_weights(weather, hour).items():
            cumulative += weight
            if draw <= cumulative:
                return delivery_type
        return "food"

    def generate_order_value(self, delivery_type: str, weather: WeatherObservation) -> float:
        base = CATEGORY_BASE_VALUES[delivery_type]
        value = base + self._rng.uniform(-0.2, 0.2) * base

        if weather.rainfall > 0:
            value *= 1.1

        if weather.temperature < 5 or weather.temperature > 30:
            value *= 1.05

        return round(value, 2)

    def estimate_delivery_time(self, weather: WeatherObservation) -> int:
        minutes = 30.0
        if weather.rainfall > 0:
            minutes += weather.rainfall * 5
        if weather.wind_speed > 15:
            minutes += 5
        return _round_half_up(minutes + self._rng.uniform(-5.0, 5.0))
