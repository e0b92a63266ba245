from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class Neighborhood:
    name: str
    lat: float
    lon: float
    population: int


@dataclass(frozen=True)
class DeliveryLocation:
    lat: float
    lon: float
    neighborhood: str


@dataclass(frozen=True)
class WeatherSnapshot:
    temperature: float
    rainfall: float
    humidity: float


@dataclass(frozen=True)
class DeliveryEvent:
    id: str
    timestamp: datetime
    type: str
    location: DeliveryLocation
    order_value: float
    delivery_time_minutes: int
    weather_conditions: WeatherSnapshot
