from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class Location:
    lat: float
    lon: float
    city: str


@dataclass(frozen=True)
class WeatherObservation:
    timestamp: datetime
    temperature: float
    humidity: float
    rainfall: float
    wind_speed: float
    cloudiness: float
    description: str
    location: Location
    pressure: float | None = None


@dataclass(frozen=True)
class ForecastPoint:
    timestamp: datetime
    temperature: float
    humidity: float
    rainfall: float
    description: str
