from __future__ import annotations

from datetime import datetime

from pydantic import Field

from weather_delivery.models.weather import ForecastPoint, WeatherObservation
from weather_delivery.schemas.base import CamelModel


class LocationRead(CamelModel):
    lat: float
    lon: float
    city: str


class WeatherRead(CamelModel):
    timestamp: datetime
    temperature: float
    humidity: float = Field(ge=0, le=100)
    pressure: float | None = None
    rainfall: float = Field(ge=0)
    wind_speed: float = Field(ge=0)
    cloudiness: float = Field(ge=0, le=100)
    description: str
    location: LocationRead

    @classmethod
    def from_record(cls, r: WeatherObservation) -> WeatherRead:
        return cls(
            timestamp=r.timestamp,
            temperature=r.temperature,
            humidity=r.humidity,
            pressure=r.pressure,
            rainfall=r.rainfall,
            wind_speed=r.wind_speed,
            cloudiness=r.cloudiness,
            description=r.description,
            location=LocationRead(lat=r.location.lat, lon=r.location.lon, city=r.location.city),
        )


class ForecastPointRead(CamelModel):
    timestamp: datetime
    temperature: float
    humidity: float
    rainfall: float = Field(ge=0)
    description: str

    @classmethod
    def from_record(cls, r: ForecastPoint) -> ForecastPointRead:
        return cls(
            timestamp=r.timestamp,
            temperature=r.temperature,
            humidity=r.humidity,
            rainfall=r.rainfall,
            description=r.description,
        )


class CollectionResponse(CamelModel):
    skipped: bool = False
    retry_after_seconds: int | None = Field(default=None, ge=1)
    source: str | None = None
    weather: WeatherRead | None = None
    deliveries_generated: int = Field(default=0, ge=0)
    weather_points: int = Field(default=0, ge=0)
    delivery_points: int = Field(default=0, ge=0)
