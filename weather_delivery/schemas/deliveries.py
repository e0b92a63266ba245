from __future__ import annotations

from datetime import datetime

from pydantic import Field

from weather_delivery.models.delivery import DeliveryEvent
from weather_delivery.schemas.base import CamelModel


class DeliveryLocationRead(CamelModel):
    lat: float
    lon: float
    neighborhood: str


class WeatherSnapshotRead(CamelModel):
    temperature: float
    rainfall: float
    humidity: float


class DeliveryRead(CamelModel):
    id: str
    timestamp: datetime
    type: str
    location: DeliveryLocationRead
    order_value: float = Field(gt=0)
    delivery_time_minutes: int = Field(gt=0)
    weather_conditions: WeatherSnapshotRead

    @classmethod
    def from_record(cls, r: DeliveryEvent) -> DeliveryRead:
        return cls(
            id=r.id,
            timestamp=r.timestamp,
            type=r.type,
            location=DeliveryLocationRead(
                lat=r.location.lat, lon=r.location.lon, neighborhood=r.location.neighborhood
            ),
            order_value=r.order_value,
            delivery_time_minutes=r.delivery_time_minutes,
            weather_conditions=WeatherSnapshotRead(
                temperature=r.weather_conditions.temperature,
                rainfall=r.weather_conditions.rainfall,
                humidity=r.weather_conditions.humidity,
            ),
        )
