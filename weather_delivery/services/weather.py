from __future__ import annotations

import logging
import math
import random
from datetime import datetime, timedelta
from typing import Protocol

import httpx

from weather_delivery.models.weather import ForecastPoint, Location, WeatherObservation

logger = logging.getLogger(__name__)

DEFAULT_LOCATION = Location(lat=37.7749, lon=-122.4194, city="San Francisco")

BASELINE_TEMPERATURE = 20.0
DIURNAL_AMPLITUDE = 8.0
SEASONAL_AMPLITUDE = 10.0
RAIN_PROBABILITY = 0.2
FORECAST_RAIN_PROBABILITY = 0.15


def diurnal_temperature(hour: int) -> float:
    return BASELINE_TEMPERATURE + math.sin((hour - 6) / 24 * 2 * math.pi) * DIURNAL_AMPLITUDE


def seasonal_variation(month_index: int) -> float:
    """Seasonal offset for a zero-based month (January is 0)."""
    return math.sin(month_index / 12 * 2 * math.pi) * SEASONAL_AMPLITUDE


def describe(*, rainfall: float, temperature: float) -> str:
    if rainfall > 0:
        return "light rain"
    if temperature > 25:
        return "clear sky"
    return "partly cloudy"


class WeatherSimulator:
    """Synthetic weather driven by daily and seasonal cycles plus noise.

    Every call draws from ``rng``; pass a seeded ``random.Random`` for
    reproducible output.
    """

    def __init__(
        self,
        *,
        location: Location = DEFAULT_LOCATION,
        rng: random.Random | None = None,
    ) -> None:
        self._location = location
        self._rng = rng or random.Random()

    @property
    def location(self) -> Location:
        return self._location

    def generate(self, now: datetime) -> WeatherObservation:
        rng = self._rng
        temperature = (
            diurnal_temperature(now.hour)
            + seasonal_variation(now.month - 1)
            + rng.uniform(-2.0, 2.0)
        )
        humidity = rng.uniform(40.0, 80.0)
        rainfall = rng.uniform(0.0, 5.0) if rng.random() < RAIN_PROBABILITY else 0.0
        pressure = 1013.0 + rng.uniform(-10.0, 10.0)
        cloudiness = rng.uniform(0.0, 100.0)
        wind_speed = rng.random() * 15.0

        # Described from the sampled values; a trace of rain still reads as rain.
        return WeatherObservation(
            timestamp=now,
            temperature=round(temperature, 1),
            humidity=round(humidity),
            rainfall=round(rainfall, 1),
            wind_speed=wind_speed,
            cloudiness=round(cloudiness),
            description=describe(rainfall=rainfall, temperature=temperature),
            location=self._location,
            pressure=round(pressure),
        )

    def forecast(
        self, now: datetime, *, periods: int = 24, step_hours: int = 3
    ) -> list[ForecastPoint]:
        rng = self._rng
        points: list[ForecastPoint] = []
        for i in range(periods):
            ts = now + timedelta(hours=i * step_hours)
            temperature = diurnal_temperature(ts.hour) + rng.uniform(-1.5, 1.5)
            humidity = rng.uniform(40.0, 80.0)
            rainfall = (
                rng.uniform(0.0, 3.0) if rng.random() < FORECAST_RAIN_PROBABILITY else 0.0
            )
            description = "clear sky" if rng.random() < 0.7 else "partly cloudy"
            points.append(
                ForecastPoint(
                    timestamp=ts,
                    temperature=round(temperature, 1),
                    humidity=round(humidity),
                    rainfall=round(rainfall, 1),
                    description=description,
                )
            )
        return points


class WeatherClient(Protocol):
    def close(self) -> None: ...

    def fetch_current(self, location: Location, *, now: datetime) -> WeatherObservation: ...

    def fetch_forecast(self, location: Location) -> list[ForecastPoint]: ...


UPSTREAM_ERRORS = (httpx.HTTPError, ValueError, KeyError, TypeError)


class WeatherProvider:
    """Real weather when a client is configured, simulated weather otherwise.

    Upstream failures never propagate: they are logged and the simulator
    answers instead, so a collection tick always gets an observation.
    """

    def __init__(
        self,
        *,
        simulator: WeatherSimulator,
        client: WeatherClient | None = None,
    ) -> None:
        self._simulator = simulator
        self._client = client

    @property
    def has_client(self) -> bool:
        return self._client is not None

    def current(self, now: datetime) -> tuple[WeatherObservation, str]:
        if self._client is not None:
            try:
                return self._client.fetch_current(self._simulator.location, now=now), "api"
            except UPSTREAM_ERRORS as e:
                logger.warning("Weather API error, using simulated data: %s", e)
        return self._simulator.generate(now), "simulated"

    def forecast(self, now: datetime) -> list[ForecastPoint]:
        if self._client is not None:
            try:
                return self._client.fetch_forecast(self._simulator.location)
            except UPSTREAM_ERRORS as e:
                logger.warning("Forecast API error, using simulated data: %s", e)
        return self._simulator.forecast(now)

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
