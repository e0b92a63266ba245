from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

import httpx

from weather_delivery.models.weather import ForecastPoint, Location, WeatherObservation

OPENWEATHER_BASE_URL = "https://api.openweathermap.org/data/2.5"


class OpenWeatherClient:
    def __init__(
        self,
        *,
        api_key: str,
        timeout_seconds: float,
        base_url: str = OPENWEATHER_BASE_URL,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._api_key = api_key
        self._client = httpx.Client(
            base_url=base_url.rstrip("/"),
            timeout=timeout_seconds,
            headers={"Accept": "application/json"},
            transport=transport,
        )

    def close(self) -> None:
        self._client.close()

    def _get(self, path: str, location: Location) -> dict[str, Any]:
        resp = self._client.get(
            path,
            params={
                "lat": location.lat,
                "lon": location.lon,
                "appid": self._api_key,
                "units": "metric",
            },
        )
        resp.raise_for_status()
        payload = resp.json()
        if not isinstance(payload, dict):
            raise ValueError("Unexpected OpenWeatherMap response shape")
        return payload

    def fetch_current(self, location: Location, *, now: datetime) -> WeatherObservation:
        payload = self._get("/weather", location)
        try:
            main: dict[str, Any] = payload["main"]
            temperature = float(main["temp"])
            humidity = float(main["humidity"])
        except (KeyError, TypeError, ValueError) as e:
            raise ValueError("OpenWeatherMap response is missing 'main' readings") from e

        return WeatherObservation(
            timestamp=now,
            temperature=temperature,
            humidity=humidity,
            rainfall=_rain(payload, "1h"),
            wind_speed=_float_or_zero(_section(payload, "wind").get("speed")),
            cloudiness=_float_or_zero(_section(payload, "clouds").get("all")),
            description=_description(payload),
            location=Location(
                lat=location.lat,
                lon=location.lon,
                city=str(payload.get("name") or location.city),
            ),
            pressure=_float_or_none(main.get("pressure")),
        )

    def fetch_forecast(self, location: Location) -> list[ForecastPoint]:
        payload = self._get("/forecast", location)
        entries = payload.get("list")
        if not isinstance(entries, list):
            raise ValueError("OpenWeatherMap forecast contained no list")

        points: list[ForecastPoint] = []
        for item in entries:
            try:
                main = item["main"]
                points.append(
                    ForecastPoint(
                        timestamp=datetime.fromtimestamp(int(item["dt"]), tz=timezone.utc),
                        temperature=float(main["temp"]),
                        humidity=float(main["humidity"]),
                        rainfall=_rain(item, "3h"),
                        description=_description(item),
                    )
                )
            except (KeyError, TypeError, ValueError) as e:
                raise ValueError("Unexpected forecast entry shape") from e
        return points


def _section(payload: dict[str, Any], key: str) -> dict[str, Any]:
    value = payload.get(key)
    return value if isinstance(value, dict) else {}


def _rain(payload: dict[str, Any], window: str) -> float:
    return _float_or_zero(_section(payload, "rain").get(window))


def _description(payload: dict[str, Any]) -> str:
    weather = payload.get("weather")
    if isinstance(weather, list) and weather and isinstance(weather[0], dict):
        return str(weather[0].get("description", "unknown"))
    return "unknown"


def _float_or_none(v: Any) -> float | None:
    try:
        if v is None:
            return None
        return float(v)
    except (TypeError, ValueError):
        return None


def _float_or_zero(v: Any) -> float:
    value = _float_or_none(v)
    return 0.0 if value is None else value
