from __future__ import annotations

import math
from collections.abc import Callable, Sequence
from datetime import datetime, timezone, tzinfo

from weather_delivery.models.correlation import (
    AnalysisReport,
    CorrelationResult,
    DataPoints,
    DeliveryHourBucket,
    Insight,
    InsufficientDataReport,
)
from weather_delivery.models.delivery import DeliveryEvent
from weather_delivery.models.weather import WeatherObservation

WEATHER_FACTORS: tuple[str, ...] = ("temperature", "rainfall", "humidity", "wind_speed")

INSUFFICIENT = "insufficient data"
INSIGHT_THRESHOLD = 0.3


def hour_key(timestamp: datetime) -> str:
    """Truncate to the UTC clock hour, e.g. ``2026-10-19T14``."""
    if timestamp.tzinfo is None:
        timestamp = timestamp.replace(tzinfo=timezone.utc)
    return timestamp.astimezone(timezone.utc).strftime("%Y-%m-%dT%H")


def bucket_deliveries(deliveries: Sequence[DeliveryEvent]) -> dict[str, DeliveryHourBucket]:
    grouped: dict[str, DeliveryHourBucket] = {}
    for delivery in deliveries:
        bucket = grouped.setdefault(hour_key(delivery.timestamp), DeliveryHourBucket())
        bucket.count += 1
        bucket.total_value += delivery.order_value
        bucket.types[delivery.type] = bucket.types.get(delivery.type, 0) + 1
        name = delivery.location.neighborhood
        bucket.neighborhoods[name] = bucket.neighborhoods.get(name, 0) + 1
    return grouped


def bucket_weather(observations: Sequence[WeatherObservation]) -> dict[str, WeatherObservation]:
    grouped: dict[str, WeatherObservation] = {}
    for observation in observations:
        grouped[hour_key(observation.timestamp)] = observation
    return grouped


def pearson(pairs: Sequence[tuple[float, float]]) -> float | None:
    """Pearson's r via the sum-of-products formula.

    Returns ``None`` when r is undefined: fewer than two pairs, or a side with
    zero variance. A constant side is caught before the formula, since
    round-off can leave its computed variance slightly positive.
    """
    n = len(pairs)
    if n < 2:
        return None
    if len({x for x, _ in pairs}) < 2 or len({y for _, y in pairs}) < 2:
        return None
    sum_x = sum(x for x, _ in pairs)
    sum_y = sum(y for _, y in pairs)
    sum_xy = sum(x * y for x, y in pairs)
    sum_x2 = sum(x * x for x, _ in pairs)
    sum_y2 = sum(y * y for _, y in pairs)

    numerator = n * sum_xy - sum_x * sum_y
    variance_product = (n * sum_x2 - sum_x * sum_x) * (n * sum_y2 - sum_y * sum_y)
    if variance_product <= 0:
        return None
    return max(-1.0, min(1.0, numerator / math.sqrt(variance_product)))


def interpret_correlation(coefficient: float) -> str:
    strength = abs(coefficient)
    if strength >= 0.7:
        return "strong"
    if strength >= 0.5:
        return "moderate"
    if strength >= 0.3:
        return "weak"
    return "very weak"


def calculate_significance(coefficient: float, n: int) -> str:
    if n < 3:
        return INSUFFICIENT

    # Simple t-test approximation.
    residual = 1 - coefficient * coefficient
    if residual <= 0:
        t = math.inf
    else:
        t = coefficient * math.sqrt((n - 2) / residual)
    abs_t = abs(t)

    if abs_t > 2.576:
        return "highly significant"
    if abs_t > 1.96:
        return "significant"
    if abs_t > 1.645:
        return "marginally significant"
    return "not significant"


def _delivery_metric(bucket: DeliveryHourBucket, metric: str) -> float:
    if metric == "count":
        return float(bucket.count)
    if metric == "avg_value":
        return bucket.avg_value
    raise ValueError(f"Unknown delivery metric '{metric}'")


def correlate(
    weather_by_hour: dict[str, WeatherObservation],
    deliveries_by_hour: dict[str, DeliveryHourBucket],
    *,
    factor: str,
    metric: str,
) -> CorrelationResult:
    pairs = [
        (float(getattr(observation, factor)), _delivery_metric(deliveries_by_hour[hour], metric))
        for hour, observation in weather_by_hour.items()
        if hour in deliveries_by_hour
    ]
    if len(pairs) < 2:
        return CorrelationResult(
            coefficient=0.0, strength=INSUFFICIENT, pairs=0, significance=INSUFFICIENT
        )

    coefficient = pearson(pairs)
    if coefficient is None:
        return CorrelationResult(
            coefficient=0.0, strength=INSUFFICIENT, pairs=len(pairs), significance=INSUFFICIENT
        )

    return CorrelationResult(
        coefficient=round(coefficient, 3),
        strength=interpret_correlation(coefficient),
        pairs=len(pairs),
        significance=calculate_significance(coefficient, len(pairs)),
    )


class CorrelationEngine:
    """Hourly Pearson correlations between weather and delivery demand.

    The engine keeps no state between calls: ``analyze`` is a pure function of
    its two input series plus the ``generatedAt`` clock. ``display_tz`` only
    controls the hour-of-day named in the peak-hour insight.
    """

    def __init__(
        self,
        *,
        display_tz: tzinfo = timezone.utc,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._display_tz = display_tz
        self._clock = clock or (lambda: datetime.now(tz=timezone.utc))

    def analyze(
        self,
        weather_series: Sequence[WeatherObservation],
        delivery_series: Sequence[DeliveryEvent],
    ) -> AnalysisReport | InsufficientDataReport:
        if len(weather_series) < 2 or len(delivery_series) < 2:
            return InsufficientDataReport()

        deliveries_by_hour = bucket_deliveries(delivery_series)
        weather_by_hour = bucket_weather(weather_series)

        correlations = {
            factor: correlate(weather_by_hour, deliveries_by_hour, factor=factor, metric="count")
            for factor in WEATHER_FACTORS
        }
        order_value = {
            factor: correlate(
                weather_by_hour, deliveries_by_hour, factor=factor, metric="avg_value"
            )
            for factor in WEATHER_FACTORS
        }

        return AnalysisReport(
            correlations=correlations,
            order_value=order_value,
            insights=self.generate_insights(correlations, order_value, deliveries_by_hour),
            data_points=DataPoints(
                weather=len(weather_series),
                deliveries=len(delivery_series),
                hours=len(weather_by_hour),
            ),
            generated_at=self._clock(),
        )

    def generate_insights(
        self,
        correlations: dict[str, CorrelationResult],
        order_value: dict[str, CorrelationResult],
        deliveries_by_hour: dict[str, DeliveryHourBucket],
    ) -> list[Insight]:
        insights: list[Insight] = []

        temperature = correlations["temperature"]
        if temperature.coefficient > INSIGHT_THRESHOLD:
            insights.append(
                Insight(
                    type="positive",
                    factor="temperature",
                    message=(
                        "Higher temperatures are associated with increased delivery orders "
                        f"(r={temperature.coefficient})"
                    ),
                    strength=temperature.strength,
                )
            )
        elif temperature.coefficient < -INSIGHT_THRESHOLD:
            insights.append(
                Insight(
                    type="negative",
                    factor="temperature",
                    message=(
                        "Lower temperatures are associated with increased delivery orders "
                        f"(r={temperature.coefficient})"
                    ),
                    strength=temperature.strength,
                )
            )

        rainfall = correlations["rainfall"]
        if rainfall.coefficient > INSIGHT_THRESHOLD:
            insights.append(
                Insight(
                    type="positive",
                    factor="rainfall",
                    message=(
                        "Rainy weather significantly increases delivery demand "
                        f"(r={rainfall.coefficient})"
                    ),
                    strength=rainfall.strength,
                )
            )

        humidity = correlations["humidity"]
        if humidity.coefficient > INSIGHT_THRESHOLD:
            insights.append(
                Insight(
                    type="positive",
                    factor="humidity",
                    message=(
                        "Higher humidity levels correlate with more delivery orders "
                        f"(r={humidity.coefficient})"
                    ),
                    strength=humidity.strength,
                )
            )

        value_vs_temperature = order_value["temperature"]
        if value_vs_temperature.coefficient > INSIGHT_THRESHOLD:
            insights.append(
                Insight(
                    type="economic",
                    factor="temperature",
                    message=(
                        "Extreme temperatures lead to higher order values "
                        f"(r={value_vs_temperature.coefficient})"
                    ),
                    strength=value_vs_temperature.strength,
                )
            )

        peak = self._peak_hour(deliveries_by_hour)
        if peak is not None:
            hour_of_day, count = peak
            insights.append(
                Insight(
                    type="temporal",
                    factor="time",
                    message=f"Peak delivery hour is {hour_of_day}:00 with {count} orders",
                    strength="observational",
                )
            )

        return insights

    def _peak_hour(
        self, deliveries_by_hour: dict[str, DeliveryHourBucket]
    ) -> tuple[int, int] | None:
        peak_key: str | None = None
        for key, bucket in deliveries_by_hour.items():
            if peak_key is None or bucket.count > deliveries_by_hour[peak_key].count:
                peak_key = key
        if peak_key is None:
            return None
        peak_utc = datetime.strptime(peak_key, "%Y-%m-%dT%H").replace(tzinfo=timezone.utc)
        return peak_utc.astimezone(self._display_tz).hour, deliveries_by_hour[peak_key].count
