from __future__ import annotations

import random
from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest

from weather_delivery.models.correlation import AnalysisReport, InsufficientDataReport
from weather_delivery.services.correlation import (
    WEATHER_FACTORS,
    CorrelationEngine,
    bucket_deliveries,
    bucket_weather,
    calculate_significance,
    correlate,
    hour_key,
    interpret_correlation,
    pearson,
)
from tests.fakes import deliveries_per_hour, make_delivery, make_weather

START = datetime(2026, 1, 15, 10, 0, tzinfo=timezone.utc)
GENERATED_AT = datetime(2026, 1, 15, 13, 0, tzinfo=timezone.utc)


@pytest.fixture()
def engine() -> CorrelationEngine:
    return CorrelationEngine(clock=lambda: GENERATED_AT)


def _hours(n: int) -> list[datetime]:
    return [START + timedelta(hours=i) for i in range(n)]


def test_temperature_tracks_order_count(engine: CorrelationEngine) -> None:
    weather = [
        make_weather(ts, temperature=t) for ts, t in zip(_hours(3), [20.0, 25.0, 30.0])
    ]
    deliveries = deliveries_per_hour(START, [5, 8, 12])

    report = engine.analyze(weather, deliveries)

    assert isinstance(report, AnalysisReport)
    temperature = report.correlations["temperature"]
    assert temperature.coefficient > 0.9
    assert temperature.coefficient == 0.997
    assert temperature.pairs == 3
    assert temperature.strength == "strong"
    assert temperature.significance == "highly significant"

    assert report.data_points.weather == 3
    assert report.data_points.deliveries == 25
    assert report.data_points.hours == 3
    assert report.generated_at == GENERATED_AT

    assert [(i.type, i.factor) for i in report.insights] == [
        ("positive", "temperature"),
        ("temporal", "time"),
    ]
    assert report.insights[0].message.endswith("(r=0.997)")
    assert report.insights[-1].message == "Peak delivery hour is 12:00 with 12 orders"
    assert report.insights[-1].strength == "observational"


@pytest.mark.parametrize(
    ("weather_count", "delivery_count"), [(0, 0), (1, 10), (5, 1), (1, 1)]
)
def test_short_series_gives_sentinel(
    engine: CorrelationEngine, weather_count: int, delivery_count: int
) -> None:
    weather = [make_weather(ts) for ts in _hours(weather_count)]
    deliveries = [make_delivery(START) for _ in range(delivery_count)]

    report = engine.analyze(weather, deliveries)

    assert isinstance(report, InsufficientDataReport)
    assert "Insufficient data" in report.message


def test_constant_factor_is_degenerate(engine: CorrelationEngine) -> None:
    weather = [make_weather(ts, temperature=18.0) for ts in _hours(3)]
    deliveries = deliveries_per_hour(START, [5, 8, 12])

    report = engine.analyze(weather, deliveries)

    assert isinstance(report, AnalysisReport)
    for factor in WEATHER_FACTORS:
        result = report.correlations[factor]
        assert result.coefficient == 0.0
        assert result.strength == "insufficient data"
        assert result.pairs == 3
    # Every order is worth the same, so avg value never varies either.
    assert all(r.strength == "insufficient data" for r in report.order_value.values())
    assert [i.type for i in report.insights] == ["temporal"]


def test_no_overlapping_hours(engine: CorrelationEngine) -> None:
    weather = [make_weather(ts, temperature=t) for ts, t in zip(_hours(2), [10.0, 20.0])]
    deliveries = deliveries_per_hour(START + timedelta(hours=5), [3, 4])

    report = engine.analyze(weather, deliveries)

    assert isinstance(report, AnalysisReport)
    result = report.correlations["temperature"]
    assert result.coefficient == 0.0
    assert result.pairs == 0
    assert result.strength == "insufficient data"
    assert result.significance == "insufficient data"


def test_negative_temperature_insight(engine: CorrelationEngine) -> None:
    weather = [
        make_weather(ts, temperature=t) for ts, t in zip(_hours(3), [30.0, 25.0, 20.0])
    ]
    report = engine.analyze(weather, deliveries_per_hour(START, [5, 8, 12]))

    assert isinstance(report, AnalysisReport)
    assert report.correlations["temperature"].coefficient < -0.9
    first = report.insights[0]
    assert (first.type, first.factor) == ("negative", "temperature")
    assert first.message.startswith("Lower temperatures")


def test_rainfall_and_humidity_insights_are_positive_only(engine: CorrelationEngine) -> None:
    rising = [
        make_weather(ts, temperature=18.0, rainfall=r, humidity=h)
        for ts, r, h in zip(_hours(3), [0.0, 2.0, 4.0], [50.0, 65.0, 80.0])
    ]
    report = engine.analyze(rising, deliveries_per_hour(START, [5, 8, 12]))
    assert isinstance(report, AnalysisReport)
    assert [(i.type, i.factor) for i in report.insights] == [
        ("positive", "rainfall"),
        ("positive", "humidity"),
        ("temporal", "time"),
    ]

    falling = [
        make_weather(ts, temperature=18.0, rainfall=r, humidity=h)
        for ts, r, h in zip(_hours(3), [4.0, 2.0, 0.0], [80.0, 65.0, 50.0])
    ]
    report = engine.analyze(falling, deliveries_per_hour(START, [5, 8, 12]))
    assert isinstance(report, AnalysisReport)
    assert report.correlations["rainfall"].coefficient < -0.9
    assert report.correlations["humidity"].coefficient < -0.9
    assert [i.type for i in report.insights] == ["temporal"]


def test_economic_insight_from_order_value(engine: CorrelationEngine) -> None:
    weather = [
        make_weather(ts, temperature=t) for ts, t in zip(_hours(3), [10.0, 20.0, 30.0])
    ]
    deliveries = [
        make_delivery(ts, order_value=v)
        for ts, v in zip(_hours(3), [20.0, 40.0, 60.0])
        for _ in range(4)
    ]

    report = engine.analyze(weather, deliveries)

    assert isinstance(report, AnalysisReport)
    assert report.order_value["temperature"].coefficient == 1.0
    assert report.correlations["temperature"].strength == "insufficient data"
    economic = [i for i in report.insights if i.type == "economic"]
    assert len(economic) == 1
    assert economic[0].factor == "temperature"
    assert economic[0].message.startswith("Extreme temperatures")


def test_weather_bucket_last_write_wins() -> None:
    first = make_weather(START + timedelta(minutes=5), temperature=10.0)
    second = make_weather(START + timedelta(minutes=50), temperature=12.0)
    other = make_weather(START + timedelta(hours=1), temperature=14.0)

    grouped = bucket_weather([first, second, other])

    assert list(grouped) == ["2026-01-15T10", "2026-01-15T11"]
    assert grouped["2026-01-15T10"].temperature == 12.0


def test_delivery_buckets_reconstruct_totals() -> None:
    rng = random.Random(5)
    deliveries = [
        make_delivery(
            START + timedelta(minutes=rng.randint(0, 300)),
            order_value=round(rng.uniform(10, 200), 2),
            delivery_type=rng.choice(["food", "grocery", "retail"]),
            neighborhood=rng.choice(["Mission", "SOMA"]),
        )
        for _ in range(250)
    ]

    grouped = bucket_deliveries(deliveries)

    assert sum(b.count for b in grouped.values()) == 250
    for key, bucket in grouped.items():
        raw = [d.order_value for d in deliveries if hour_key(d.timestamp) == key]
        assert bucket.avg_value * bucket.count == pytest.approx(bucket.total_value)
        assert bucket.total_value == pytest.approx(sum(raw))
        assert sum(bucket.types.values()) == bucket.count
        assert sum(bucket.neighborhoods.values()) == bucket.count


def test_hour_keys_sort_by_time() -> None:
    stamps = [START + timedelta(hours=h) for h in (30, 0, 15, 2, 100)]
    keys = [hour_key(ts) for ts in stamps]
    assert sorted(keys) == [hour_key(ts) for ts in sorted(stamps)]
    assert hour_key(datetime(2026, 1, 15, 9, 59)) == "2026-01-15T09"
    plus_two = timezone(timedelta(hours=2))
    assert hour_key(datetime(2026, 1, 15, 23, 30, tzinfo=plus_two)) == "2026-01-15T21"


def test_pearson_bounds() -> None:
    rng = random.Random(9)
    for _ in range(500):
        n = rng.randint(0, 12)
        pairs = [(rng.uniform(-50, 50), rng.uniform(0, 300)) for _ in range(n)]
        r = pearson(pairs)
        if n < 2:
            assert r is None
        else:
            assert r is not None
            assert -1.0 <= r <= 1.0


def test_pearson_known_values() -> None:
    assert pearson([(1, 2), (2, 4), (3, 6)]) == pytest.approx(1.0)
    assert pearson([(1, 6), (2, 4), (3, 2)]) == pytest.approx(-1.0)
    assert pearson([(1, 5), (2, 5), (3, 5)]) is None
    assert pearson([(1, 1)]) is None


# Distinct values whose squares lose their low bits: n*sum(x^2) - sum(x)^2 == 0.
CANCELLING_TEMPERATURES = [134217728.0, 134217729.0]


def test_pearson_undefined_when_variance_cancels() -> None:
    assert pearson([(CANCELLING_TEMPERATURES[0], 1.0), (CANCELLING_TEMPERATURES[1], 2.0)]) is None


def test_cancelled_variance_reports_insufficient_data() -> None:
    weather = [
        make_weather(ts, temperature=t) for ts, t in zip(_hours(2), CANCELLING_TEMPERATURES)
    ]
    result = correlate(
        bucket_weather(weather),
        bucket_deliveries(deliveries_per_hour(START, [1, 2])),
        factor="temperature",
        metric="count",
    )
    assert result.coefficient == 0.0
    assert result.pairs == 2
    assert result.strength == "insufficient data"
    assert result.significance == "insufficient data"


@pytest.mark.parametrize(
    ("coefficient", "label"),
    [(0.7, "strong"), (-0.85, "strong"), (-0.5, "moderate"), (0.3, "weak"), (0.29, "very weak")],
)
def test_interpret_correlation(coefficient: float, label: str) -> None:
    assert interpret_correlation(coefficient) == label


@pytest.mark.parametrize(
    ("coefficient", "n", "label"),
    [
        (0.99, 2, "insufficient data"),
        (1.0, 5, "highly significant"),
        (-1.0, 5, "highly significant"),
        (0.6, 10, "significant"),
        (0.55, 10, "marginally significant"),
        (0.5, 10, "not significant"),
        (0.0, 30, "not significant"),
    ],
)
def test_significance(coefficient: float, n: int, label: str) -> None:
    assert calculate_significance(coefficient, n) == label


def test_correlate_inner_join() -> None:
    weather = bucket_weather(
        [make_weather(ts, temperature=t) for ts, t in zip(_hours(4), [10.0, 15.0, 20.0, 25.0])]
    )
    deliveries = bucket_deliveries(deliveries_per_hour(START, [2, 0, 6, 9]))

    result = correlate(weather, deliveries, factor="temperature", metric="count")

    assert result.pairs == 3


def test_peak_hour_ties_keep_first(engine: CorrelationEngine) -> None:
    weather = [make_weather(ts, temperature=t) for ts, t in zip(_hours(3), [10.0, 11.0, 12.0])]
    report = engine.analyze(weather, deliveries_per_hour(START, [4, 7, 7]))

    assert isinstance(report, AnalysisReport)
    assert report.insights[-1].message == "Peak delivery hour is 11:00 with 7 orders"


def test_peak_hour_in_display_timezone() -> None:
    engine = CorrelationEngine(display_tz=ZoneInfo("America/Los_Angeles"))
    weather = [make_weather(ts, temperature=t) for ts, t in zip(_hours(3), [10.0, 11.0, 12.0])]
    report = engine.analyze(weather, deliveries_per_hour(START, [1, 2, 9]))

    assert isinstance(report, AnalysisReport)
    # 12:00 UTC in January is 04:00 in San Francisco.
    assert report.insights[-1].message == "Peak delivery hour is 4:00 with 9 orders"


def test_analyze_is_idempotent(engine: CorrelationEngine) -> None:
    rng = random.Random(21)
    weather = [
        make_weather(ts, temperature=rng.uniform(5, 30), rainfall=rng.choice([0.0, 1.2]))
        for ts in _hours(24)
    ]
    deliveries = [
        make_delivery(ts, order_value=round(rng.uniform(20, 90), 2))
        for ts in _hours(24)
        for _ in range(rng.randint(1, 15))
    ]

    assert engine.analyze(weather, deliveries) == engine.analyze(weather, deliveries)


def test_report_covers_every_factor(engine: CorrelationEngine) -> None:
    weather = [make_weather(ts, temperature=t) for ts, t in zip(_hours(3), [10.0, 11.0, 12.0])]
    report = engine.analyze(weather, deliveries_per_hour(START, [1, 2, 3]))

    assert isinstance(report, AnalysisReport)
    assert set(report.correlations) == set(WEATHER_FACTORS)
    assert set(report.order_value) == set(WEATHER_FACTORS)
