from __future__ import annotations

import logging
import math
import threading
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone, tzinfo

from weather_delivery.models.correlation import AnalysisReport, InsufficientDataReport
from weather_delivery.models.weather import WeatherObservation
from weather_delivery.repositories.base import ObservationStore
from weather_delivery.services.correlation import CorrelationEngine
from weather_delivery.services.deliveries import DeliverySimulator
from weather_delivery.services.weather import WeatherProvider

logger = logging.getLogger(__name__)

Report = AnalysisReport | InsufficientDataReport


@dataclass(frozen=True)
class CollectionResult:
    skipped: bool
    retry_after_seconds: int | None = None
    weather: WeatherObservation | None = None
    source: str | None = None
    deliveries_generated: int = 0
    weather_points: int = 0
    delivery_points: int = 0


class CollectionLimiter:
    """Spaces out manual ``POST /collect`` ticks.

    The background loop and forced triggers bypass it; only unforced manual
    triggers reserve the next slot.
    """

    def __init__(self, *, min_interval_seconds: int) -> None:
        self._spacing = timedelta(seconds=max(min_interval_seconds, 0))
        self._lock = threading.Lock()
        self._next_manual_tick: datetime | None = None

    def seconds_until_allowed(self, *, now: datetime) -> int:
        """0 admits a tick now and books the next slot; otherwise the wait."""
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)

        with self._lock:
            if self._next_manual_tick is not None and now < self._next_manual_tick:
                wait = (self._next_manual_tick - now).total_seconds()
                return max(math.ceil(wait), 1)
            self._next_manual_tick = now + self._spacing
            return 0


class ReportCache:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._report: Report | None = None

    def update(self, report: Report) -> None:
        with self._lock:
            self._report = report

    def get(self) -> Report | None:
        with self._lock:
            return self._report


class CollectionService:
    """Runs the collect-and-analyze tick against a retention window.

    Ticks are serialized: a trigger that arrives while another tick is running
    waits for it to finish instead of overlapping.
    """

    def __init__(
        self,
        *,
        weather: WeatherProvider,
        deliveries: DeliverySimulator,
        engine: CorrelationEngine,
        window: ObservationStore,
        cache: ReportCache,
        local_tz: tzinfo = timezone.utc,
        limiter: CollectionLimiter | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._weather = weather
        self._deliveries = deliveries
        self._engine = engine
        self._window = window
        self._cache = cache
        self._local_tz = local_tz
        self._limiter = limiter
        self._clock = clock or (lambda: datetime.now(tz=timezone.utc))
        self._tick_lock = threading.Lock()

    def tick(self, *, now: datetime | None = None) -> CollectionResult:
        with self._tick_lock:
            now = (now or self._clock()).astimezone(self._local_tz)
            observation, source = self._weather.current(now)
            generated = self._deliveries.generate(observation, now)

            self._window.append(observation, generated)
            self._window.evict(now=now)

            weather_series, delivery_series = self._window.snapshot()
            self._cache.update(self._engine.analyze(weather_series, delivery_series))

            logger.info(
                "Data collected: %d weather points, %d deliveries",
                len(weather_series),
                len(delivery_series),
            )
            return CollectionResult(
                skipped=False,
                weather=observation,
                source=source,
                deliveries_generated=len(generated),
                weather_points=len(weather_series),
                delivery_points=len(delivery_series),
            )

    def trigger(self, *, force: bool = False) -> CollectionResult:
        """Manual tick, subject to the limiter unless ``force`` is set."""
        if not force and self._limiter is not None:
            retry_after = self._limiter.seconds_until_allowed(now=self._clock())
            if retry_after:
                return CollectionResult(skipped=True, retry_after_seconds=retry_after)
        return self.tick()

    def latest_report(self) -> Report:
        cached = self._cache.get()
        if cached is not None:
            return cached
        weather_series, delivery_series = self._window.snapshot()
        return self._engine.analyze(weather_series, delivery_series)
