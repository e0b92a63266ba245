from __future__ import annotations

import logging
import random
import threading
from collections.abc import Callable
from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from starlette.middleware.trustedhost import TrustedHostMiddleware

from weather_delivery.api.router import api_router
from weather_delivery.clients.openweather import OpenWeatherClient
from weather_delivery.core.config import Settings, load_settings
from weather_delivery.models.weather import Location
from weather_delivery.repositories.window import RetentionWindow
from weather_delivery.services.collection import (
    CollectionLimiter,
    CollectionService,
    ReportCache,
)
from weather_delivery.services.correlation import CorrelationEngine
from weather_delivery.services.deliveries import DeliverySimulator
from weather_delivery.services.weather import WeatherClient, WeatherProvider, WeatherSimulator

logger = logging.getLogger(__name__)


def build_weather_client(settings: Settings) -> WeatherClient | None:
    if not settings.weather_api_key:
        return None
    return OpenWeatherClient(
        api_key=settings.weather_api_key,
        timeout_seconds=settings.weather_timeout_seconds,
        base_url=str(settings.weather_api_url),
    )


def create_app(
    settings: Settings | None = None,
    *,
    weather_client: WeatherClient | None = None,
    clock: Callable[[], datetime] | None = None,
) -> FastAPI:
    settings = settings or load_settings()
    clock = clock or (lambda: datetime.now(tz=timezone.utc))
    if weather_client is None:
        weather_client = build_weather_client(settings)

    # Ticks own one seeded source; read-only endpoints draw from another so
    # they never shift the sequence of collected data.
    seed = settings.random_seed
    rng = random.Random(seed)
    read_rng = random.Random(None if seed is None else f"{seed}:reads")
    location = Location(
        lat=settings.default_lat, lon=settings.default_lon, city=settings.default_city
    )
    provider = WeatherProvider(
        simulator=WeatherSimulator(location=location, rng=rng),
        client=weather_client,
    )
    read_provider = WeatherProvider(
        simulator=WeatherSimulator(location=location, rng=read_rng),
        client=weather_client,
    )
    window = RetentionWindow(retention=timedelta(hours=settings.retention_hours))
    collection_service = CollectionService(
        weather=provider,
        deliveries=DeliverySimulator(rng=rng),
        engine=CorrelationEngine(display_tz=settings.tzinfo, clock=clock),
        window=window,
        cache=ReportCache(),
        local_tz=settings.tzinfo,
        limiter=CollectionLimiter(
            min_interval_seconds=settings.collection_min_interval_seconds
        ),
        clock=clock,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        stop_event: threading.Event | None = None
        bg_thread: threading.Thread | None = None

        if settings.collection_enabled:
            stop_event = threading.Event()

            def _loop() -> None:
                if not settings.collect_on_startup:
                    stop_event.wait(settings.collection_interval_seconds)
                while stop_event is not None and not stop_event.is_set():
                    try:
                        collection_service.tick()
                    except Exception:
                        logger.exception("Error collecting data")
                    stop_event.wait(settings.collection_interval_seconds)

            bg_thread = threading.Thread(
                target=_loop, name="delivery-collection", daemon=True
            )
            bg_thread.start()

        yield
        if stop_event is not None:
            stop_event.set()
        if bg_thread is not None and bg_thread.is_alive():
            bg_thread.join(timeout=2.0)
        provider.close()

    docs_enabled = settings.docs_enabled and not settings.is_production
    app = FastAPI(
        title="Weather Delivery Correlation API",
        version="0.1.0",
        debug=settings.debug,
        docs_url="/docs" if docs_enabled else None,
        redoc_url=None,
        openapi_url="/openapi.json" if docs_enabled else None,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.clock = clock
    app.state.window = window
    app.state.weather_provider = read_provider
    app.state.collection_service = collection_service

    app.add_middleware(GZipMiddleware, minimum_size=1024)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type"],
    )
    if settings.trusted_hosts:
        app.add_middleware(TrustedHostMiddleware, allowed_hosts=settings.trusted_hosts)

    @app.middleware("http")
    async def security_headers(request, call_next):
        response = await call_next(request)
        response.headers.setdefault("X-Content-Type-Options", "nosniff")
        response.headers.setdefault("X-Frame-Options", "DENY")
        response.headers.setdefault("Referrer-Policy", "no-referrer")
        if settings.is_production:
            response.headers.setdefault(
                "Strict-Transport-Security", "max-age=31536000; includeSubDomains"
            )
        return response

    @app.get("/", tags=["meta"])
    def root():
        return {"name": "weather-delivery", "status": "ok"}

    app.include_router(api_router)
    return app
