from __future__ import annotations

import random
from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient

from weather_delivery.core.config import Settings
from weather_delivery.factory import create_app


@pytest.fixture()
def settings() -> Settings:
    return Settings(
        _env_file=None,
        env="test",
        debug=True,
        docs_enabled=False,
        cors_origins=["http://localhost"],
        trusted_hosts=["testserver", "localhost"],
        timezone="UTC",
        weather_api_key=None,
        retention_hours=24 * 7,
        collection_enabled=False,
        collect_on_startup=False,
        collection_min_interval_seconds=300,
        random_seed=1234,
    )


@pytest.fixture()
def client(settings: Settings, now: datetime) -> TestClient:
    app = create_app(settings, clock=lambda: now)
    with TestClient(app) as client:
        yield client


@pytest.fixture()
def rng() -> random.Random:
    return random.Random(42)


@pytest.fixture()
def now() -> datetime:
    return datetime(2026, 1, 15, 12, 30, tzinfo=timezone.utc)
