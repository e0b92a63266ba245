from __future__ import annotations

from collections.abc import Callable
from datetime import datetime

from fastapi import Request

from weather_delivery.core.config import Settings
from weather_delivery.repositories.window import RetentionWindow
from weather_delivery.services.collection import CollectionService
from weather_delivery.services.weather import WeatherProvider


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_clock(request: Request) -> Callable[[], datetime]:
    return request.app.state.clock


def get_window(request: Request) -> RetentionWindow:
    return request.app.state.window


def get_weather_provider(request: Request) -> WeatherProvider:
    return request.app.state.weather_provider


def get_collection_service(request: Request) -> CollectionService:
    return request.app.state.collection_service
