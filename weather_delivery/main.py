from __future__ import annotations

from weather_delivery.core.config import load_settings
from weather_delivery.core.logging import configure_logging
from weather_delivery.factory import create_app

settings = load_settings()
configure_logging(settings.log_level)
app = create_app(settings)
