from fastapi import APIRouter

from weather_delivery.api.routes import analysis, deliveries, meta, weather

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(meta.router, tags=["meta"])
api_router.include_router(weather.router, tags=["weather"])
api_router.include_router(deliveries.router, tags=["deliveries"])
api_router.include_router(analysis.router, tags=["analysis"])
