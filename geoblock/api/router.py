"""
API router — aggregates all route modules.
"""
from fastapi import APIRouter
from geoblock.api.countries import router as countries_router
from geoblock.api.ip import router as ip_router
from geoblock.api.logs import router as logs_router
from geoblock.api.health import router as health_router

api_router = APIRouter()
api_router.include_router(countries_router)
api_router.include_router(ip_router)
api_router.include_router(logs_router)
api_router.include_router(health_router)
