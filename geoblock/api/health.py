"""
Health check endpoints - used by load balancers, Docker healthcheck, and monitoring.

- GET /health       - basic liveness (always 200 if app running)
- GET /health/ready - readiness check (stores + outbound configuration)
- GET /health/deep  - deep check (readiness + expiry sweeper heartbeat)
"""
import logging
from datetime import datetime, timezone
from fastapi import APIRouter, Request

logger = logging.getLogger(__name__)
router = APIRouter(tags=["health"])

VERSION = "1.0.0"


@router.get("/health")
async def health_check():
    """Basic liveness check - returns 200 if the app is running."""
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "version": VERSION,
    }


@router.get("/health/ready")
async def readiness_check(request: Request):
    """
    Readiness check - verifies the stores answer and the geolocation key is set.
    Without the key every check-block call fails upstream.
    """
    checks = {
        "stores": _check_stores(request),
        "geolocation": _check_geolocation_config(request),
    }
    all_healthy = all(c["healthy"] for c in checks.values())
    return {
        "status": "ready" if all_healthy else "degraded",
        "checks": checks,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@router.get("/health/deep")
async def deep_health_check(request: Request):
    """
    Deep health check - readiness plus the expiry sweeper heartbeat.

    Checks:
    - Stores: registry and attempt log respond
    - Geolocation: API key configured
    - Sweeper: last run within two intervals
    """
    now = datetime.now(timezone.utc)
    checks = {
        "stores": _check_stores(request),
        "geolocation": _check_geolocation_config(request),
        "sweeper": _check_sweeper(request),
    }

    critical_healthy = checks["stores"]["healthy"]
    all_healthy = all(c.get("healthy", False) for c in checks.values())

    if all_healthy:
        status = "healthy"
    elif critical_healthy:
        status = "degraded"
    else:
        status = "unhealthy"

    return {
        "status": status,
        "checks": checks,
        "timestamp": now.isoformat(),
        "version": VERSION,
    }


def _check_stores(request: Request) -> dict:
    try:
        service = request.app.state.blocking_service
        return {
            "healthy": True,
            "blocked_countries": service.registry.count(),
            "attempt_logs": service.attempts.count(),
        }
    except Exception as e:
        logger.error("Health: store check failed: %s", str(e))
        return {"healthy": False, "error": str(e)}


def _check_geolocation_config(request: Request) -> dict:
    settings = request.app.state.settings
    if not settings.ipgeolocation_api_key:
        return {"healthy": False, "error": "IPGEOLOCATION_API_KEY not set"}
    return {"healthy": True}


def _check_sweeper(request: Request) -> dict:
    sweeper = getattr(request.app.state, "expiry_sweeper", None)
    if sweeper is None:
        return {"healthy": False, "error": "Sweeper not configured"}
    return {
        "healthy": sweeper.is_healthy(),
        "last_run": sweeper.last_run_at.isoformat() if sweeper.last_run_at else None,
        "runs": sweeper.runs,
        "failures": sweeper.failures,
    }
