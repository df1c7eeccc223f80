"""
Health check router with database and Redis connectivity verification.
"""
from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.orm import Session
import redis

from warranty_api.core.config import Settings, get_settings
from warranty_api.db.session import get_db

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check():
    """Basic health check - always returns OK."""
    return {"status": "ok"}


@router.get("/api/health")
def api_health_check(db: Session = Depends(get_db), settings: Settings = Depends(get_settings)):
    """
    Comprehensive health check verifying:
    - Database connectivity
    - Redis connectivity (if configured)
    - Warranty token secret presence

    Returns 200 if all critical services are healthy.
    Returns 503 if any critical service is down.
    """
    health_status = {
        "status": "ok",
        "services": {}
    }
    is_healthy = True

    # Check database
    try:
        db.execute(text("SELECT 1"))
        health_status["services"]["database"] = {"status": "ok"}
    except Exception as e:
        health_status["services"]["database"] = {"status": "error", "message": str(e)}
        is_healthy = False

    # Redis only backs the CPF lookup rate limiter, which fails open
    if settings.REDIS_URL:
        try:
            redis_client = redis.Redis.from_url(settings.REDIS_URL, socket_connect_timeout=2)
            redis_client.ping()
            health_status["services"]["redis"] = {"status": "ok"}
        except redis.ConnectionError:
            health_status["services"]["redis"] = {"status": "unavailable", "message": "Redis not connected"}
        except Exception as e:
            health_status["services"]["redis"] = {"status": "error", "message": str(e)}
    else:
        health_status["services"]["redis"] = {"status": "disabled"}

    health_status["services"]["warranty_tokens"] = {
        "status": "ok" if settings.WARRANTY_TOKEN_SECRET else "unconfigured"
    }

    if not is_healthy:
        health_status["status"] = "unhealthy"
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content=health_status
        )

    return health_status
