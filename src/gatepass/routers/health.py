from datetime import datetime, timezone

from fastapi import APIRouter, HTTPException
from sqlmodel import Session, text

from gatepass.config import config
from gatepass.models.database import engine

health = APIRouter()


@health.get("/health")
async def health_check():
    """Basic health check endpoint"""
    return {
        "status": "healthy",
        "service": "gatepass",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "environment": config.get("environment") or "development",
    }


@health.get("/health/detailed")
async def detailed_health_check():
    """Detailed health check with database and configuration checks"""
    health_status = {
        "status": "healthy",
        "service": "gatepass",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "environment": config.get("environment") or "development",
        "checks": {},
    }

    # Database connectivity check
    try:
        with Session(engine) as session:
            result = session.exec(text("SELECT 1")).first()
            health_status["checks"]["database"] = "healthy" if result else "unhealthy"
    except Exception as e:
        health_status["checks"]["database"] = f"unhealthy: {str(e)}"
        health_status["status"] = "unhealthy"

    # Email delivery is optional: report it, never fail on it
    if config.get("mailgun_api_key") and config.get("mailgun_domain"):
        health_status["checks"]["email"] = "configured"
    else:
        health_status["checks"]["email"] = "disabled"

    if not config.get("auth0_domain"):
        health_status["checks"]["auth"] = "missing: AUTH0_DOMAIN"
        health_status["status"] = "unhealthy"
    else:
        health_status["checks"]["auth"] = "healthy"

    if health_status["status"] == "unhealthy":
        raise HTTPException(status_code=503, detail=health_status)

    return health_status
