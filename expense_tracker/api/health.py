from fastapi import APIRouter, HTTPException
from datetime import datetime
from expense_tracker.core.config import settings
from expense_tracker.database import check_database_health

router = APIRouter(tags=["Health"])


@router.get("/health")
async def health_check():
    """Application health check endpoint"""
    db_health = await check_database_health()

    return {
        "status": "ok" if db_health["overall"] else "degraded",
        "timestamp": datetime.utcnow(),
        "database": "connected" if db_health["database"] else "disconnected",
        "redis": "connected" if db_health["redis"] else "disconnected",
        "service": settings.app_name
    }


@router.get("/health/ready")
async def readiness_check():
    """Kubernetes readiness probe endpoint"""
    db_health = await check_database_health()

    if not db_health["overall"]:
        raise HTTPException(
            status_code=503,
            detail="Service not ready - database connection failed"
        )

    return {"status": "ready"}


@router.get("/health/live")
async def liveness_check():
    """Kubernetes liveness probe endpoint"""
    return {"status": "alive", "timestamp": datetime.utcnow()}
