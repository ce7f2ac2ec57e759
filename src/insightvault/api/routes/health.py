"""Health check endpoint."""

from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import APIRouter, Depends
from motor.motor_asyncio import AsyncIOMotorDatabase

from insightvault.api.dependencies import get_database, get_settings
from insightvault.core.config import Settings
from insightvault.core.database import ping

router = APIRouter()


@router.get("/health")
async def health_check(
    database: AsyncIOMotorDatabase = Depends(get_database),
    settings: Settings = Depends(get_settings),
) -> Dict[str, Any]:
    """Liveness plus a MongoDB ping."""
    db_status = "healthy" if await ping(database) else "unhealthy"

    return {
        "status": "healthy" if db_status == "healthy" else "unhealthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "version": settings.app.version,
        "environment": settings.app.environment,
        "services": {
            "database": db_status,
        },
    }
