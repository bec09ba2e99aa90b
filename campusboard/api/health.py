from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.orm import Session

from campusboard.database import get_db
from campusboard.redis import log_health

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check(db: Session = Depends(get_db)) -> dict:
    delivery_log = await log_health.get_status()
    try:
        db.execute(text("SELECT 1"))
    except Exception as exc:
        return {
            "status": "unhealthy",
            "database": "disconnected",
            "error": str(exc),
            "delivery_log": delivery_log,
        }
    return {
        "status": "healthy" if delivery_log["healthy"] else "degraded",
        "database": "connected",
        "delivery_log": delivery_log,
    }
