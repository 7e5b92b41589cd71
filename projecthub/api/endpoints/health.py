from fastapi import APIRouter, Request
from sqlalchemy import text

from projecthub.core.logging_config import logger


router = APIRouter(tags=["Health"])


@router.get("/health")
async def health_check(request: Request):
    """Liveness plus a database round trip"""
    database = request.app.state.database
    try:
        async with database.session_factory() as session:
            await session.execute(text("SELECT 1"))
        db_status = "ok"
    except Exception as e:
        logger.error(f"[HealthCheck] Database check failed: {e}")
        db_status = "unavailable"

    return {
        "status": "healthy" if db_status == "ok" else "degraded",
        "database": db_status,
    }
