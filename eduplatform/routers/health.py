"""Health check endpoint."""
from fastapi import APIRouter
import logging

from ..core.config import settings
from ..core.database import health_check_db
from ..utils.time import utcnow

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/health", tags=["Health"])


@router.get("")
async def health_check():
    """Service and database status; always 200 with the state in the body"""
    db_ok = await health_check_db()
    if not db_ok:
        logger.warning("Health check: database unreachable")
    return {
        "status": "healthy" if db_ok else "unhealthy",
        "database": "connected" if db_ok else "disconnected",
        "version": settings.app_version,
        "timestamp": utcnow().isoformat(),
    }
