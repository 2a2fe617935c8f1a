"""
==============================================================================
Health Check Endpoints
==============================================================================

System health status endpoints for monitoring and orchestration.

==============================================================================
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from app.db.database import get_db


router = APIRouter(prefix="/health", tags=["Health"])


class HealthController:
    """Controller for health check operations."""

    def __init__(self, db: Session):
        self._db = db

    def check_database(self) -> str:
        """Check database connectivity."""
        try:
            self._db.execute(text("SELECT 1"))
            return "healthy"
        except SQLAlchemyError:
            return "unhealthy"

    def get_health(self) -> dict:
        """Get full health status."""
        db_status = self.check_database()

        overall = "healthy" if db_status == "healthy" else "degraded"

        return {
            "status": overall,
            "components": {
                "api": "healthy",
                "database": db_status
            }
        }


@router.get("")
async def health_check(db: Session = Depends(get_db)):
    """
    Health check endpoint.

    Returns API and database status.
    """
    controller = HealthController(db)
    return controller.get_health()


@router.get("/ready")
async def readiness_check():
    """Readiness probe for container orchestration."""
    return {"ready": True}


@router.get("/live")
async def liveness_check():
    """Liveness probe for container orchestration."""
    return {"alive": True}
