from fastapi import APIRouter, HTTPException
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from tripboard.core.database import SessionLocal
from tripboard.core.errors import StorageError
from tripboard.models import Trip
from tripboard.services.storage import get_storage
import asyncio
from datetime import datetime
from typing import Dict, Any

router = APIRouter()

HEALTHCHECK_OBJECT = ".healthcheck"


async def check_database() -> Dict[str, Any]:
    """Check database connectivity and basic operations."""
    try:
        db = SessionLocal()
        try:
            # Test basic connectivity
            result = db.execute(text("SELECT 1"))
            result.fetchone()

            trip_count = db.query(Trip).count()

            return {
                "status": "healthy",
                "trip_count": trip_count,
                "timestamp": datetime.now().isoformat()
            }
        finally:
            db.close()
    except SQLAlchemyError as e:
        return {
            "status": "unhealthy",
            "error": str(e),
            "timestamp": datetime.now().isoformat()
        }


async def check_storage() -> Dict[str, Any]:
    """Check that the bucket accepts writes, reads and removals."""
    storage = get_storage()
    path = f"{HEALTHCHECK_OBJECT}/{datetime.now().strftime('%Y%m%d%H%M%S%f')}"
    try:
        storage.upload(path, b"ok", "text/plain")
        data = storage.download(path)
        storage.remove([path])

        if data != b"ok":
            return {
                "status": "degraded",
                "bucket": storage.bucket,
                "error": "Stored object read back differently",
                "timestamp": datetime.now().isoformat()
            }

        return {
            "status": "healthy",
            "bucket": storage.bucket,
            "timestamp": datetime.now().isoformat()
        }
    except StorageError as e:
        return {
            "status": "unhealthy",
            "bucket": storage.bucket,
            "error": str(e),
            "timestamp": datetime.now().isoformat()
        }


@router.get("/healthz")
async def health_check():
    """
    Comprehensive health check endpoint.
    Returns 200 if all systems are healthy, 503 if any critical system is down.
    """
    db_check, storage_check = await asyncio.gather(
        check_database(),
        check_storage(),
        return_exceptions=True
    )

    # Handle exceptions
    if isinstance(db_check, Exception):
        db_check = {"status": "unhealthy", "error": str(db_check)}
    if isinstance(storage_check, Exception):
        storage_check = {"status": "unhealthy", "error": str(storage_check)}

    all_healthy = all(
        check.get("status") == "healthy"
        for check in [db_check, storage_check]
    )

    # Listings still work without storage; only the database is critical
    critical_healthy = db_check.get("status") == "healthy"

    overall_status = "healthy" if all_healthy else ("degraded" if critical_healthy else "unhealthy")

    response = {
        "status": overall_status,
        "timestamp": datetime.now().isoformat(),
        "checks": {
            "database": db_check,
            "storage": storage_check
        },
        "version": "1.0.0"
    }

    # Return appropriate HTTP status
    if overall_status == "unhealthy":
        raise HTTPException(status_code=503, detail=response)

    return response


@router.get("/health")
async def simple_health_check():
    """Simple health check for load balancers."""
    return {"status": "ok", "timestamp": datetime.now().isoformat()}
