import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from jobcrawl.database import Database, count_jobs, get_database, verify_schema
from jobcrawl.schemas import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter()


def _storage_name(db: Database) -> str:
    return {"postgresql": "PostgreSQL", "sqlite": "SQLite"}.get(db.dialect, db.dialect)


@router.get("/health", response_model=HealthResponse)
async def health_check(db: Database = Depends(get_database)):
    timestamp = datetime.now(timezone.utc).isoformat()
    try:
        async with db.session() as session:
            job_count = await count_jobs(session)
    except (SQLAlchemyError, OSError) as e:
        logger.error(f"Health check failed: {e}")
        return JSONResponse(
            status_code=500,
            content={"status": "ERROR", "error": str(e), "timestamp": timestamp},
        )

    return HealthResponse(status="OK", storage=_storage_name(db), job_count=job_count, timestamp=timestamp)


@router.get("/api/verify-db")
async def verify_db(db: Database = Depends(get_database)):
    try:
        return await verify_schema(db)
    except (SQLAlchemyError, OSError) as e:
        logger.error(f"Database verification failed: {e}")
        return JSONResponse(status_code=500, content={"connected": False, "error": str(e)})
