"""
Job Crawler API - Main Application Entry Point

This module initializes the FastAPI application with:
- Storage client creation and schema initialization
- Background retention cleanup scheduler
- CORS middleware and Prometheus metrics
- Error handlers mapping crawler errors onto JSON responses
- API router registration

Architecture:
    FastAPI App
    ├── Lifespan Management (startup/shutdown)
    ├── CORS Middleware
    ├── Prometheus Middleware (/metrics)
    └── API Router
        ├── POST /api/crawl     - Crawl one source and store new jobs
        ├── GET  /api/jobs      - Filter and page stored jobs
        ├── POST /api/alert     - Email recent matching jobs
        ├── GET  /health        - Liveness and job count
        └── GET  /api/verify-db - Schema check
"""

import logging
import traceback
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from jobcrawl.api import api_router
from jobcrawl.config import get_settings
from jobcrawl.database import Database
from jobcrawl.exceptions import CrawlFailure, UnsupportedSource
from jobcrawl.middleware import setup_metrics
from jobcrawl.scheduler import start_scheduler, stop_scheduler

settings = get_settings()

logging.basicConfig(
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    level=settings.log_level.upper(),
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application lifecycle events.

    Startup:
        1. Create the storage client and initialize the jobs table
        2. Start the retention cleanup scheduler

    Shutdown:
        1. Stop the scheduler
        2. Dispose of the connection pool
    """
    db = Database.from_settings(settings)
    await db.init()
    app.state.db = db
    scheduler = start_scheduler(db, settings)
    logger.info(f"Environment: {settings.environment}")
    yield
    stop_scheduler(scheduler)
    await db.dispose()
    logger.info("Database connections closed")


app = FastAPI(
    title="Job Crawler API",
    description="Crawls job boards, stores deduplicated postings and sends email alerts",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials="*" not in settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

setup_metrics(app)

app.include_router(api_router)


def _error_body(exc: Exception) -> dict:
    body = {"success": False, "error": str(exc)}
    if not get_settings().is_production:
        body["stack"] = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    return body


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    messages = []
    for error in exc.errors():
        field = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        messages.append(f"{field}: {error.get('msg')}" if field else error.get("msg"))
    return JSONResponse(status_code=400, content={"success": False, "error": "; ".join(messages)})


@app.exception_handler(UnsupportedSource)
async def unsupported_source_handler(request: Request, exc: UnsupportedSource):
    return JSONResponse(status_code=400, content={"success": False, "error": str(exc)})


@app.exception_handler(CrawlFailure)
async def crawl_failure_handler(request: Request, exc: CrawlFailure):
    logger.error(f"Crawl error: {exc}")
    return JSONResponse(status_code=500, content=_error_body(exc))


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.url.path}: {exc}")
    return JSONResponse(status_code=500, content=_error_body(exc))
