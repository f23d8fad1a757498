from fastapi import APIRouter
from jobcrawl.api import alerts, crawl, jobs, system

api_router = APIRouter()
api_router.include_router(crawl.router, prefix="/api", tags=["crawl"])
api_router.include_router(jobs.router, prefix="/api", tags=["jobs"])
api_router.include_router(alerts.router, prefix="/api", tags=["alerts"])
api_router.include_router(system.router, tags=["system"])
