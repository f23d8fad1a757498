from jobcrawl.schemas.job import (
    NOT_AVAILABLE,
    NOT_SPECIFIED,
    SOURCE_HIRIST,
    SOURCE_LINKEDIN,
    SOURCE_NAUKRI,
    SOURCE_SHINE,
    RawJobRecord,
    JobResponse,
    JobListResponse,
    CrawlRequest,
    CrawlResponse,
    AlertRequest,
    AlertResponse,
    HealthResponse,
)

__all__ = [
    "NOT_AVAILABLE",
    "NOT_SPECIFIED",
    "SOURCE_HIRIST",
    "SOURCE_LINKEDIN",
    "SOURCE_NAUKRI",
    "SOURCE_SHINE",
    "RawJobRecord",
    "JobResponse",
    "JobListResponse",
    "CrawlRequest",
    "CrawlResponse",
    "AlertRequest",
    "AlertResponse",
    "HealthResponse",
]
