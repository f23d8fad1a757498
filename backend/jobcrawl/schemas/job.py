from pydantic import BaseModel, ConfigDict, Field, StringConstraints, field_validator
from pydantic.alias_generators import to_camel
from datetime import datetime, timezone
from typing import Annotated, Optional

NOT_AVAILABLE = "N/A"
NOT_SPECIFIED = "Not specified"

SOURCE_LINKEDIN = "LinkedIn"
SOURCE_NAUKRI = "Naukri"
SOURCE_SHINE = "Shine"
SOURCE_HIRIST = "Hirist.tech"

# Blank or whitespace-only search terms are rejected
SearchText = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


class RawJobRecord(BaseModel):
    """A job as extracted from one rendered card, before it is stored."""

    title: str = NOT_AVAILABLE
    company: str = NOT_AVAILABLE
    experience: str = NOT_AVAILABLE
    location: str = NOT_AVAILABLE
    skills: list[str] = Field(default_factory=list)
    salary: str = NOT_SPECIFIED
    link: str
    source: str
    posted_date: str = Field(default_factory=_now_iso)
    posted_date_original: Optional[str] = None

    @field_validator("title", "company", "experience", "location", mode="before")
    @classmethod
    def default_not_available(cls, value):
        if value is None or not str(value).strip():
            return NOT_AVAILABLE
        return str(value).strip()

    @field_validator("salary", mode="before")
    @classmethod
    def default_not_specified(cls, value):
        if value is None or not str(value).strip():
            return NOT_SPECIFIED
        return str(value).strip()

    @field_validator("skills", mode="before")
    @classmethod
    def clean_skills(cls, value):
        if not value:
            return []
        return [str(skill).strip() for skill in value if skill and str(skill).strip()]

    @field_validator("link")
    @classmethod
    def require_link(cls, value: str) -> str:
        value = value.strip()
        if not value or value == "#":
            raise ValueError("link is required")
        return value

    @field_validator("posted_date", mode="before")
    @classmethod
    def default_posted_date(cls, value):
        if value is None or not str(value).strip():
            return _now_iso()
        return str(value).strip()


class JobResponse(BaseModel):
    id: int
    title: str
    company: str
    experience: Optional[str] = None
    location: Optional[str] = None
    skills: list[str] = []
    salary: Optional[str] = None
    link: str
    source: str
    posted_date: Optional[str] = None
    posted_date_original: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class JobListResponse(BaseModel):
    success: bool = True
    count: int
    total: int
    page: int
    pages: int
    jobs: list[JobResponse]


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CrawlRequest(CamelModel):
    role: SearchText
    location: SearchText
    source: str = "naukri"
    experience: Optional[str] = None
    max_pages: Optional[int] = Field(default=None, ge=1, le=50)


class CrawlResponse(CamelModel):
    success: bool = True
    source: str
    role: str
    location: str
    total_jobs: int
    new_jobs: int
    duplicates: int
    failed: int = 0
    duration: str
    jobs: list[RawJobRecord]


class AlertRequest(BaseModel):
    email: str = Field(min_length=3, pattern=r"^[^@\s]+@[^@\s]+$")
    role: SearchText
    location: Optional[str] = None
    source: Optional[str] = None


class AlertResponse(BaseModel):
    success: bool = True
    sent: int
    message: str


class HealthResponse(CamelModel):
    status: str
    storage: str
    job_count: int
    timestamp: str
