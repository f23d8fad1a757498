"""
Site extractors, one per job board.

    get_extractor("naukri", max_pages=3) -> NaukriExtractor
"""

from typing import Optional

from jobcrawl.exceptions import UnsupportedSource
from jobcrawl.services.extractors.base import BaseExtractor, CrawlQuery, ExperienceRange, slugify
from jobcrawl.services.extractors.hirist import HiristExtractor
from jobcrawl.services.extractors.linkedin import LinkedInExtractor
from jobcrawl.services.extractors.naukri import NaukriExtractor
from jobcrawl.services.extractors.shine import ShineExtractor

EXTRACTORS: dict[str, type[BaseExtractor]] = {
    cls.name: cls for cls in (NaukriExtractor, ShineExtractor, HiristExtractor, LinkedInExtractor)
}

ALIASES = {
    "hirist.tech": "hirist",
}

SUPPORTED_SOURCES = list(EXTRACTORS)


def get_extractor(
    name: str,
    max_pages: Optional[int] = None,
    navigation_timeout_ms: int = 60000,
) -> BaseExtractor:
    key = (name or "").strip().lower()
    key = ALIASES.get(key, key)
    if key not in EXTRACTORS:
        raise UnsupportedSource(name, SUPPORTED_SOURCES)
    return EXTRACTORS[key](max_pages=max_pages, navigation_timeout_ms=navigation_timeout_ms)


__all__ = [
    "BaseExtractor",
    "CrawlQuery",
    "ExperienceRange",
    "EXTRACTORS",
    "SUPPORTED_SOURCES",
    "get_extractor",
    "slugify",
    "HiristExtractor",
    "LinkedInExtractor",
    "NaukriExtractor",
    "ShineExtractor",
]
