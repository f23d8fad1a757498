#!/usr/bin/env python3
"""
Run one crawl from the command line, without the API server.

Uses the same settings (.env / environment) as the server, so the crawl
lands in the same database.

Run from backend directory:
    python -m scripts.run_crawl --source naukri --role "python developer" --location bangalore
    python -m scripts.run_crawl --source hirist --role "data engineer" --location pune --experience 2-5 --dry-run
"""

import argparse
import asyncio
import logging

from jobcrawl.config import get_settings
from jobcrawl.database import Database
from jobcrawl.exceptions import CrawlFailure, UnsupportedSource
from jobcrawl.services.browser import BrowserConfig
from jobcrawl.services.extractors import SUPPORTED_SOURCES, CrawlQuery, get_extractor
from jobcrawl.services.pipeline import crawl_and_store, crawl_source

logging.basicConfig(
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    level=logging.INFO,
)

logger = logging.getLogger(__name__)


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Crawl one job board")
    parser.add_argument("--source", default="naukri",
                        help=f"Source to crawl (options: {', '.join(SUPPORTED_SOURCES)})")
    parser.add_argument("--role", required=True, help="Job role to search for")
    parser.add_argument("--location", required=True, help="Location to search in")
    parser.add_argument("--experience", help='Years of experience, e.g. "3" or "2-5"')
    parser.add_argument("--max-pages", type=int, help="Page ceiling for this crawl")
    parser.add_argument("--dry-run", action="store_true", help="Print jobs instead of storing them")
    return parser.parse_args(argv)


async def run(args: argparse.Namespace) -> int:
    settings = get_settings()
    try:
        extractor = get_extractor(
            args.source,
            max_pages=args.max_pages or settings.max_pages,
            navigation_timeout_ms=settings.navigation_timeout_ms,
        )
    except UnsupportedSource as e:
        logger.error(str(e))
        return 2

    query = CrawlQuery(role=args.role, location=args.location, experience=args.experience)
    browser_config = BrowserConfig.from_settings(settings)

    if args.dry_run:
        try:
            records = await crawl_source(extractor, query, browser_config)
        except CrawlFailure as e:
            logger.error(str(e))
            return 1
        for record in records:
            print(f"{record.title} | {record.company} | {record.location} | {record.posted_date}")
            print(f"  {record.link}")
        print(f"\nTotal jobs found: {len(records)}")
        return 0

    db = Database.from_settings(settings)
    try:
        await db.init()
        result = await crawl_and_store(db, extractor, query, browser_config)
    except CrawlFailure as e:
        logger.error(str(e))
        return 1
    finally:
        await db.dispose()

    print("\n=== Crawl Complete ===")
    print(f"Source: {result.source}")
    print(f"Jobs found: {len(result.records)}")
    print(f"New jobs: {result.persisted.inserted}")
    print(f"Duplicates: {result.persisted.duplicates}")
    print(f"Duration: {result.duration:.2f} seconds")
    return 0


def main(argv=None) -> int:
    return asyncio.run(run(parse_args(argv)))


if __name__ == "__main__":
    raise SystemExit(main())
