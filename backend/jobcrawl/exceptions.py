"""
Crawler error taxonomy.

Only NavigationTimeout and CrawlFailure escape their component. The rest are
raised and absorbed at their own boundary:

    ExtractionElementMissing   per card, card dropped
    StorageTransactionFailure  per batch, logged and reported as zero counts
    DeliveryFailure            per alert, reported as delivered=False

Duplicate links are not an error at all; the dedup gate counts them.
"""

from typing import Iterable, Optional


class CrawlerError(Exception):
    """Base class for every error raised by the crawler."""


class NavigationTimeout(CrawlerError):
    """A page never reached the expected state within the navigation timeout."""

    def __init__(self, source: str, url: str, timeout_ms: Optional[int] = None) -> None:
        self.source = source
        self.url = url
        self.timeout_ms = timeout_ms
        detail = f" after {timeout_ms}ms" if timeout_ms else ""
        super().__init__(f"{source}: navigation to {url} timed out{detail}")


class ExtractionElementMissing(CrawlerError):
    """A required sub-element of a job card could not be found."""

    def __init__(self, source: str, field: str) -> None:
        self.source = source
        self.field = field
        super().__init__(f"{source}: job card has no {field}")


class CrawlFailure(CrawlerError):
    """A whole crawl of one source failed; partial results are discarded."""

    def __init__(self, source: str, cause: BaseException) -> None:
        self.source = source
        self.cause = cause
        super().__init__(f"{source} crawl failed: {cause}")


class UnsupportedSource(CrawlerError):
    def __init__(self, source: str, supported: Iterable[str]) -> None:
        self.source = source
        self.supported = list(supported)
        names = ", ".join(f'"{name}"' for name in self.supported)
        super().__init__(f"Invalid source. Supported sources are {names}.")


class StorageTransactionFailure(CrawlerError):
    """A batch insert hit a hard database error and was rolled back."""


class DeliveryFailure(CrawlerError):
    """An alert email could not be delivered."""
