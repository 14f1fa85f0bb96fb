# site_docgen/crawler/observer.py
"""
Progress observer contract: the only channel from the crawl engine to its caller.

The engine calls these hooks synchronously from its loop; mapping them onto a
push stream, a polling endpoint or a log is the caller's business.
"""
from __future__ import annotations

from typing import Protocol, runtime_checkable

from site_docgen.crawler.models import JobSummary
from site_docgen.logger import logger

__all__ = ("CrawlObserver", "NullObserver", "LoggingObserver")


@runtime_checkable
class CrawlObserver(Protocol):
    def on_page_discovered(self, url: str, is_new: bool) -> None: ...

    def on_complete(self, summary: JobSummary) -> None: ...

    def on_error(self, reason: str) -> None: ...


class NullObserver:
    """Ignores every event."""

    def on_page_discovered(self, url: str, is_new: bool) -> None:
        pass

    def on_complete(self, summary: JobSummary) -> None:
        pass

    def on_error(self, reason: str) -> None:
        pass


class LoggingObserver:
    """Writes crawl progress to the project logger."""

    def __init__(self) -> None:
        self.discovered = 0

    def on_page_discovered(self, url: str, is_new: bool) -> None:
        if is_new:
            self.discovered += 1
            logger.info("[%d] %s", self.discovered, url)
        else:
            logger.debug("Already visited: %s", url)

    def on_complete(self, summary: JobSummary) -> None:
        logger.info(
            "Crawl %s for %s finished: %s, %d pages",
            summary.job_id,
            summary.base_url,
            summary.status.value,
            summary.pages,
        )

    def on_error(self, reason: str) -> None:
        logger.error("Crawl failed: %s", reason)
