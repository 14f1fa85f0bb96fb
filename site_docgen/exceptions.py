# File: site_docgen/exceptions.py
"""site_docgen.exceptions: Иерархия исключений SiteDocGen."""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from site_docgen.crawler.models import CrawlJob

__all__ = ["DocGenError", "InvalidURLError", "JobStateError", "JobNotReadyError", "CrawlFailedError"]


class DocGenError(Exception):
    """Base class for all SiteDocGen errors."""


class InvalidURLError(DocGenError, ValueError):
    """Base URL rejected before a crawl job was created."""

    def __init__(self, url: str, reason: str = "not a valid absolute http(s) URL") -> None:
        self.url = url
        self.reason = reason
        super().__init__(f"Invalid base URL {url!r}: {reason}")


class JobStateError(DocGenError):
    """Illegal crawl job status transition."""

    def __init__(self, current: str, target: str) -> None:
        self.current = current
        self.target = target
        super().__init__(f"Cannot move crawl job from {current!r} to {target!r}")


class CrawlFailedError(DocGenError):
    """Frontier processing broke down; the job is left in ``failed`` state."""

    def __init__(self, reason: str, job: Optional["CrawlJob"] = None) -> None:
        self.reason = reason
        self.job = job
        super().__init__(reason)


class JobNotReadyError(DocGenError):
    """No finished crawl job exists yet for the requested base URL."""

    def __init__(self, base_url: str, detail: str = "no crawl job") -> None:
        self.base_url = base_url
        super().__init__(f"{detail} for {base_url}")
