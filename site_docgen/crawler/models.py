# site_docgen/crawler/models.py
"""
Data models for the SiteDocGen crawler: crawl jobs, page records, artifacts.
"""
from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from typing import Dict, FrozenSet, List, Optional, Set

from site_docgen.exceptions import JobStateError

__all__ = (
    "JobStatus",
    "JobSummary",
    "CrawlJob",
    "PageRecord",
    "DocumentArtifact",
    "FetchResult",
    "utcnow",
)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class JobStatus(str, enum.Enum):
    PENDING = "pending"
    CRAWLING = "crawling"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"

    @property
    def terminal(self) -> bool:
        return self in (JobStatus.COMPLETED, JobStatus.FAILED, JobStatus.CANCELLED)


_TRANSITIONS: Dict[JobStatus, FrozenSet[JobStatus]] = {
    JobStatus.PENDING: frozenset({JobStatus.CRAWLING, JobStatus.FAILED, JobStatus.CANCELLED}),
    JobStatus.CRAWLING: frozenset({JobStatus.COMPLETED, JobStatus.FAILED, JobStatus.CANCELLED}),
    JobStatus.COMPLETED: frozenset(),
    JobStatus.FAILED: frozenset(),
    JobStatus.CANCELLED: frozenset(),
}


@dataclass(frozen=True, slots=True)
class JobSummary:
    """Snapshot of a job handed to observers at terminal transitions."""

    job_id: str
    base_url: str
    status: JobStatus
    pages: int
    completed_at: Optional[datetime]


@dataclass(slots=True)
class CrawlJob:
    """One crawl run for a base URL.

    ``pages`` keeps discovery order and never holds duplicates; only the
    crawl engine appends to it (through :meth:`add_page`).
    """

    job_id: str
    base_url: str
    status: JobStatus = JobStatus.PENDING
    pages: List[str] = field(default_factory=list)
    last_modified: Dict[str, date] = field(default_factory=dict)
    pages_discovered: int = 0
    created_at: datetime = field(default_factory=utcnow)
    completed_at: Optional[datetime] = None
    error: Optional[str] = None
    _seen: Set[str] = field(default_factory=set, init=False, repr=False, compare=False)

    def __setattr__(self, name: str, value: object) -> None:
        if name in ("job_id", "base_url") and hasattr(self, name):
            raise AttributeError(f"CrawlJob.{name} is immutable")
        object.__setattr__(self, name, value)

    @property
    def pages_processed(self) -> int:
        return len(self.pages)

    @property
    def progress(self) -> int:
        """Percent of known pages already visited; 100 once completed."""
        if self.status is JobStatus.COMPLETED:
            return 100
        if not self.pages_discovered:
            return 0
        return min(99, int(self.pages_processed * 100 / self.pages_discovered))

    def add_page(self, url: str) -> bool:
        """Append *url* to the discovery sequence; False if it is already there."""
        if url in self._seen:
            return False
        self._seen.add(url)
        self.pages.append(url)
        return True

    def transition(self, target: JobStatus) -> None:
        if target not in _TRANSITIONS[self.status]:
            raise JobStateError(self.status.value, target.value)
        self.status = target

    def start(self) -> None:
        self.transition(JobStatus.CRAWLING)

    def complete(self, when: Optional[datetime] = None) -> None:
        self.transition(JobStatus.COMPLETED)
        self.completed_at = when or utcnow()

    def fail(self, reason: str) -> None:
        self.transition(JobStatus.FAILED)
        self.error = reason

    def cancel(self) -> None:
        self.transition(JobStatus.CANCELLED)

    def is_fresh(self, window: timedelta, now: Optional[datetime] = None) -> bool:
        """True for a completed job younger than *window*."""
        if self.status is not JobStatus.COMPLETED or self.completed_at is None:
            return False
        return (now or utcnow()) - self.completed_at < window

    def summary(self) -> JobSummary:
        return JobSummary(
            job_id=self.job_id,
            base_url=self.base_url,
            status=self.status,
            pages=len(self.pages),
            completed_at=self.completed_at,
        )


@dataclass(frozen=True, slots=True)
class FetchResult:
    """Outcome of a single GET: body on success, reason on failure."""

    url: str
    status: Optional[int] = None
    text: Optional[str] = None
    last_modified: Optional[str] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.text is not None


@dataclass(frozen=True, slots=True)
class PageRecord:
    """Crawl outcome for one discovered URL; ``content`` is a failure marker when ``html`` is None."""

    url: str
    content: str
    summary: str
    last_modified: date
    html: Optional[str] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True, slots=True)
class DocumentArtifact:
    """Markdown report and plain-text export generated for one crawl job."""

    job_id: str
    base_url: str
    markdown: str
    plain_text: str
    generated_at: datetime
    file_name: str

    @property
    def plain_text_bytes(self) -> bytes:
        return self.plain_text.encode("utf-8")
