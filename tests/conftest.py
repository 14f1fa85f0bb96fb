# File: tests/conftest.py
from __future__ import annotations

from datetime import date
from typing import Callable, Dict, List, Optional

import pytest

from site_docgen.config import CrawlerConfig
from site_docgen.crawler.models import FetchResult
from site_docgen.engine import Engine
from site_docgen.store import InMemoryStore

#: homepage links to /about and /contact, both link back home and off-site
EXAMPLE_SITE: Dict[str, str] = {
    "https://example.com": (
        "<html><body><h1>Home</h1>"
        '<a href="/about">About</a> <a href="/contact#form">Contact</a>'
        "</body></html>"
    ),
    "https://example.com/about": (
        '<html><body><p>About us</p><a href="/">Home</a><a href="https://other.com">Other</a></body></html>'
    ),
    "https://example.com/contact": (
        '<html><body><p>Contact</p><a href="/">Home</a><a href="https://other.com/x">X</a></body></html>'
    ),
}


class FakeFetcher:
    """In-process stand-in for :class:`site_docgen.crawler.fetcher.Fetcher`.

    *pages* maps URL → HTML; URLs listed in *timeouts* fail like a timed-out
    request, anything unknown answers 404.
    """

    def __init__(
        self,
        config: CrawlerConfig,
        pages: Dict[str, str],
        timeouts: tuple[str, ...] = (),
        modified: Optional[Dict[str, date]] = None,
    ) -> None:
        self.config = config
        self.pages = pages
        self.timeouts = set(timeouts)
        self.modified = modified or {}
        self.calls: List[tuple[str, str]] = []

    async def __aenter__(self) -> "FakeFetcher":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        return None

    async def fetch(self, url: str, timeout: Optional[float] = None) -> FetchResult:
        self.calls.append(("GET", url))
        if url in self.timeouts:
            return FetchResult(url, error=f"timeout after {timeout:g}s")
        if url not in self.pages:
            return FetchResult(url, status=404, error="HTTP 404")
        return FetchResult(url, status=200, text=self.pages[url])

    async def last_modified(self, url: str) -> date:
        self.calls.append(("HEAD", url))
        return self.modified.get(url, date(2024, 1, 1))


@pytest.fixture()
def config() -> CrawlerConfig:
    """Config without politeness delay so tests stay fast."""
    return CrawlerConfig(request_delay=0)


@pytest.fixture()
def make_engine(config) -> Callable[..., tuple[Engine, List[FakeFetcher]]]:
    """
    Build an Engine over a fake site. Returns the engine and the list of
    fetchers it created (one per crawl / document pass).
    """

    def _make(
        pages: Dict[str, str] = EXAMPLE_SITE,
        timeouts: tuple[str, ...] = (),
        cfg: Optional[CrawlerConfig] = None,
    ) -> tuple[Engine, List[FakeFetcher]]:
        created: List[FakeFetcher] = []

        def factory(c: CrawlerConfig) -> FakeFetcher:
            fetcher = FakeFetcher(c, pages, timeouts)
            created.append(fetcher)
            return fetcher

        return Engine(cfg or config, store=InMemoryStore(), fetcher_factory=factory), created

    return _make
