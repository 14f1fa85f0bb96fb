# site_docgen/crawler/fetcher.py
"""
Fetcher module: GET and HEAD requests with per-call timeouts and soft failure.

Every network problem (timeout, refused connection, non-2xx status) is turned
into a :class:`FetchResult` carrying the reason; nothing is raised to the
crawl loop.
"""
from __future__ import annotations

import asyncio
from datetime import date
from email.utils import parsedate_to_datetime
from typing import Optional

from aiohttp import ClientError, ClientSession, ClientTimeout

from site_docgen.config import CrawlerConfig
from site_docgen.crawler.models import FetchResult, utcnow
from site_docgen.logger import logger

__all__ = ("Fetcher", "parse_http_date")


def parse_http_date(value: Optional[str]) -> Optional[date]:
    """Parse an RFC 7231 ``Last-Modified`` value into a UTC date, or None."""
    if not value:
        return None
    try:
        parsed = parsedate_to_datetime(value)
    except (TypeError, ValueError, IndexError):
        return None
    if parsed is None:
        return None
    return parsed.date()


class Fetcher:
    """Handles HTTP fetching with an identifying User-Agent and bounded timeouts."""

    def __init__(self, config: CrawlerConfig, session: Optional[ClientSession] = None) -> None:
        self.config = config
        self.session = session
        self._owns_session = session is None

    async def __aenter__(self) -> Fetcher:
        if self.session is None:
            self.session = ClientSession(
                headers={"User-Agent": self.config.user_agent},
                raise_for_status=False,
            )
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if self._owns_session and self.session and not self.session.closed:
            await self.session.close()

    def _session(self) -> ClientSession:
        if not self.session:
            raise RuntimeError("Session not initialized")
        return self.session

    async def fetch(self, url: str, timeout: Optional[float] = None) -> FetchResult:
        """
        GET *url* and return its text.

        Non-2xx statuses, timeouts and connection errors produce a result with
        ``error`` set and ``text`` None.
        """
        seconds = timeout if timeout is not None else self.config.page_timeout
        try:
            async with self._session().get(url, timeout=ClientTimeout(total=seconds)) as resp:
                if not 200 <= resp.status < 300:
                    logger.debug("GET %s -> HTTP %s", url, resp.status)
                    return FetchResult(url, status=resp.status, error=f"HTTP {resp.status}")
                text = await resp.text(errors="replace")
                return FetchResult(
                    url,
                    status=resp.status,
                    text=text,
                    last_modified=resp.headers.get("Last-Modified"),
                )
        except asyncio.TimeoutError:
            logger.warning("Timeout after %.1f s: %s", seconds, url)
            return FetchResult(url, error=f"timeout after {seconds:g}s")
        except (ClientError, ValueError) as exc:
            logger.warning("Failed %s: %s", url, exc)
            return FetchResult(url, error=str(exc) or exc.__class__.__name__)

    async def last_modified(self, url: str) -> date:
        """HEAD *url* for its ``Last-Modified`` date; falls back to today (UTC)."""
        today = utcnow().date()
        try:
            async with self._session().head(
                url, timeout=ClientTimeout(total=self.config.head_timeout), allow_redirects=True
            ) as resp:
                return parse_http_date(resp.headers.get("Last-Modified")) or today
        except (asyncio.TimeoutError, ClientError, ValueError) as exc:
            logger.debug("HEAD %s failed: %s", url, exc)
            return today
