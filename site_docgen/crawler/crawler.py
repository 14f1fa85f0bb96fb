# === FILE: site_docgen/crawler/crawler.py ===
from __future__ import annotations

import asyncio
import time
from collections import deque
from typing import Deque, Optional, Set

from site_docgen.config import CrawlerConfig
from site_docgen.crawler.fetcher import Fetcher
from site_docgen.crawler.link_extractor import extract_links
from site_docgen.crawler.models import CrawlJob, JobStatus
from site_docgen.crawler.observer import CrawlObserver, NullObserver
from site_docgen.exceptions import CrawlFailedError
from site_docgen.logger import logger

__all__ = ("CrawlEngine",)


class CrawlEngine:
    """
    Breadth-first, strictly sequential site crawler.

    One page is handled at a time in FIFO frontier order, followed by a fixed
    ``request_delay`` pause. The visited set and the frontier live only inside
    :meth:`crawl`; callers see progress through the observer and the job.
    """

    def __init__(self, fetcher: Fetcher, config: Optional[CrawlerConfig] = None) -> None:
        self.fetcher = fetcher
        self.config = config or fetcher.config

    async def crawl(
        self,
        job: CrawlJob,
        observer: Optional[CrawlObserver] = None,
        cancel: Optional[asyncio.Event] = None,
    ) -> CrawlJob:
        """
        Discover every reachable page of ``job.base_url``.

        Returns the job in ``completed`` or ``cancelled`` state. Unexpected
        errors move it to ``failed``, are reported through
        ``observer.on_error`` and re-raised as :class:`CrawlFailedError`.
        """
        observer = observer or NullObserver()
        base = job.base_url
        job.start()
        logger.info("Старт обхода: %s (job %s)", base, job.job_id)
        start = time.monotonic()

        visited: Set[str] = set()
        frontier: Deque[str] = deque([base])
        queued: Set[str] = {base}
        job.pages_discovered = 1

        try:
            while frontier:
                if cancel is not None and cancel.is_set():
                    job.cancel()
                    logger.info("Обход %s отменён после %d страниц", base, len(job.pages))
                    break

                url = frontier.popleft()
                queued.discard(url)
                if url in visited:
                    observer.on_page_discovered(url, False)
                    continue

                if self.config.max_pages is not None and len(job.pages) >= self.config.max_pages:
                    logger.info("Достигнут лимит страниц (%d), очередь: %d", self.config.max_pages, len(frontier) + 1)
                    frontier.clear()
                    break

                visited.add(url)
                job.add_page(url)
                observer.on_page_discovered(url, True)
                job.last_modified[url] = await self.fetcher.last_modified(url)

                for link in await extract_links(self.fetcher, url, base, visited):
                    if link not in visited and link not in queued:
                        frontier.append(link)
                        queued.add(link)
                job.pages_discovered = len(visited) + len(frontier)

                await asyncio.sleep(self.config.request_delay)

            if job.status is JobStatus.CRAWLING:
                job.complete()
        except asyncio.CancelledError:
            if not job.status.terminal:
                job.cancel()
            logger.info("Задача обхода %s прервана", base)
            raise
        except Exception as exc:
            reason = f"{exc.__class__.__name__}: {exc}"
            logger.exception("Обход %s завершился ошибкой", base)
            if not job.status.terminal:
                job.fail(reason)
            observer.on_error(reason)
            raise CrawlFailedError(reason, job) from exc

        duration = time.monotonic() - start
        logger.info(
            "Завершено: %d страниц за %.2f с, статус %s",
            len(job.pages),
            duration,
            job.status.value,
        )
        try:
            observer.on_complete(job.summary())
        except Exception:
            # статус задачи уже окончательный, ошибка наблюдателя его не меняет
            logger.exception("Наблюдатель упал в on_complete (job %s)", job.job_id)
        return job
