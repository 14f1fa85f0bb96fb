# File: site_docgen/engine.py
"""site_docgen.engine: Фасад для CLI и внешнего слоя: запуск обхода, кеш, генерация документации."""

from __future__ import annotations

import asyncio
from datetime import timedelta
from typing import Callable, Dict, List, Optional

from pydantic import HttpUrl, TypeAdapter, ValidationError

from site_docgen.aggregator import assemble, build_page_record
from site_docgen.config import CrawlerConfig
from site_docgen.crawler.crawler import CrawlEngine
from site_docgen.crawler.fetcher import Fetcher, parse_http_date
from site_docgen.crawler.models import CrawlJob, DocumentArtifact, PageRecord, utcnow
from site_docgen.crawler.observer import CrawlObserver, LoggingObserver
from site_docgen.exceptions import CrawlFailedError, InvalidURLError, JobNotReadyError
from site_docgen.logger import logger
from site_docgen.parser.sitemap_parser import render_sitemap
from site_docgen.store import CrawlStore, InMemoryStore
from site_docgen.utils import normalize_url, strip_fragment

__all__ = ["Engine", "CrawlHandle"]

_HTTP_URL = TypeAdapter(HttpUrl)

FetcherFactory = Callable[[CrawlerConfig], Fetcher]


class CrawlHandle:
    """Ссылка на запущенный (или взятый из кеша) обход: ожидание результата и отмена."""

    def __init__(
        self,
        job: CrawlJob,
        task: Optional[asyncio.Task] = None,
        cancel_event: Optional[asyncio.Event] = None,
        cached: bool = False,
    ) -> None:
        self.job = job
        self.cached = cached
        self._task = task
        self._cancel = cancel_event or asyncio.Event()

    @property
    def done(self) -> bool:
        return self._task is None or self._task.done()

    def cancel(self) -> None:
        """Просит движок остановиться перед следующей страницей очереди."""
        self._cancel.set()

    async def wait(self) -> CrawlJob:
        """Ждёт окончания обхода; ошибка обхода пробрасывается как CrawlFailedError."""
        if self._task is not None:
            await asyncio.shield(self._task)
        return self.job


class Engine:
    """Фасад: валидация URL, реестр задач, кеш свежести, документация и аксессоры."""

    def __init__(
        self,
        config: Optional[CrawlerConfig] = None,
        store: Optional[CrawlStore] = None,
        fetcher_factory: Optional[FetcherFactory] = None,
    ) -> None:
        self.config = config or CrawlerConfig()
        self.store = store if store is not None else InMemoryStore()
        self._fetcher_factory: FetcherFactory = fetcher_factory or Fetcher
        self._running: Dict[str, CrawlHandle] = {}

    @property
    def freshness_window(self) -> timedelta:
        return timedelta(days=self.config.freshness_days)

    @staticmethod
    def validate_base_url(base_url: str) -> str:
        """
        Проверяет абсолютный http(s) URL и возвращает его каноническую форму.

        pydantic только валидирует, ключ строится тем же normalize_url, что и
        для найденных ссылок.
        """
        try:
            _HTTP_URL.validate_python(base_url)
        except ValidationError as exc:
            raise InvalidURLError(str(base_url), exc.errors()[0]["msg"]) from exc
        return normalize_url(strip_fragment(base_url.strip()))

    # ------------------------------------------------------------------ crawl

    def submit(self, base_url: str, observer: Optional[CrawlObserver] = None) -> CrawlHandle:
        """
        Запускает обход в фоне и сразу возвращает CrawlHandle.

        Свежий завершённый обход отдаётся из кеша, уже идущий обход того же
        сайта переиспользуется. Должен вызываться из работающего event loop.
        """
        url = self.validate_base_url(base_url)

        running = self._running.get(url)
        if running is not None and not running.done:
            logger.info("Обход %s уже выполняется, переиспользую задачу", url)
            return running

        existing = self.store.get_job(url)
        if existing is not None and existing.is_fresh(self.freshness_window):
            logger.info("Использую сохранённый обход для %s от %s", url, existing.completed_at)
            if observer is not None:
                observer.on_complete(existing.summary())
            return CrawlHandle(existing, cached=True)

        job = self.store.create_job(url)
        cancel = asyncio.Event()
        task = asyncio.get_running_loop().create_task(
            self._crawl(job, observer or LoggingObserver(), cancel),
            name=f"crawl:{url}",
        )
        handle = CrawlHandle(job, task, cancel)
        self._running[url] = handle

        def _forget(done: asyncio.Task) -> None:
            if self._running.get(url) is handle:
                del self._running[url]
            # забираем исключение: задачу могли запустить и не дождаться
            if not done.cancelled() and done.exception() is not None:
                logger.debug("Фоновый обход %s завершился ошибкой: %s", url, done.exception())

        task.add_done_callback(_forget)
        return handle

    async def start_crawl(self, base_url: str, observer: Optional[CrawlObserver] = None) -> CrawlJob:
        """Обход сайта до конца (или отдача из кеша)."""
        return await self.submit(base_url, observer).wait()

    async def _crawl(self, job: CrawlJob, observer: CrawlObserver, cancel: asyncio.Event) -> CrawlJob:
        try:
            async with self._fetcher_factory(self.config) as fetcher:
                return await CrawlEngine(fetcher, self.config).crawl(job, observer, cancel)
        except CrawlFailedError:
            raise
        except Exception as exc:
            reason = f"{exc.__class__.__name__}: {exc}"
            logger.error("Не удалось запустить обход %s: %s", job.base_url, reason)
            if not job.status.terminal:
                job.fail(reason)
            observer.on_error(reason)
            raise CrawlFailedError(reason, job) from exc

    # -------------------------------------------------------------- documents

    async def generate_document(self, base_url: str) -> DocumentArtifact:
        """
        Второй проход: загружает каждую найденную страницу, нормализует её,
        сохраняет PageRecord и собирает DocumentArtifact.
        """
        url = self.validate_base_url(base_url)
        job = self.store.get_job(url)
        if job is None:
            raise JobNotReadyError(url)
        if not job.status.terminal:
            raise JobNotReadyError(url, f"crawl is still {job.status.value}")

        records: List[PageRecord] = []
        async with self._fetcher_factory(self.config) as fetcher:
            for page_url in job.pages:
                result = await fetcher.fetch(page_url, timeout=self.config.page_timeout)
                last_modified = (
                    parse_http_date(result.last_modified)
                    or job.last_modified.get(page_url)
                    or utcnow().date()
                )
                records.append(build_page_record(page_url, result, last_modified))
                await asyncio.sleep(self.config.request_delay)

        failed = sum(1 for record in records if not record.ok)
        if failed:
            logger.warning("%d из %d страниц %s не загрузились", failed, len(records), url)

        self.store.save_pages(url, records)
        artifact = assemble(job, records)
        self.store.save_document(artifact)
        self.store.save_file(artifact.file_name, artifact.plain_text_bytes)
        logger.info("Документация для %s готова: %s", url, artifact.file_name)
        return artifact

    async def run(self, base_url: str, observer: Optional[CrawlObserver] = None) -> DocumentArtifact:
        """Обход + документация; для свежего кеша отдаёт уже собранный документ."""
        job = await self.start_crawl(base_url, observer)
        cached = self.store.get_document(job.base_url)
        if cached is not None and cached.job_id == job.job_id:
            return cached
        return await self.generate_document(job.base_url)

    # -------------------------------------------------------------- accessors

    def _lookup_key(self, url: str) -> Optional[str]:
        try:
            return self.validate_base_url(url)
        except InvalidURLError:
            return None

    def get_job(self, base_url: str) -> Optional[CrawlJob]:
        key = self._lookup_key(base_url)
        return self.store.get_job(key) if key else None

    def get_document(self, base_url: str) -> Optional[DocumentArtifact]:
        key = self._lookup_key(base_url)
        return self.store.get_document(key) if key else None

    def get_page(self, url: str) -> Optional[PageRecord]:
        key = self._lookup_key(url)
        return self.store.get_page(key) if key else None

    def get_file(self, name: str) -> Optional[bytes]:
        return self.store.get_file(name)

    def sitemap_xml(self, base_url: str) -> Optional[str]:
        job = self.get_job(base_url)
        return render_sitemap(job.pages) if job is not None else None
