# File: site_docgen/store.py
"""site_docgen.store: Хранилище задач обхода, страниц, документов и файлов экспорта.

The engine and the assembler receive a :class:`CrawlStore` instance instead of
touching a module-level registry, so a persistent backend can replace
:class:`InMemoryStore` without changes to the crawl logic.
"""

from __future__ import annotations

import abc
import uuid
from typing import Dict, Iterable, List, Optional

from site_docgen.crawler.models import CrawlJob, DocumentArtifact, PageRecord

__all__ = ["CrawlStore", "InMemoryStore"]


class CrawlStore(abc.ABC):
    """Storage contract used by :class:`site_docgen.engine.Engine`."""

    @abc.abstractmethod
    def create_job(self, base_url: str) -> CrawlJob:
        """Create and register a fresh job for *base_url*, replacing any previous one and its pages."""

    @abc.abstractmethod
    def get_job(self, base_url: str) -> Optional[CrawlJob]: ...

    @abc.abstractmethod
    def save_pages(self, base_url: str, records: Iterable[PageRecord]) -> None: ...

    @abc.abstractmethod
    def get_page(self, url: str) -> Optional[PageRecord]: ...

    @abc.abstractmethod
    def pages_for(self, base_url: str) -> List[PageRecord]: ...

    @abc.abstractmethod
    def save_document(self, artifact: DocumentArtifact) -> None: ...

    @abc.abstractmethod
    def get_document(self, base_url: str) -> Optional[DocumentArtifact]: ...

    @abc.abstractmethod
    def save_file(self, name: str, content: bytes) -> None: ...

    @abc.abstractmethod
    def get_file(self, name: str) -> Optional[bytes]: ...

    @staticmethod
    def new_job_id() -> str:
        return str(uuid.uuid4())


class InMemoryStore(CrawlStore):
    """Dict-backed store, one instance per process (or per test)."""

    def __init__(self) -> None:
        self._jobs: Dict[str, CrawlJob] = {}
        self._pages: Dict[str, PageRecord] = {}
        self._site_pages: Dict[str, List[str]] = {}
        self._documents: Dict[str, DocumentArtifact] = {}
        self._files: Dict[str, bytes] = {}

    def create_job(self, base_url: str) -> CrawlJob:
        job = CrawlJob(job_id=self.new_job_id(), base_url=base_url)
        self._jobs[base_url] = job
        for url in self._site_pages.pop(base_url, []):
            self._pages.pop(url, None)
        self._documents.pop(base_url, None)
        return job

    def get_job(self, base_url: str) -> Optional[CrawlJob]:
        return self._jobs.get(base_url)

    def save_pages(self, base_url: str, records: Iterable[PageRecord]) -> None:
        urls: List[str] = []
        for record in records:
            self._pages[record.url] = record
            urls.append(record.url)
        self._site_pages[base_url] = urls

    def get_page(self, url: str) -> Optional[PageRecord]:
        return self._pages.get(url)

    def pages_for(self, base_url: str) -> List[PageRecord]:
        return [self._pages[url] for url in self._site_pages.get(base_url, []) if url in self._pages]

    def save_document(self, artifact: DocumentArtifact) -> None:
        self._documents[artifact.base_url] = artifact

    def get_document(self, base_url: str) -> Optional[DocumentArtifact]:
        return self._documents.get(base_url)

    def save_file(self, name: str, content: bytes) -> None:
        self._files[name] = content

    def get_file(self, name: str) -> Optional[bytes]:
        return self._files.get(name)
