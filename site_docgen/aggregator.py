# File: site_docgen/aggregator.py
"""site_docgen.aggregator: Сборка документации сайта из записей страниц."""

from __future__ import annotations

from datetime import date, datetime
from typing import Dict, Iterable, List, Optional, Sequence, TypedDict

from site_docgen.crawler.models import CrawlJob, DocumentArtifact, FetchResult, PageRecord, utcnow
from site_docgen.parser.html_parser import normalize, summarize, to_markdown, to_plain_text
from site_docgen.report.markdown_report import render_markdown
from site_docgen.utils import export_file_name

__all__ = [
    "PAGE_SEPARATOR",
    "SUMMARY_LIMIT",
    "PageSection",
    "failure_marker",
    "build_page_record",
    "assemble_plain_text",
    "assemble",
]

PAGE_SEPARATOR = "\n\n--- New Page ---\n\n"
SUMMARY_LIMIT = 300


class PageSection(TypedDict):
    """Секция страницы в Markdown-шаблоне."""

    url: str
    ok: bool
    summary: str
    body: str


def failure_marker(url: str, reason: Optional[str]) -> str:
    """Явная отметка о неудачной загрузке вместо пустого содержимого."""
    return f"[content unavailable: {url} ({reason or 'unknown error'})]"


def _unavailable_text(url: str) -> str:
    return f"Content unavailable for {url}."


def _empty_text(url: str) -> str:
    return f"No text content on {url}."


def build_page_record(url: str, result: FetchResult, last_modified: date) -> PageRecord:
    """Превращает результат загрузки в PageRecord (нормализация + краткое содержание)."""
    if not result.ok:
        marker = failure_marker(url, result.error)
        return PageRecord(
            url=url,
            content=marker,
            summary=marker,
            last_modified=last_modified,
            html=None,
            error=result.error or "unknown error",
        )
    semantic = normalize(result.text or "")
    return PageRecord(
        url=url,
        content=semantic,
        summary=summarize(semantic, SUMMARY_LIMIT),
        last_modified=last_modified,
        html=result.text,
    )


def _ordered(job: CrawlJob, pages: Iterable[PageRecord]) -> List[tuple[str, Optional[PageRecord]]]:
    by_url: Dict[str, PageRecord] = {page.url: page for page in pages}
    return [(url, by_url.get(url)) for url in job.pages]


def assemble_plain_text(job: CrawlJob, pages: Iterable[PageRecord]) -> str:
    """Текстовый экспорт: страницы в порядке обхода, разделённые ``--- New Page ---``."""
    chunks: List[str] = []
    for url, page in _ordered(job, pages):
        if page is None or not page.ok:
            chunks.append(_unavailable_text(url))
        else:
            chunks.append(to_plain_text(page.content) or _empty_text(url))
    return PAGE_SEPARATOR.join(chunks)


def _sections(job: CrawlJob, pages: Iterable[PageRecord]) -> Sequence[PageSection]:
    sections: List[PageSection] = []
    for url, page in _ordered(job, pages):
        if page is None or not page.ok:
            sections.append(PageSection(url=url, ok=False, summary="", body=""))
            continue
        sections.append(
            PageSection(url=url, ok=True, summary=page.summary, body=to_markdown(page.content))
        )
    return sections


def assemble(
    job: CrawlJob,
    pages: Iterable[PageRecord],
    *,
    generated_at: Optional[datetime] = None,
    file_name: Optional[str] = None,
) -> DocumentArtifact:
    """Собирает Markdown-отчёт и текстовый экспорт для задачи обхода."""
    pages = list(pages)
    generated_at = generated_at or utcnow()
    markdown = render_markdown(job.base_url, job.pages, _sections(job, pages), generated_at)
    return DocumentArtifact(
        job_id=job.job_id,
        base_url=job.base_url,
        markdown=markdown,
        plain_text=assemble_plain_text(job, pages),
        generated_at=generated_at,
        file_name=file_name or export_file_name(job.base_url),
    )
