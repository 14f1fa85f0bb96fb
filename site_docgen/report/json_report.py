# site_docgen/report/json_report.py

"""
Генерация JSON-отчёта об обходе для проекта SiteDocGen.

Сводка задачи и краткие сведения по каждой странице сериализуются в файл.
"""
import json
from pathlib import Path
from typing import Any, Dict, Iterable

from site_docgen.crawler.models import CrawlJob, PageRecord


def build_report(job: CrawlJob, pages: Iterable[PageRecord] = ()) -> Dict[str, Any]:
    """Словарь отчёта: сводка задачи + страницы в порядке обхода."""
    records = {page.url: page for page in pages}
    entries = []
    for url in job.pages:
        record = records.get(url)
        last_modified = record.last_modified if record else job.last_modified.get(url)
        entries.append(
            {
                "url": url,
                "last_modified": last_modified.isoformat() if last_modified else None,
                "ok": record.ok if record else None,
                "summary": record.summary if record else None,
                "error": record.error if record else None,
            }
        )
    return {
        "job_id": job.job_id,
        "base_url": job.base_url,
        "status": job.status.value,
        "progress": job.progress,
        "pages_discovered": job.pages_discovered,
        "pages_processed": job.pages_processed,
        "completed_at": job.completed_at.isoformat() if job.completed_at else None,
        "error": job.error,
        "pages": entries,
    }


def render_json(job: CrawlJob, pages: Iterable[PageRecord], output_path: Path | str) -> Path:
    """
    Сохраняет отчёт об обходе в формате JSON по указанному пути.

    :param job: задача обхода
    :param pages: записи страниц (может быть пусто, если документация не строилась)
    :param output_path: путь к JSON-файлу
    :return: Path сохранённого файла
    """
    output = Path(output_path)
    output.parent.mkdir(parents=True, exist_ok=True)

    data = build_report(job, pages)

    # Запись в файл с отступами и Unicode
    with output.open('w', encoding='utf-8') as f:
        json.dump(data, f, ensure_ascii=False, indent=2)

    return output
