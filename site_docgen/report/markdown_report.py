# File: site_docgen/report/markdown_report.py
"""site_docgen.report.markdown_report: Генерация Markdown-документации с помощью Jinja2."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Any, Mapping, Sequence, Union

from jinja2 import Environment, FileSystemLoader, StrictUndefined, select_autoescape

DEFAULT_TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates"
TEMPLATE_NAME = "document.md.j2"


def _environment(template_dir: Union[Path, str]) -> Environment:
    return Environment(
        loader=FileSystemLoader(str(template_dir)),
        autoescape=select_autoescape(["html", "xml"]),
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
        undefined=StrictUndefined,
    )


def render_markdown(
    base_url: str,
    urls: Sequence[str],
    pages: Sequence[Mapping[str, Any]],
    generated_at: datetime,
    template_dir: Union[Path, str] = DEFAULT_TEMPLATE_DIR,
) -> str:
    """Рендерит Markdown-документ сайта из шаблона.

    Args:
        base_url: корневой URL обхода (заголовок документа).
        urls: все обнаруженные страницы в порядке обхода (раздел «Site structure»).
        pages: секции страниц: ``url``, ``ok``, ``summary``, ``body``.
        generated_at: время генерации для подвала.
        template_dir: директория с Jinja2-шаблонами.

    Пример:
    ```python
    from site_docgen.report.markdown_report import render_markdown
    text = render_markdown(job.base_url, job.pages, sections, generated_at)
    ```
    """
    template = _environment(template_dir).get_template(TEMPLATE_NAME)
    context: dict[str, Any] = {
        "base_url": base_url,
        "urls": list(urls),
        "pages": list(pages),
        "generated_at": generated_at.strftime("%Y-%m-%d %H:%M:%S %Z").strip(),
    }
    return template.render(**context)
