# File: site_docgen/report/__init__.py
"""site_docgen.report: Запись артефактов (Markdown, текст, sitemap.xml, JSON) на диск для CLI и тестов."""

from __future__ import annotations

from pathlib import Path
from typing import Union

from site_docgen.report.json_report import build_report, render_json
from site_docgen.report.markdown_report import render_markdown


def write_text(content: str, path: Union[str, Path]) -> Path:
    """Сохраняет строку в файл в UTF-8, создавая родительские каталоги."""
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(content, encoding="utf-8")
    return p


__all__ = ["write_text", "render_json", "build_report", "render_markdown"]
