# === FILE: site_docgen/cli.py ===
#!/usr/bin/env python3
"""
Точка входа для запуска SiteDocGen через командную строку.

Команды:
  crawl URL   Обойти сайт, собрать sitemap и документацию, сохранить артефакты
  config      Показать текущую конфигурацию

Общие опции:
  --config PATH       Путь к YAML/JSON-конфигу (default: configs/default.yaml, если есть)
  --log-level LEVEL   Уровень логирования (DEBUG, INFO, ...)
  --log-file PATH     Файл для логов (stdout, если не указан)
  --log-format FORMAT Формат логирования

Команда crawl опции:
  --markdown PATH     Сохранить Markdown-документацию
  --text PATH         Сохранить текстовый экспорт
  --sitemap PATH      Сохранить sitemap.xml
  --json PATH         Сохранить JSON-отчёт об обходе
  --no-content        Только sitemap, без второго прохода по страницам
  --limit INT         Макс. число страниц (override max_pages)
  --crawl-timeout SEC Таймаут всего обхода (секунд)

Дополнительно:
  --version, -v       Показать версию SiteDocGen

Пример:
  site-docgen crawl https://example.com --markdown docs/example.md --sitemap docs/sitemap.xml
"""
import asyncio
import sys
from pathlib import Path
from typing import Optional

import click

from site_docgen import __version__
from site_docgen.config import CrawlerConfig, load_config
from site_docgen.crawler.models import DocumentArtifact, JobSummary
from site_docgen.engine import Engine
from site_docgen.exceptions import DocGenError
from site_docgen.logger import DEFAULT_FORMAT, configure
from site_docgen.report import render_json, write_text

CONTEXT_SETTINGS = dict(help_option_names=["--help"])


def print_error(message: str):
    click.secho(message, fg='red', err=True)
    sys.exit(1)


def build_engine(cfg: CrawlerConfig) -> Engine:
    return Engine(cfg)


class ClickObserver:
    """Печатает прогресс обхода в терминал."""

    def __init__(self) -> None:
        self.count = 0

    def on_page_discovered(self, url: str, is_new: bool) -> None:
        if is_new:
            self.count += 1
            click.echo(f'[{self.count}] {url}', err=True)

    def on_complete(self, summary: JobSummary) -> None:
        click.echo(f'Crawl {summary.status.value}: {summary.pages} pages', err=True)

    def on_error(self, reason: str) -> None:
        click.secho(f'Crawl failed: {reason}', fg='red', err=True)


@click.group(context_settings=CONTEXT_SETTINGS)
@click.version_option(__version__, '--version', '-v', message='SiteDocGen, version %(version)s')
@click.option(
    '--config', '-c', 'config_path',
    default=None,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help='Путь к файлу конфигурации YAML/JSON.'
)
@click.option(
    '--log-level', 'log_level',
    default='INFO', show_default=True,
    type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']),
    help='Уровень логирования'
)
@click.option(
    '--log-file', 'log_file',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Путь к файлу логов (stdout, если не указан)'
)
@click.option(
    '--log-format', 'log_format',
    default=DEFAULT_FORMAT,
    show_default=True,
    help='Строка формата для логов'
)
@click.pass_context
def cli(ctx, config_path, log_level, log_file, log_format):
    """Группа команд SiteDocGen CLI."""
    configure(level=log_level, log_file=log_file, log_format=log_format)
    try:
        cfg = load_config(config_path)
    except Exception as e:
        print_error(f'Ошибка загрузки конфигурации: {e}')
    ctx.ensure_object(dict)
    ctx.obj['config'] = cfg


async def _crawl(engine: Engine, url: str, with_content: bool) -> Optional[DocumentArtifact]:
    observer = ClickObserver()
    if with_content:
        return await engine.run(url, observer)
    await engine.start_crawl(url, observer)
    return None


@cli.command('crawl', context_settings=CONTEXT_SETTINGS)
@click.argument('url')
@click.option(
    '--markdown', '-m', 'markdown_output',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Сохранить Markdown-документацию в файл'
)
@click.option(
    '--text', '-t', 'text_output',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Сохранить текстовый экспорт в файл'
)
@click.option(
    '--sitemap', '-s', 'sitemap_output',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Сохранить sitemap.xml в файл'
)
@click.option(
    '--json', '-j', 'json_output',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Сохранить JSON-отчёт об обходе в файл'
)
@click.option('--no-content', is_flag=True, help='Только sitemap, без загрузки содержимого страниц')
@click.option('--limit', '-l', 'limit', type=click.IntRange(min=1), default=None,
              help='Макс. число страниц (override max_pages)')
@click.option('--crawl-timeout', 'crawl_timeout', type=float, default=None,
              help='Таймаут всего обхода (секунд)')
@click.pass_context
def crawl(ctx, url, markdown_output, text_output, sitemap_output, json_output, no_content, limit, crawl_timeout):
    """Обойти сайт URL и сгенерировать документацию."""
    cfg: CrawlerConfig = ctx.obj['config']
    if limit is not None:
        cfg = cfg.model_copy(update={'max_pages': limit})
    if no_content and (markdown_output or text_output):
        print_error('--markdown/--text требуют загрузки содержимого (уберите --no-content)')

    engine = build_engine(cfg)
    click.echo(f'Starting crawl: {url}', err=True)
    try:
        coro = _crawl(engine, url, not no_content)
        if crawl_timeout:
            artifact = asyncio.run(asyncio.wait_for(coro, timeout=crawl_timeout))
        else:
            artifact = asyncio.run(coro)
    except asyncio.TimeoutError:
        print_error(f'Обход не завершён за {crawl_timeout} секунд')
    except DocGenError as e:
        print_error(f'Ошибка при обходе: {e}')

    job = engine.get_job(url)
    if job is None:
        print_error(f'Задача обхода для {url} не найдена')

    written = False
    if markdown_output:
        click.echo(f'Markdown: {write_text(artifact.markdown, markdown_output)}')
        written = True
    if text_output:
        click.echo(f'Text export: {write_text(artifact.plain_text, text_output)}')
        written = True
    if sitemap_output:
        click.echo(f'Sitemap: {write_text(engine.sitemap_xml(url), sitemap_output)}')
        written = True
    if json_output:
        pages = engine.store.pages_for(job.base_url)
        click.echo(f'JSON report: {render_json(job, pages, json_output)}')
        written = True

    # Без файлов вывода печатаем в stdout
    if not written:
        click.echo(artifact.markdown if artifact is not None else engine.sitemap_xml(url))


@cli.command('config', context_settings=CONTEXT_SETTINGS)
@click.pass_context
def show_config(ctx):
    """Показать текущую конфигурацию в JSON."""
    cfg = ctx.obj['config']
    click.echo(cfg.model_dump_json(indent=2))


if __name__ == "__main__":
    cli()
