# File: tests/test_engine.py
"""Фасад Engine: валидация URL, кеш свежести, реестр задач, документация."""
from __future__ import annotations

import asyncio
import gc
from datetime import date, timedelta

import pytest

from site_docgen.crawler.models import JobStatus, utcnow
from site_docgen.engine import Engine
from site_docgen.exceptions import CrawlFailedError, InvalidURLError, JobNotReadyError
from site_docgen.parser.sitemap_parser import parse_sitemap
from site_docgen.store import InMemoryStore

BASE = "https://example.com"
PAGES = [BASE, f"{BASE}/about", f"{BASE}/contact"]


class Events:
    def __init__(self) -> None:
        self.completed = []
        self.errors = []

    def on_page_discovered(self, url, is_new):
        pass

    def on_complete(self, summary):
        self.completed.append(summary)

    def on_error(self, reason):
        self.errors.append(reason)


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("https://Example.COM/", BASE),
        ("https://example.com/docs/", f"{BASE}/docs"),
        ("http://example.com:8080", "http://example.com:8080"),
        ("https://example.com/#top", BASE),
    ],
)
def test_validate_base_url_canonical_form(raw, expected):
    assert Engine.validate_base_url(raw) == expected


@pytest.mark.parametrize("raw", ["", "example.com", "/relative", "ftp://example.com", "http://"])
def test_validate_base_url_rejects(raw):
    with pytest.raises(InvalidURLError) as exc_info:
        Engine.validate_base_url(raw)
    assert exc_info.value.url == raw


@pytest.mark.asyncio()
async def test_invalid_base_url_creates_no_job(make_engine):
    engine, created = make_engine()
    with pytest.raises(InvalidURLError):
        await engine.start_crawl("not a url")
    assert created == []
    assert engine.get_job("not a url") is None


@pytest.mark.asyncio()
async def test_start_crawl_completes_job(make_engine):
    engine, _ = make_engine()
    events = Events()
    job = await engine.start_crawl(BASE + "/", events)

    assert job.status is JobStatus.COMPLETED
    assert job.pages == PAGES
    assert engine.get_job(BASE) is job
    assert [s.status for s in events.completed] == [JobStatus.COMPLETED]
    assert events.errors == []


@pytest.mark.asyncio()
async def test_fresh_job_is_served_from_cache(make_engine):
    engine, created = make_engine()
    job = engine.store.create_job(BASE)
    job.start()
    job.complete(when=utcnow() - timedelta(days=10))

    events = Events()
    handle = engine.submit(BASE, events)

    assert handle.cached and handle.done
    assert await handle.wait() is job
    assert created == []
    assert events.completed[0].job_id == job.job_id


@pytest.mark.asyncio()
async def test_stale_job_is_replaced(make_engine):
    engine, created = make_engine()
    old = engine.store.create_job(BASE)
    old.start()
    old.complete(when=utcnow() - timedelta(days=40))

    job = await engine.start_crawl(BASE)

    assert job.job_id != old.job_id
    assert engine.get_job(BASE) is job
    assert len(created) == 1


@pytest.mark.asyncio()
async def test_failed_job_is_not_cached(make_engine):
    engine, _ = make_engine()
    old = engine.store.create_job(BASE)
    old.fail("boom")

    job = await engine.start_crawl(BASE)
    assert job.job_id != old.job_id
    assert job.status is JobStatus.COMPLETED


@pytest.mark.asyncio()
async def test_submit_reuses_running_crawl(make_engine):
    engine, created = make_engine()
    first = engine.submit(BASE)
    second = engine.submit(BASE)

    assert first is second
    await first.wait()
    assert len(created) == 1


@pytest.mark.asyncio()
async def test_cancel_before_first_page(make_engine):
    engine, _ = make_engine()
    handle = engine.submit(BASE)
    handle.cancel()
    job = await handle.wait()

    assert job.status is JobStatus.CANCELLED
    assert job.pages == []
    assert not job.is_fresh(timedelta(days=30))


@pytest.mark.asyncio()
async def test_fetcher_setup_failure_fails_job(config):
    def broken_factory(_cfg):
        raise RuntimeError("no network stack")

    engine = Engine(config, store=InMemoryStore(), fetcher_factory=broken_factory)
    events = Events()

    with pytest.raises(CrawlFailedError) as exc_info:
        await engine.start_crawl(BASE, events)

    job = engine.get_job(BASE)
    assert exc_info.value.job is job
    assert job.status is JobStatus.FAILED
    assert "no network stack" in job.error
    assert events.errors == [job.error]


# --------------------------------------------------------------------------- #
#                              Document generation                            #
# --------------------------------------------------------------------------- #


@pytest.mark.asyncio()
async def test_generate_document_requires_finished_job(make_engine):
    engine, _ = make_engine()
    with pytest.raises(JobNotReadyError):
        await engine.generate_document(BASE)

    engine.store.create_job(BASE)
    with pytest.raises(JobNotReadyError, match="pending"):
        await engine.generate_document(BASE)


@pytest.mark.asyncio()
async def test_run_builds_and_stores_artifacts(make_engine):
    engine, created = make_engine()
    artifact = await engine.run(BASE)
    job = engine.get_job(BASE)

    assert artifact.job_id == job.job_id
    assert artifact.base_url == BASE
    assert artifact.file_name.startswith("https___example_com_")
    assert artifact.file_name.endswith(".txt")
    assert engine.get_document(BASE) is artifact
    assert engine.get_file(artifact.file_name) == artifact.plain_text.encode("utf-8")

    record = engine.get_page(f"{BASE}/about")
    assert record.ok
    assert record.content.startswith("<p>About us</p>")
    assert record.summary.startswith("About us")
    assert record.last_modified == date(2024, 1, 1)
    assert [p.url for p in engine.store.pages_for(BASE)] == PAGES

    assert parse_sitemap(engine.sitemap_xml(BASE)) == PAGES
    # one fetcher for the crawl, one for the content pass
    assert len(created) == 2


@pytest.mark.asyncio()
async def test_run_reuses_cached_document(make_engine):
    engine, created = make_engine()
    first = await engine.run(BASE)
    second = await engine.run(BASE)
    assert second is first
    assert len(created) == 2


@pytest.mark.asyncio()
async def test_timed_out_page_marked_in_every_output(make_engine):
    engine, _ = make_engine(timeouts=(f"{BASE}/about",))
    artifact = await engine.run(BASE)

    record = engine.get_page(f"{BASE}/about")
    assert not record.ok
    assert record.html is None
    assert record.content == f"[content unavailable: {BASE}/about (timeout after 15s)]"

    assert f"Content unavailable for {BASE}/about." in artifact.plain_text
    assert f"_Content unavailable for {BASE}/about._" in artifact.markdown
    assert "Contact" in artifact.plain_text


def test_accessors_tolerate_bad_urls():
    engine = Engine()
    assert engine.get_job("::") is None
    assert engine.get_page("not a url") is None
    assert engine.get_document("") is None
    assert engine.sitemap_xml(BASE) is None
    assert engine.get_file("missing.txt") is None


@pytest.mark.asyncio()
async def test_non_ascii_and_space_paths_are_found_again(make_engine):
    site = {
        BASE: '<a href="/über">u</a><a href="/a b">s</a>',
        f"{BASE}/%C3%BCber": "<p>Umlaut</p>",
        f"{BASE}/a%20b": "<p>Space</p>",
    }
    engine, _ = make_engine(pages=site)
    await engine.run(BASE)
    job = engine.get_job(BASE)

    assert job.pages == [BASE, f"{BASE}/%C3%BCber", f"{BASE}/a%20b"]
    assert all(engine.get_page(url) is not None for url in job.pages)
    assert engine.get_page(f"{BASE}/über").content == "<p>Umlaut</p>"
    assert engine.get_page(f"{BASE}/a b").content == "<p>Space</p>"
    assert parse_sitemap(engine.sitemap_xml(BASE)) == job.pages


@pytest.mark.asyncio()
async def test_recrawl_drops_pages_of_replaced_job(make_engine):
    site = {BASE: '<a href="/old">old</a>', f"{BASE}/old": "<p>old</p>"}
    engine, _ = make_engine(pages=site)
    await engine.run(BASE)
    assert engine.get_page(f"{BASE}/old") is not None

    engine.get_job(BASE).completed_at = utcnow() - timedelta(days=40)
    site[BASE] = "<p>home</p>"
    await engine.run(BASE)

    assert engine.get_job(BASE).pages == [BASE]
    assert engine.get_page(f"{BASE}/old") is None
    assert [p.url for p in engine.store.pages_for(BASE)] == [BASE]


@pytest.mark.asyncio()
async def test_unawaited_failed_crawl_is_collected(config):
    def broken_factory(_cfg):
        raise RuntimeError("no network stack")

    loop = asyncio.get_running_loop()
    reported = []
    loop.set_exception_handler(lambda _loop, context: reported.append(context))
    try:
        engine = Engine(config, store=InMemoryStore(), fetcher_factory=broken_factory)
        handle = engine.submit(BASE, Events())
        while not handle.done:
            await asyncio.sleep(0)
        # let the done-callback run
        await asyncio.sleep(0)
        assert engine.get_job(BASE).status is JobStatus.FAILED

        del handle
        gc.collect()
        assert reported == []
    finally:
        loop.set_exception_handler(None)
