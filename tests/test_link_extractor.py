# File: tests/test_link_extractor.py
from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator

import pytest
import pytest_asyncio
from aiohttp import web

from site_docgen.config import CrawlerConfig
from site_docgen.crawler.fetcher import Fetcher
from site_docgen.crawler.link_extractor import extract_links, parse_links

BASE = "https://example.com"


def test_parse_links_resolves_against_page_url():
    html = '<a href="child">c</a><a href="../up">u</a><a href="/root">r</a>'
    links = parse_links(html, "https://example.com/docs/guide/", BASE, set())
    assert links == [
        "https://example.com/docs/guide/child",
        "https://example.com/docs/up",
        "https://example.com/root",
    ]


def test_parse_links_strips_fragments_and_deduplicates():
    html = (
        '<a href="/a#top">1</a><a href="/a#bottom">2</a><a href="/a">3</a>'
        '<a href="#section">self</a><a href="/b?x=1#frag">b</a>'
    )
    links = parse_links(html, "https://example.com/page", BASE, {"https://example.com/page"})
    assert links == ["https://example.com/a", "https://example.com/b?x=1"]


def test_parse_links_filters_through_classifier():
    html = (
        '<a href="https://other.com/x">ext</a>'
        '<a href="https://blog.example.com/">sub</a>'
        '<a href="/logo.PNG">img</a>'
        '<a href="/wp-admin/">admin</a>'
        '<a href="mailto:me@example.com">mail</a>'
        '<a href="javascript:void(0)">js</a>'
        '<a href="/visited">seen</a>'
        '<a href="/ok">ok</a>'
    )
    links = parse_links(html, BASE, BASE, {"https://example.com/visited"})
    assert links == ["https://example.com/ok"]


def test_one_bad_href_does_not_abort_extraction():
    html = '<a href="http://[::1">broken</a><a href="">empty</a><a>no href</a><a href=" /fine ">fine</a>'
    assert parse_links(html, BASE, BASE, set()) == ["https://example.com/fine"]


def test_parse_links_handles_malformed_markup():
    html = "<div><a href='/single'>s<a href=/unquoted>u</div><p><a HREF=\"/upper\">x"
    assert parse_links(html, BASE, BASE, set()) == [
        "https://example.com/single",
        "https://example.com/unquoted",
        "https://example.com/upper",
    ]


def test_root_link_collapses_to_base():
    assert parse_links('<a href="/">home</a>', "https://example.com/about", BASE, {BASE}) == []


# --------------------------------------------------------------------------- #
#                       Network behaviour (local server)                      #
# --------------------------------------------------------------------------- #


async def _serve_app(app: web.Application, port: int) -> AsyncIterator[str]:
    """Start *app* on *port*, yield base URL, ensure cleanup."""
    runner = web.AppRunner(app)
    await runner.setup()
    site = web.TCPSite(runner, "localhost", port)
    await site.start()
    try:
        yield f"http://localhost:{port}"
    finally:
        await runner.cleanup()


@pytest_asyncio.fixture
async def link_server(unused_tcp_port: int) -> AsyncIterator[str]:
    app = web.Application()

    async def handle_root(_):
        return web.Response(text='<a href="/one">1</a><a href="/two#x">2</a>', content_type="text/html")

    async def handle_error(_):
        return web.Response(text='<a href="/hidden">h</a>', status=500, content_type="text/html")

    async def handle_slow(_):
        await asyncio.sleep(2)
        return web.Response(text='<a href="/late">l</a>', content_type="text/html")

    app.router.add_get("/", handle_root)
    app.router.add_get("/error", handle_error)
    app.router.add_get("/slow", handle_slow)

    async for url in _serve_app(app, unused_tcp_port):
        yield url


@pytest.mark.asyncio()
async def test_extract_links_over_http(link_server: str):
    config = CrawlerConfig(request_delay=0, user_agent="DocGenTest/1.0")
    async with Fetcher(config) as fetcher:
        links = await extract_links(fetcher, link_server, link_server, {link_server})
    assert links == [f"{link_server}/one", f"{link_server}/two"]


@pytest.mark.asyncio()
async def test_non_success_status_means_no_links(link_server: str):
    async with Fetcher(CrawlerConfig(request_delay=0)) as fetcher:
        assert await extract_links(fetcher, f"{link_server}/error", link_server, set()) == []
        assert await extract_links(fetcher, f"{link_server}/missing", link_server, set()) == []


@pytest.mark.asyncio()
async def test_timeout_means_no_links(link_server: str):
    config = CrawlerConfig(request_delay=0, link_timeout=0.3)
    async with Fetcher(config) as fetcher:
        assert await extract_links(fetcher, f"{link_server}/slow", link_server, set()) == []


@pytest.mark.asyncio()
async def test_connection_refused_means_no_links(unused_tcp_port: int):
    dead = f"http://localhost:{unused_tcp_port}"
    async with Fetcher(CrawlerConfig(request_delay=0, link_timeout=1.0)) as fetcher:
        assert await extract_links(fetcher, dead, dead, set()) == []


def test_links_are_percent_encoded_once():
    html = '<a href="/über">u</a><a href="/a b">s</a><a href="/%C3%BCber">dup</a><a href="/q?x=a b">q</a>'
    assert parse_links(html, BASE, BASE, set()) == [
        "https://example.com/%C3%BCber",
        "https://example.com/a%20b",
        "https://example.com/q?x=a%20b",
    ]
