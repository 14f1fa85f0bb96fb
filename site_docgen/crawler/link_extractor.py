# site_docgen/crawler/link_extractor.py
"""
Link extraction for SiteDocGen: fetch a page and return crawlable same-site links.
"""
from __future__ import annotations

from typing import AbstractSet, Iterable, List
from urllib.parse import urljoin

from bs4 import BeautifulSoup
from bs4.element import Tag

from site_docgen.config import DEFAULT_EXCLUDED_EXTENSIONS, DEFAULT_EXCLUDED_PATHS
from site_docgen.crawler.classifier import is_eligible
from site_docgen.crawler.fetcher import Fetcher
from site_docgen.logger import logger
from site_docgen.utils import normalize_url, remove_duplicates, strip_fragment

__all__ = ("parse_links", "extract_links")


def parse_links(
    html: str,
    page_url: str,
    base_url: str,
    visited: AbstractSet[str],
    *,
    excluded_extensions: Iterable[str] = DEFAULT_EXCLUDED_EXTENSIONS,
    excluded_paths: Iterable[str] = DEFAULT_EXCLUDED_PATHS,
) -> List[str]:
    """
    Extract eligible links from *html*.

    Each ``<a href>`` is resolved against *page_url*, stripped of its fragment,
    canonicalised and passed through the classifier. Order of first
    appearance is kept; duplicates are dropped.
    """
    soup = BeautifulSoup(html, "html.parser")
    links: List[str] = []
    for tag in soup.find_all("a", href=True):
        if not isinstance(tag, Tag):
            continue
        href_val = tag.get("href")
        if not isinstance(href_val, str) or not href_val.strip():
            continue
        try:
            absolute = normalize_url(strip_fragment(urljoin(page_url, href_val.strip())))
        except ValueError as exc:
            logger.debug("Skipping href %r on %s: %s", href_val, page_url, exc)
            continue
        if is_eligible(
            absolute,
            base_url,
            visited,
            excluded_extensions=excluded_extensions,
            excluded_paths=excluded_paths,
        ):
            links.append(absolute)
    return remove_duplicates(links)


async def extract_links(
    fetcher: Fetcher,
    page_url: str,
    base_url: str,
    visited: AbstractSet[str],
) -> List[str]:
    """
    Fetch *page_url* (link timeout) and return its eligible outbound links.

    Fails closed: any fetch failure or non-2xx status yields an empty list.
    """
    config = fetcher.config
    result = await fetcher.fetch(page_url, timeout=config.link_timeout)
    if not result.ok:
        logger.debug("No links from %s (%s)", page_url, result.error)
        return []
    return parse_links(
        result.text or "",
        page_url,
        base_url,
        visited,
        excluded_extensions=config.excluded_extensions,
        excluded_paths=config.excluded_paths,
    )
