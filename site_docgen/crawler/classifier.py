# site_docgen/crawler/classifier.py
"""
URL eligibility rules for the crawl frontier. Pure functions, no network I/O.
"""
from __future__ import annotations

from typing import AbstractSet, Iterable, Optional
from urllib.parse import urlparse

from site_docgen.config import DEFAULT_EXCLUDED_EXTENSIONS, DEFAULT_EXCLUDED_PATHS
from site_docgen.logger import logger
from site_docgen.utils import extract_hostname

__all__ = ("is_eligible", "is_static_asset", "is_excluded_path")

_WEB_SCHEMES = ("http", "https")


def is_static_asset(path: str, extensions: Iterable[str] = DEFAULT_EXCLUDED_EXTENSIONS) -> bool:
    """Return True if *path* ends with a static-asset extension (case-insensitive)."""
    return path.lower().endswith(tuple(extensions))


def is_excluded_path(path: str, fragments: Iterable[str] = DEFAULT_EXCLUDED_PATHS) -> bool:
    """Return True if *path* contains an admin/auth/shop substring."""
    lowered = path.lower()
    return any(fragment in lowered for fragment in fragments)


def is_eligible(
    candidate_url: str,
    base_url: str,
    visited: AbstractSet[str],
    *,
    excluded_extensions: Iterable[str] = DEFAULT_EXCLUDED_EXTENSIONS,
    excluded_paths: Iterable[str] = DEFAULT_EXCLUDED_PATHS,
) -> bool:
    """
    Decide whether *candidate_url* should be crawled as part of *base_url*'s site.

    Rejects unparseable or non-http(s) URLs, other hostnames (subdomains
    included), already visited URLs, static assets and admin/auth paths.
    Malformed input is a rejection, never an exception.
    """
    try:
        parsed = urlparse(candidate_url)
        host: Optional[str] = parsed.hostname
        base_host = extract_hostname(base_url)
    except ValueError as exc:
        logger.debug("Unparseable URL %r: %s", candidate_url, exc)
        return False

    if parsed.scheme.lower() not in _WEB_SCHEMES or not host:
        return False
    if host != base_host:
        return False
    if candidate_url in visited:
        return False
    if is_static_asset(parsed.path, excluded_extensions):
        return False
    if is_excluded_path(parsed.path, excluded_paths):
        return False
    return True
