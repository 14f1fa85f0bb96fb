# File: site_docgen/utils.py
"""site_docgen.utils: Утилитарные функции для обработки URL и имён файлов."""

from __future__ import annotations

import re
import uuid
from typing import Collection, List, Optional, Sequence
from urllib.parse import quote, urldefrag, urlparse, urlunparse

from site_docgen.logger import logger

__all__: Sequence[str] = (
    "normalize_url",
    "strip_fragment",
    "extract_hostname",
    "remove_duplicates",
    "export_file_name",
)

_UNSAFE_CHARS = re.compile(r"[^a-zA-Z0-9]")
_PATH_SAFE = "/%:@!$&'()*+,;=-._~"
_QUERY_SAFE = _PATH_SAFE + "?"


def strip_fragment(url: str) -> str:
    """Отрезает ``#fragment`` от URL."""
    return urldefrag(url)[0]


def normalize_url(url: str) -> str:
    """
    Canonical form used for visited-set membership and store keys: lowercase
    scheme and host, no fragment, trailing slash stripped, root collapsed to
    ``scheme://host``. Path and query are percent-encoded as UTF-8 (existing
    escapes are kept), so ``/über`` and ``/%C3%BCber`` are one page.
    """
    parsed = urlparse(url)
    scheme = parsed.scheme.lower()
    netloc = parsed.netloc.lower()
    path = quote(parsed.path, safe=_PATH_SAFE).rstrip("/")
    query = quote(parsed.query, safe=_QUERY_SAFE)
    if not path and not query:
        normalized = f"{scheme}://{netloc}"
    else:
        normalized = urlunparse((scheme, netloc, path, parsed.params, query, ""))
    if normalized != url:
        logger.debug("Normalized URL: %s -> %s", url, normalized)
    return normalized


def extract_hostname(url: str) -> Optional[str]:
    """Возвращает hostname (в нижнем регистре) или None, если URL не разбирается."""
    try:
        return urlparse(url).hostname
    except ValueError:
        return None


def remove_duplicates(urls: Collection[str]) -> List[str]:
    """Удаляет дубликаты из списка URL, сохраняя порядок."""
    unique = list(dict.fromkeys(urls))
    removed = len(urls) - len(unique)
    if removed:
        logger.debug("Removed %d duplicate URLs", removed)
    return unique


def export_file_name(base_url: str) -> str:
    """Имя файла текстового экспорта: ``<base_url без спецсимволов>_<uuid>.txt``."""
    return f"{_UNSAFE_CHARS.sub('_', base_url)}_{uuid.uuid4()}.txt"
