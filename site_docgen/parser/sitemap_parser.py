# File: site_docgen/parser/sitemap_parser.py
"""site_docgen.parser.sitemap_parser: Генерация и разбор sitemap.xml."""

from __future__ import annotations

from typing import Iterable, List

from lxml import etree

__all__ = ["SITEMAP_NS", "CHANGEFREQ", "PRIORITY", "render_sitemap", "parse_sitemap"]

SITEMAP_NS = "http://www.sitemaps.org/schemas/sitemap/0.9"
CHANGEFREQ = "weekly"
PRIORITY = "0.7"

_XML_DECLARATION = '<?xml version="1.0" encoding="UTF-8"?>\n'


def _qname(tag: str) -> str:
    return f"{{{SITEMAP_NS}}}{tag}"


def render_sitemap(urls: Iterable[str]) -> str:
    """Строит sitemap.xml: один ``<url>`` на страницу с фиксированными changefreq/priority.

    Args:
        urls: адреса страниц в порядке обнаружения.

    Returns:
        XML-документ в виде строки (UTF-8 декларация, отступ 2 пробела).
    """
    root = etree.Element(_qname("urlset"), nsmap={None: SITEMAP_NS})
    for url in urls:
        entry = etree.SubElement(root, _qname("url"))
        etree.SubElement(entry, _qname("loc")).text = url
        etree.SubElement(entry, _qname("changefreq")).text = CHANGEFREQ
        etree.SubElement(entry, _qname("priority")).text = PRIORITY
    body = etree.tostring(root, encoding="unicode", pretty_print=True)
    return _XML_DECLARATION + body.rstrip("\n")


def parse_sitemap(xml_content: str) -> List[str]:
    """Разбирает XML content sitemap и возвращает список URL из тегов <loc>.

    Пример:
    ```python
    from site_docgen.parser.sitemap_parser import parse_sitemap

    with open('sitemap.xml', encoding='utf-8') as f:
        urls = parse_sitemap(f.read())
    ```
    """
    parser = etree.XMLParser(ns_clean=True, recover=True)
    root = etree.fromstring(xml_content.encode("utf-8"), parser=parser)
    if root is None:
        return []
    locs = root.findall(".//{*}loc")
    return [loc.text.strip() for loc in locs if loc.text]
