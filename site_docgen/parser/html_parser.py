# === FILE: site_docgen/parser/html_parser.py ===
"""HTML content normalisation for SiteDocGen.

A crawled page is reduced to *semantic HTML*: only structurally meaningful
tags (headings, paragraphs, lists, tables, emphasis, links, images) survive,
everything presentational or interactive is dropped. The result is the input
for the document generators:

* :func:`normalize`: raw HTML → semantic HTML (idempotent).
* :func:`to_plain_text`: semantic HTML → plain text with ``•`` bullets.
* :func:`to_markdown`: semantic HTML → Markdown.
* :func:`summarize`: semantic HTML → one-line summary, 300 chars max.

All tag-structure decisions are made on a BeautifulSoup tree; regular
expressions are only used for the final whitespace cleanup.
"""
from __future__ import annotations

import re
from collections.abc import Sequence
from typing import Iterable, List

from bs4 import BeautifulSoup
from bs4.element import NavigableString, PageElement, PreformattedString, Tag

__all__: Sequence[str] = (
    "ALLOWED_TAGS",
    "normalize",
    "to_plain_text",
    "to_markdown",
    "summarize",
)

HEADINGS = frozenset(f"h{level}" for level in range(1, 7))

ALLOWED_TAGS = HEADINGS | frozenset(
    {
        "p", "ul", "ol", "li",
        "table", "tr", "td", "th", "thead", "tbody", "tfoot",
        "article", "section", "main", "blockquote", "pre", "code",
        "strong", "em", "b", "i", "a", "img", "time", "mark",
        "dl", "dt", "dd",
    }
)

_DROP_TAGS = (
    "head", "title", "meta", "link",
    "script", "style", "noscript", "iframe", "svg",
    "form", "input", "button", "select", "option", "textarea", "label", "fieldset", "legend",
)

_CHROME_TAGS = frozenset({"nav", "header", "footer", "aside", "menu"})
_CHROME_MARKERS = ("sidebar", "navigation", "navbar", "menu", "breadcrumb")

_PRESENTATION_ATTRS = frozenset({"class", "id", "style", "role"})
_PRESENTATION_PREFIXES = ("data-", "aria-", "on")

# unwrapped wrappers that would otherwise glue neighbouring blocks together
_BREAKING_TAGS = frozenset(
    {"div", "br", "hr", "figure", "figcaption", "address", "details", "summary", "center", "body", "html"}
)

_BLOCK_TEXT_TAGS = HEADINGS | frozenset(
    {"p", "ul", "ol", "table", "blockquote", "pre", "section", "article", "main", "dl"}
)

_HSPACE_RE = re.compile(r"[ \t\r\f\v]+")
_BLANK_LINES_RE = re.compile(r"\n{3,}")
_ANY_SPACE_RE = re.compile(r"\s+")

# upper bound on pipeline re-runs in normalize()
_MAX_PASSES = 4


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _decompose_all(tags: Iterable[Tag]) -> None:
    for tag in tags:
        if not tag.decomposed:
            tag.decompose()


def _is_chrome(tag: Tag) -> bool:
    if tag.name in _CHROME_TAGS:
        return True
    classes = tag.get("class") or []
    if isinstance(classes, str):
        classes = [classes]
    ident = tag.get("id") or ""
    haystack = " ".join([*classes, str(ident)]).lower()
    return any(marker in haystack for marker in _CHROME_MARKERS)


def _is_presentation_attr(name: str) -> bool:
    lowered = name.lower()
    return lowered in _PRESENTATION_ATTRS or lowered.startswith(_PRESENTATION_PREFIXES)


def _tidy_whitespace(text: str) -> str:
    text = _HSPACE_RE.sub(" ", text)
    text = "\n".join(line.strip(" ") for line in text.split("\n"))
    text = _BLANK_LINES_RE.sub("\n\n", text)
    return text.strip()


def _unwrap_block(tag: Tag) -> None:
    # a separator only where there is a neighbour to keep apart
    if tag.previous_sibling is not None:
        tag.insert_before("\n")
    if tag.next_sibling is not None:
        tag.insert_after("\n")
    tag.unwrap()


def _normalize_pass(raw_html: str) -> str:
    soup = BeautifulSoup(raw_html or "", "html.parser")

    # doctype, comments, CDATA, processing instructions
    for node in [n for n in soup.descendants if isinstance(n, PreformattedString)]:
        node.extract()

    _decompose_all(soup.find_all("head"))
    container: Tag = soup.body or soup

    _decompose_all(container.find_all(list(_DROP_TAGS)))

    # chrome detection reads class/id, so it runs before attributes are stripped
    _decompose_all(container.find_all(_is_chrome))

    for tag in container.find_all(True):
        tag.attrs = {k: v for k, v in tag.attrs.items() if not _is_presentation_attr(k)}

    for tag in container.find_all(True):
        if tag.name in ALLOWED_TAGS:
            continue
        if tag.name in _BREAKING_TAGS:
            _unwrap_block(tag)
        else:
            tag.unwrap()

    return _tidy_whitespace(container.decode_contents())


# ---------------------------------------------------------------------------
# Public functions
# ---------------------------------------------------------------------------


def normalize(raw_html: str) -> str:
    """Strip *raw_html* down to semantic HTML.

    Pipeline: drop doctype/comments and the head; isolate ``<body>`` (whole
    input if there is none); remove scripts, styles, embeds and form
    controls with their content; remove navigation chrome; strip
    presentation attributes; unwrap every tag outside :data:`ALLOWED_TAGS`;
    tidy whitespace.

    The pipeline is re-applied to its own output until nothing changes, so
    ``normalize(normalize(x)) == normalize(x)`` holds for any input.
    """
    result = _normalize_pass(raw_html)
    for _ in range(_MAX_PASSES):
        again = _normalize_pass(result)
        if again == result:
            break
        result = again
    return result


def to_plain_text(semantic: str) -> str:
    """Flatten semantic HTML to readable text.

    List items become ``• item`` lines, headings and paragraphs are separated
    by blank lines, table cells by spaces, and HTML entities are decoded
    (``&nbsp;`` turns into a plain space).
    """
    soup = BeautifulSoup(semantic or "", "html.parser")

    for br in soup.find_all("br"):
        br.replace_with("\n")
    for li in soup.find_all("li"):
        li.insert(0, "• ")
        li.append("\n")
    for tag in soup.find_all(["tr", "dt", "dd"]):
        tag.append("\n")
    for cell in soup.find_all(["td", "th"]):
        cell.append(" ")
    for tag in soup.find_all(sorted(_BLOCK_TEXT_TAGS)):
        tag.insert_before("\n\n")
        tag.append("\n\n")

    text = soup.get_text().replace("\xa0", " ")
    return _tidy_whitespace(text)


def summarize(semantic: str, limit: int = 300) -> str:
    """Single-line plain text of *semantic*, cut to *limit* characters plus ``...``."""
    text = _ANY_SPACE_RE.sub(" ", to_plain_text(semantic)).strip()
    if len(text) > limit:
        return text[:limit] + "..."
    return text


# ---------------------------------------------------------------------------
# Markdown rendering
# ---------------------------------------------------------------------------


def _inline(node: Tag) -> str:
    return "".join(_render(child) for child in node.children).strip()


def _render_list(node: Tag) -> str:
    ordered = node.name == "ol"
    lines: List[str] = []
    number = 0
    for child in node.children:
        if isinstance(child, Tag) and child.name == "li":
            number += 1
            marker = f"{number}." if ordered else "-"
            body = _inline(child).replace("\n", "\n  ")
            lines.append(f"{marker} {body}")
        elif isinstance(child, Tag):
            lines.append(_render(child).strip())
    return "\n\n" + "\n".join(line for line in lines if line) + "\n\n"


def _render_table(node: Tag) -> str:
    rows: List[str] = []
    for index, tr in enumerate(node.find_all("tr")):
        cells = [_inline(cell).replace("|", "\\|") for cell in tr.find_all(["td", "th"])]
        rows.append("| " + " | ".join(cells) + " |")
        if index == 0:
            rows.append("|" + " --- |" * len(cells))
    return "\n\n" + "\n".join(rows) + "\n\n"


def _render(node: PageElement) -> str:
    if isinstance(node, NavigableString):
        return "" if isinstance(node, PreformattedString) else str(node)
    if not isinstance(node, Tag):
        return ""

    name = node.name
    if name in HEADINGS:
        return f"\n\n{'#' * int(name[1])} {_inline(node)}\n\n"
    if name in ("ul", "ol"):
        return _render_list(node)
    if name == "li":
        return f"\n- {_inline(node)}\n"
    if name == "table":
        return _render_table(node)
    if name == "pre":
        return f"\n\n```\n{node.get_text().strip(chr(10))}\n```\n\n"
    if name == "blockquote":
        quoted = _inline(node).replace("\n", "\n> ")
        return f"\n\n> {quoted}\n\n"
    if name == "br":
        return "\n"
    if name == "img":
        return f"![{node.get('alt', '')}]({node.get('src', '')})"

    inner = _inline(node)
    if not inner:
        return ""
    if name == "a":
        href = node.get("href")
        return f"[{inner}]({href})" if href else inner
    if name in ("strong", "b"):
        return f"**{inner}**"
    if name in ("em", "i"):
        return f"*{inner}*"
    if name == "code":
        return f"`{inner}`"
    if name == "mark":
        return f"=={inner}=="
    if name in ("p", "section", "article", "main", "dl", "div"):
        return f"\n\n{inner}\n\n"
    if name in ("dt", "dd", "tr"):
        return f"\n{inner}\n"
    return inner


def to_markdown(semantic: str) -> str:
    """Render semantic HTML as Markdown (headings, lists, links, emphasis, code, tables)."""
    soup = BeautifulSoup(semantic or "", "html.parser")
    rendered = "".join(_render(child) for child in soup.children)
    return _tidy_whitespace(rendered)
