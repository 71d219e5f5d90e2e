"""Render a saved buffer file as an HTML table, one row per line."""

from __future__ import annotations

import os
import re
from typing import Iterable, Iterator

DEFAULT_SOURCE = "ptyb_buffer.txt"
DEFAULT_DEST = "ptyb_formatted_buffer.html"

#: Longest piece of a line read at once; longer lines become several rows.
LINE_LIMIT = 255

_HEADER = (
    "<!DOCTYPE html><html>\n<head>\n<link rel='stylesheet' href='style.css' />\n"
    "</head><body>\n<table>\n"
)
_FOOTER = "</table></body></html>"
_WORD_RE = re.compile(r"[^ \t]+")
_LINE_RE = re.compile(r"[^\n]*\n|[^\n]+")


def _pieces(lines: Iterable[str]) -> Iterator[str]:
    for line in lines:
        for start in range(0, len(line), LINE_LIMIT):
            yield line[start:start + LINE_LIMIT]


def render_html(lines: Iterable[str]) -> str:
    """Return an HTML document with a row per line and a cell per word."""
    parts = [_HEADER]
    for piece in _pieces(lines):
        parts.append("<tr>\n")
        parts.extend(f"<td>{word}</td>\n" for word in _WORD_RE.findall(piece))
        parts.append("</tr>\n")
    parts.append(_FOOTER)
    return "".join(parts)


def format_buffer_html(
    source: str | os.PathLike = DEFAULT_SOURCE,
    dest: str | os.PathLike = DEFAULT_DEST,
) -> str:
    """Convert the buffer file ``source`` into HTML at ``dest``; return ``dest``."""
    with open(source, encoding="utf-8", errors="surrogateescape", newline="") as src:
        content = src.read()
    html = render_html(_LINE_RE.findall(content))
    with open(dest, "w", encoding="utf-8", errors="surrogateescape", newline="") as out:
        out.write(html)
    return os.fspath(dest)