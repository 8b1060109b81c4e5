#!/usr/bin/env python3
"""Render changelog markdown to HTML for feed items.

Small, dependency-free renderer covering what changelogs actually use:
headings, nested lists, paragraphs, fenced code, links, code, bold, italics.
"""

from __future__ import annotations

import html
import re
from urllib.parse import urlparse


HEADING_RE = re.compile(r"^(#{1,6})\s+(.*?)\s*#*\s*$")
LIST_ITEM_RE = re.compile(r"^(?P<indent>[ \t]*)(?P<marker>[-*+]|\d+[.)])\s+(?P<text>.*)$")
FENCE_PREFIX = "```"


def safe_link_href(url: str) -> str | None:
    parsed = urlparse(url.strip())
    if parsed.scheme in ("http", "https"):
        return url.strip()
    return None


def _is_word_char(text: str, index: int) -> bool:
    return 0 <= index < len(text) and (text[index].isalnum() or text[index] == "_")


def _find_emphasis_end(text: str, start: int, marker: str) -> int:
    # Opening marker must hug its content; closing marker must too.
    if start + 1 >= len(text) or text[start + 1].isspace():
        return -1
    if marker == "_" and _is_word_char(text, start - 1):
        return -1

    end = text.find(marker, start + 2)
    while end != -1:
        if marker == "*" and text.startswith("**", end):
            # Nested strong; its markers never close the emphasis.
            end = text.find(marker, end + 2)
            continue
        if text[end - 1].isspace() or (marker == "_" and _is_word_char(text, end + 1)):
            end = text.find(marker, end + 1)
            continue
        return end
    return -1


def markdown_inline_to_html(text: str) -> str:
    # Minimal inline renderer: links + code + strong + em. Everything else escaped.
    out: list[str] = []
    i = 0
    while i < len(text):
        if text.startswith("**", i):
            end = text.find("**", i + 2)
            if end != -1 and end > i + 2:
                strong = text[i + 2 : end]
                out.append(f"<strong>{markdown_inline_to_html(strong)}</strong>")
                i = end + 2
                continue

        if text[i] == "`":
            end = text.find("`", i + 1)
            if end != -1:
                code = text[i + 1 : end]
                out.append(f"<code>{html.escape(code, quote=True)}</code>")
                i = end + 1
                continue

        if text[i] in "*_":
            end = _find_emphasis_end(text, i, text[i])
            if end != -1:
                emphasis = text[i + 1 : end]
                out.append(f"<em>{markdown_inline_to_html(emphasis)}</em>")
                i = end + 1
                continue

        if text[i] == "[":
            mid = text.find("](", i + 1)
            if mid != -1:
                end = text.find(")", mid + 2)
                if end != -1:
                    label = text[i + 1 : mid]
                    url = text[mid + 2 : end]
                    href = safe_link_href(url)
                    if href:
                        out.append(
                            f'<a href="{html.escape(href, quote=True)}">{markdown_inline_to_html(label)}</a>'
                        )
                    else:
                        out.append(markdown_inline_to_html(label))
                        if url.strip():
                            out.append(f" ({html.escape(url.strip(), quote=True)})")
                    i = end + 1
                    continue

        out.append(html.escape(text[i], quote=True))
        i += 1

    return "".join(out)


def _indent_width(prefix: str) -> int:
    return len(prefix.expandtabs(4))


def markdown_to_html_fragment(markdown: str) -> str:
    rendered: list[str] = []
    paragraph: list[str] = []
    code_lines: list[str] | None = None
    # (indent, tag) per open list; each open list has an unclosed <li>.
    lists: list[tuple[int, str]] = []
    previous_blank = False

    def flush_paragraph() -> None:
        if paragraph:
            rendered.append(f"<p>{markdown_inline_to_html(' '.join(paragraph))}</p>")
            paragraph.clear()

    def close_list() -> None:
        _, tag = lists.pop()
        rendered[-1] += "</li>"
        rendered.append(f"</{tag}>")

    def close_lists() -> None:
        while lists:
            close_list()

    def add_list_item(indent: int, tag: str, text: str) -> None:
        while lists and indent < lists[-1][0]:
            close_list()
        if lists and indent == lists[-1][0] and lists[-1][1] != tag:
            close_list()

        if lists and indent == lists[-1][0]:
            rendered[-1] += "</li>"
        else:
            rendered.append(f"<{tag}>")
            lists.append((indent, tag))
        rendered.append(f"<li>{markdown_inline_to_html(text.strip())}")

    for raw_line in markdown.split("\n"):
        line = raw_line.rstrip()
        stripped = line.strip()
        after_blank = previous_blank
        previous_blank = not stripped

        if code_lines is not None:
            if stripped.startswith(FENCE_PREFIX):
                code = html.escape("\n".join(code_lines), quote=True)
                rendered.append(f"<pre><code>{code}</code></pre>")
                code_lines = None
            else:
                code_lines.append(line)
            continue

        if stripped.startswith(FENCE_PREFIX):
            flush_paragraph()
            close_lists()
            code_lines = []
            continue

        if not stripped:
            flush_paragraph()
            continue

        heading = HEADING_RE.match(stripped)
        if heading and not line[0].isspace():
            flush_paragraph()
            close_lists()
            level = len(heading.group(1))
            rendered.append(f"<h{level}>{markdown_inline_to_html(heading.group(2))}</h{level}>")
            continue

        item = LIST_ITEM_RE.match(line)
        if item:
            flush_paragraph()
            tag = "ul" if item.group("marker") in "-*+" else "ol"
            add_list_item(_indent_width(item.group("indent")), tag, item.group("text"))
            continue

        if lists and not paragraph and (line[0].isspace() or not after_blank):
            # Continuation of the open list item; unindented text only joins it
            # when no blank line came in between.
            rendered[-1] += f" {markdown_inline_to_html(stripped)}"
            continue

        close_lists()
        paragraph.append(stripped)

    if code_lines is not None:
        code = html.escape("\n".join(code_lines), quote=True)
        rendered.append(f"<pre><code>{code}</code></pre>")
    flush_paragraph()
    close_lists()
    return "\n".join(rendered).strip()
