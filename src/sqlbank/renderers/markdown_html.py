"""
Markdown to HTML conversion for question bank pages.

Covers the Markdown a question bank actually uses: ATX headings, paragraphs,
nested bullet and numbered lists, block quotes, pipe tables, fenced code,
horizontal rules, and inline code, emphasis and links. Everything else is
shown as escaped text.

All output is built from ``markupsafe.escape``'d pieces, so author text can
never inject markup.

Example:
    >>> str(inline_html("Use `COUNT(*)` with **GROUP BY**"))
    'Use <code>COUNT(*)</code> with <strong>GROUP BY</strong>'
"""

import re
from pathlib import PurePosixPath

from markupsafe import Markup, escape

from sqlbank.model import FENCE_OPEN, Document, Heading, closes_fence
from sqlbank.parser.markdown_reader import _HEADING
from sqlbank.slugs import slugify

_CODE_SPAN = re.compile(r"(`+)(.+?)\1")
_LINK = re.compile(r"(?<!!)\[([^\]]+)\]\(([^)\s]+)(?:\s+&#34;[^&]*&#34;)?\)")
_IMAGE = re.compile(r"!\[([^\]]*)\]\(([^)\s]+)\)")
_BOLD = re.compile(r"\*\*(?=\S)(.+?)(?<=\S)\*\*")
_ITALIC = re.compile(r"(?<![\w*])\*(?=\S)(.+?)(?<=\S)\*(?!\*)|(?<!\w)_(?=\S)(.+?)(?<=\S)_(?!\w)")
_LIST_ITEM = re.compile(r"^(\s*)([-*+]|\d+[.)])\s+(.*)$")
_QUOTE = re.compile(r"^\s{0,3}>\s?(.*)$")
_RULE = re.compile(r"^\s{0,3}([-*_])(\s*\1){2,}\s*$")
_TABLE_SEP = re.compile(r"^\s*\|?\s*:?-+:?\s*(\|\s*:?-+:?\s*)*\|?\s*$")
_COMMENT = re.compile(r"^\s*<!--.*-->\s*$")


def rewrite_target(target: str) -> str:
    """Point relative ``.md`` links at the generated ``.html`` pages."""
    if "://" in target or target.startswith(("#", "mailto:")):
        return target
    path, sep, fragment = target.partition("#")
    if path.lower().endswith((".md", ".markdown")):
        path = str(PurePosixPath(path).with_suffix(".html"))
    return f"{path}{sep}{fragment}"


def _inline_text(text: str) -> str:
    """Escape and format a piece of text that holds no code spans."""
    out = str(escape(text))
    out = _IMAGE.sub(lambda m: f'<img src="{rewrite_target(m.group(2))}" alt="{m.group(1)}">', out)
    out = _LINK.sub(lambda m: f'<a href="{rewrite_target(m.group(2))}">{m.group(1)}</a>', out)
    out = _BOLD.sub(r"<strong>\1</strong>", out)
    out = _ITALIC.sub(lambda m: f"<em>{m.group(1) or m.group(2)}</em>", out)
    return out


def inline_html(text: str) -> Markup:
    """Render inline Markdown to HTML.

    Args:
        text: One line or paragraph of Markdown

    Returns:
        Safe HTML
    """
    parts = []
    last = 0
    for match in _CODE_SPAN.finditer(text):
        parts.append(_inline_text(text[last:match.start()]))
        parts.append(f"<code>{escape(match.group(2).strip())}</code>")
        last = match.end()
    parts.append(_inline_text(text[last:]))
    return Markup("".join(parts))


def _split_row(line: str) -> list[str]:
    line = line.strip()
    if line.startswith("|"):
        line = line[1:]
    if line.endswith("|") and not line.endswith("\\|"):
        line = line[:-1]
    return [cell.strip() for cell in re.split(r"(?<!\\)\|", line)]


def _fence_end(lines: list[str], start: int, marker: str) -> int:
    """Index of the line closing the fence opened at ``start`` (``len(lines)`` if none)."""
    i = start + 1
    while i < len(lines):
        if closes_fence(lines[i], marker):
            return i
        i += 1
    return i


def _dedent(line: str, indent: int) -> str:
    return line[min(indent, len(line) - len(line.lstrip(" "))):]


def _code_block(language: str, code: list[str]) -> str:
    language = language.lower()
    css = f' class="language-{escape(language)}"' if language else ""
    return f"<pre><code{css}>{escape(chr(10).join(code))}</code></pre>"


class HtmlConverter:
    """Convert Markdown lines to HTML blocks.

    Heading ids come from the document's own headings (matched by line),
    so every ``#anchor`` link written against the Markdown also resolves
    in the HTML. ``targets`` adds empty anchor elements before the heading
    on a given line, for categories that have no heading of their own.
    """

    def __init__(
        self,
        headings: tuple[Heading, ...] | list[Heading] = (),
        targets: dict[int, str] | None = None,
    ):
        self._by_line = {h.line: h for h in headings}
        self._targets = targets or {}

    @classmethod
    def for_document(cls, document: Document) -> "HtmlConverter":
        anchors = document.anchors
        targets = {c.line: c.anchor for c in document.categories if c.anchor not in anchors}
        return cls(document.headings, targets)

    def convert(self, lines: list[str] | tuple[str, ...], first_line: int = 1) -> Markup:
        """Convert lines to HTML.

        Args:
            lines: Markdown source lines
            first_line: Source line number of ``lines[0]``

        Returns:
            Safe HTML
        """
        html: list[str] = []
        paragraph: list[str] = []
        lines = list(lines)
        i = 0

        def flush() -> None:
            if paragraph:
                html.append(f"<p>{inline_html(' '.join(s.strip() for s in paragraph))}</p>")
                paragraph.clear()

        while i < len(lines):
            line = lines[i]
            lineno = first_line + i

            fence = FENCE_OPEN.match(line)
            if fence:
                flush()
                end = _fence_end(lines, i, fence.group(1))
                html.append(_code_block(fence.group(2), lines[i + 1:end]))
                i = end + 1
                continue

            heading = _HEADING.match(line)
            if heading:
                flush()
                level = len(heading.group(1))
                raw = (heading.group(2) or "").strip()
                if lineno in self._targets:
                    html.append(f'<span id="{escape(self._targets[lineno])}"></span>')
                known = self._by_line.get(lineno)
                anchor = known.anchor if known is not None else slugify(raw)
                html.append(f'<h{level} id="{escape(anchor)}">{inline_html(raw)}</h{level}>')
                i += 1
                continue

            if not line.strip() or _COMMENT.match(line):
                flush()
                i += 1
                continue

            if _RULE.match(line):
                flush()
                html.append("<hr>")
                i += 1
                continue

            if _LIST_ITEM.match(line):
                flush()
                start = i
                while i < len(lines) and lines[i].strip() and (
                    _LIST_ITEM.match(lines[i]) or lines[i].startswith((" ", "\t"))
                ):
                    fence = FENCE_OPEN.match(lines[i])
                    if fence and lines[i].startswith(" "):
                        # Code indented under an item belongs to it, blank lines included
                        i = _fence_end(lines, i, fence.group(1))
                    i += 1
                html.append(self._list(lines[start:i]))
                continue

            if _QUOTE.match(line):
                flush()
                quoted = []
                while i < len(lines) and _QUOTE.match(lines[i]):
                    quoted.append(_QUOTE.match(lines[i]).group(1))
                    i += 1
                html.append(f"<blockquote>{HtmlConverter().convert(quoted)}</blockquote>")
                continue

            if "|" in line and i + 1 < len(lines) and _TABLE_SEP.match(lines[i + 1]) and "-" in lines[i + 1]:
                flush()
                header = _split_row(line)
                rows = []
                i += 2
                while i < len(lines) and "|" in lines[i] and lines[i].strip():
                    rows.append(_split_row(lines[i]))
                    i += 1
                html.append(self._table(header, rows))
                continue

            paragraph.append(line)
            i += 1

        flush()
        return Markup("\n".join(html))

    def _list(self, lines: list[str]) -> str:
        """Render consecutive list lines, nesting by indentation."""
        out: list[str] = []
        stack: list[tuple[int, str]] = []  # (indent, tag)

        i = 0
        while i < len(lines):
            line = lines[i]
            i += 1
            fence = FENCE_OPEN.match(line) if line.startswith(" ") else None
            if fence:
                end = _fence_end(lines, i - 1, fence.group(1))
                indent = len(line) - len(line.lstrip(" "))
                code = [_dedent(text, indent) for text in lines[i:end]]
                i = end + 1
                block = _code_block(fence.group(2), code)
                if out and out[-1].endswith("</li>"):
                    out[-1] = out[-1][:-5] + block + "</li>"
                else:
                    out.append(block)
                continue

            item = _LIST_ITEM.match(line)
            if item is None:
                # Continuation of the previous item
                if out and out[-1].endswith("</li>"):
                    out[-1] = out[-1][:-5] + f" {inline_html(line.strip())}</li>"
                continue

            indent = len(item.group(1).expandtabs(4))
            tag = "ol" if item.group(2)[0].isdigit() else "ul"

            while len(stack) > 1 and indent < stack[-1][0]:
                out.append(f"</{stack.pop()[1]}></li>")
            if not stack or indent > stack[-1][0]:
                if stack and out and out[-1].endswith("</li>"):
                    out[-1] = out[-1][:-5]  # nest inside the open item
                out.append(f"<{tag}>")
                stack.append((indent, tag))

            out.append(f"<li>{inline_html(item.group(3))}</li>")

        while stack:
            _, tag = stack.pop()
            out.append(f"</{tag}>" + ("</li>" if stack else ""))

        return "".join(out)

    def _table(self, header: list[str], rows: list[list[str]]) -> str:
        head = "".join(f"<th>{inline_html(cell)}</th>" for cell in header)
        body = "".join(
            "<tr>" + "".join(f"<td>{inline_html(cell)}</td>" for cell in row) + "</tr>"
            for row in rows
        )
        return f"<table><thead><tr>{head}</tr></thead><tbody>{body}</tbody></table>"
