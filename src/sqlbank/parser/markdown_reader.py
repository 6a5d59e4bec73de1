"""
Markdown reader for question bank files.

Reads one Markdown file in a single pass and produces a ``Document``:
headings with anchors, fenced code blocks, inline links, and the
Category → Topic → Snippet structure built from heading levels.

Example:
    >>> reader = MarkdownReader()
    >>> doc = reader.read(Path("README.md").read_text(), Path("README.md"))
    >>> [c.name for c in doc.categories]
    ['Basic SQL', 'Intermediate SQL', 'Advanced SQL']
"""

import re
from dataclasses import dataclass, field
from pathlib import Path

from sqlbank.logging import get_logger
from sqlbank.model import (
    FENCE_OPEN,
    Category,
    CodeBlock,
    Difficulty,
    Document,
    Heading,
    Link,
    MalformedHeading,
    Snippet,
    Topic,
    closes_fence,
)
from sqlbank.parser.sql_text import looks_like_sql
from sqlbank.slugs import SlugRegistry, slugify, strip_inline_markdown

logger = get_logger(__name__)

_HEADING = re.compile(r"^ {0,3}(#{1,6})(?:[ \t]+(.*?))?(?:[ \t]+#+)?[ \t]*$")
_MALFORMED_HEADING = re.compile(r"^ {0,3}(#{1,6})([^#\s!].*)$")
_LINK = re.compile(r"(?<!!)\[([^\]]+)\]\(<?([^)\s>]+)>?(?:[ \t]+\"[^\"]*\")?\)")
_CODE_SPAN = re.compile(r"(`+)(.+?)\1")

TOC_TITLES = frozenset({"table of contents", "contents", "toc", "index"})


@dataclass
class _TopicBuilder:
    heading: Heading
    lines: list[str] = field(default_factory=list)
    snippets: list[Snippet] = field(default_factory=list)
    pending_prose: list[str] = field(default_factory=list)

    def build(self) -> Topic:
        return Topic(
            title=self.heading.text,
            anchor=self.heading.anchor,
            line=self.heading.line,
            body="\n".join(self.lines).strip(),
            snippets=tuple(self.snippets),
        )


@dataclass
class _CategoryBuilder:
    name: str
    anchor: str
    line: int
    intro: list[str] = field(default_factory=list)
    topics: list[Topic] = field(default_factory=list)

    def build(self) -> Category:
        return Category(
            name=self.name,
            anchor=self.anchor,
            line=self.line,
            tier=Difficulty.from_name(self.name),
            intro="\n".join(self.intro).strip(),
            topics=tuple(self.topics),
        )


@dataclass
class _Fence:
    marker: str
    language: str
    line: int
    lines: list[str] = field(default_factory=list)

    def closes_on(self, line: str) -> bool:
        return closes_fence(line, self.marker)


class MarkdownReader:
    """Read a Markdown file into a ``Document``.

    Manifesto:
        The bank is written for humans browsing a repository, so the
        reader follows what a Markdown viewer shows: headings inside code
        fences are code, anchors match the ones GitHub generates, and a
        file that breaks a rule is still read so the linter can report it.

    Architecture:
        ```
        text lines
            │
            ├──► fence open/close ──► CodeBlock (+ Snippet when SQL in a topic)
            │
            ├──► ATX heading ──► Heading (SlugRegistry anchor)
            │         │
            │         ├── level == category_level ──► new Category
            │         ├── level == topic_level    ──► new Topic
            │         └── TOC title               ──► toc_heading, section skipped
            │
            └──► other lines ──► Link scan, topic body / category intro
        ```

    Features:
        - ATX headings with closing ``#`` sequences
        - Backtick and tilde fences, closing fence at least as long
        - Malformed ``##Title`` headings kept for the linter
        - Inline links outside code spans and fences
        - Snippets for SQL fences (or unlabelled fences that look like SQL)
        - Fallback category for files with topics but no category heading

    Guardrails:
        - Do NOT raise on broken structure
          ✅ Record it (unclosed fence, malformed heading) and keep reading
        - Do NOT treat ``# comment`` lines inside code as headings
          ✅ Fence state is checked before anything else

    Tags:
        - parser
        - markdown
        - loader

    Doc-Types:
        - API_REFERENCE (section: "Parser Module", priority: 9)
    """

    def __init__(
        self,
        category_level: int = 2,
        topic_level: int = 3,
        sql_languages: list[str] | None = None,
    ):
        self.category_level = category_level
        self.topic_level = topic_level
        self.sql_languages = {lang.lower() for lang in (sql_languages or ["sql"])}

    def read(self, text: str, path: Path, default_category: str | None = None) -> Document:
        """Parse Markdown text.

        Args:
            text: File contents
            path: Where the text came from (kept on the Document)
            default_category: Category name for topics that appear before
                any category heading

        Returns:
            Document
        """
        path = Path(path)
        lines = text.splitlines()
        slugs = SlugRegistry()

        headings: list[Heading] = []
        code_blocks: list[CodeBlock] = []
        links: list[Link] = []
        malformed: list[MalformedHeading] = []
        categories: list[Category] = []

        title: str | None = None
        toc_heading: Heading | None = None
        in_toc = False

        category: _CategoryBuilder | None = None
        topic: _TopicBuilder | None = None
        fence: _Fence | None = None

        def close_topic() -> None:
            nonlocal topic
            if topic is not None and category is not None:
                category.topics.append(topic.build())
            topic = None

        def close_category() -> None:
            nonlocal category
            close_topic()
            if category is not None:
                categories.append(category.build())
            category = None

        def body(raw: str) -> None:
            if in_toc:
                return
            if topic is not None:
                topic.lines.append(raw)
            elif category is not None:
                category.intro.append(raw)

        for lineno, raw in enumerate(lines, start=1):
            # Inside a fence, only the closing fence matters
            if fence is not None:
                if fence.closes_on(raw):
                    block = CodeBlock(
                        language=fence.language,
                        code="\n".join(fence.lines),
                        line=fence.line,
                    )
                    code_blocks.append(block)
                    if topic is not None and not in_toc:
                        self._add_snippet(topic, block)
                    fence = None
                else:
                    fence.lines.append(raw)
                body(raw)
                continue

            fence_match = FENCE_OPEN.match(raw)
            if fence_match:
                fence = _Fence(
                    marker=fence_match.group(1),
                    language=fence_match.group(2).lower(),
                    line=lineno,
                )
                body(raw)
                continue

            heading_match = _HEADING.match(raw)
            if heading_match:
                level = len(heading_match.group(1))
                raw_text = (heading_match.group(2) or "").strip()
                heading = Heading(
                    level=level,
                    text=strip_inline_markdown(raw_text),
                    raw=raw_text,
                    line=lineno,
                    anchor=slugs.unique(raw_text),
                )
                headings.append(heading)

                if level == 1 and title is None:
                    title = heading.text
                    if self.category_level > 1:
                        continue

                if in_toc and level > toc_heading.level:
                    continue
                in_toc = False

                if heading.text.lower() in TOC_TITLES and level <= self.category_level:
                    close_category()
                    toc_heading = toc_heading or heading
                    in_toc = True
                    continue

                if level <= self.category_level:
                    close_category()
                    if level == self.category_level:
                        category = _CategoryBuilder(
                            name=heading.text,
                            anchor=heading.anchor,
                            line=heading.line,
                        )
                    continue

                if level == self.topic_level:
                    close_topic()
                    if category is None:
                        fallback = default_category or title or path.stem
                        category = _CategoryBuilder(
                            name=fallback,
                            anchor=f"category-{slugify(fallback)}",
                            line=heading.line,
                        )
                    topic = _TopicBuilder(heading=heading)
                    continue

                if level < self.topic_level and topic is not None:
                    # A heading between category and topic level ends the topic
                    close_topic()

                body(raw)
                continue

            if _MALFORMED_HEADING.match(raw):
                malformed.append(MalformedHeading(raw=raw.strip(), line=lineno))

            links.extend(self._scan_links(raw, lineno))
            if topic is not None and not in_toc:
                topic.pending_prose.append(raw)
            body(raw)

        if fence is not None:
            code_blocks.append(CodeBlock(
                language=fence.language,
                code="\n".join(fence.lines),
                line=fence.line,
                closed=False,
            ))
            logger.warning("unclosed_code_fence", path=str(path), line=fence.line)

        close_category()

        logger.debug(
            "markdown_read",
            path=str(path),
            headings=len(headings),
            code_blocks=len(code_blocks),
            categories=len(categories),
        )

        return Document(
            path=path,
            title=title or path.stem,
            headings=tuple(headings),
            code_blocks=tuple(code_blocks),
            links=tuple(links),
            malformed_headings=tuple(malformed),
            categories=tuple(categories),
            lines=tuple(lines),
            toc_heading=toc_heading,
        )

    def is_sql(self, block: CodeBlock) -> bool:
        """Whether a fenced block counts as a SQL snippet."""
        if block.language:
            return block.language in self.sql_languages
        return looks_like_sql(block.code)

    def _add_snippet(self, topic: _TopicBuilder, block: CodeBlock) -> None:
        if not self.is_sql(block):
            return
        prose = "\n".join(topic.pending_prose).strip()
        topic.snippets.append(Snippet(
            code=block.code,
            language=block.language or "sql",
            prose=prose,
            line=block.line,
        ))
        topic.pending_prose = []

    def _scan_links(self, raw: str, lineno: int) -> list[Link]:
        """Inline links on one line, ignoring code spans."""
        visible = _CODE_SPAN.sub(lambda m: " " * len(m.group(0)), raw)
        return [
            Link(text=strip_inline_markdown(m.group(1)), target=m.group(2), line=lineno)
            for m in _LINK.finditer(visible)
        ]
