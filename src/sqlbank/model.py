"""
Data model for a SQL question bank.

The bank is human-authored Markdown, so every record here is an immutable
snapshot of what the loader read: nothing is mutated after loading.

Example:
    >>> bank = ContentLoader().load(Path("README.md"))
    >>> [c.name for c in bank.categories]
    ['Basic SQL', 'Intermediate SQL', 'Advanced SQL']
    >>> bank.by_tier(Difficulty.ADVANCED)[0].topics[0].title
    'What is a window function?'
"""

import re
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Iterator

# Fences may be indented up to three spaces; a closing run must use the
# opening character and be at least as long.
FENCE_OPEN = re.compile(r"^ {0,3}(`{3,}|~{3,})[ \t]*([^`\s]*)")
FENCE_CLOSE = re.compile(r"^ {0,3}(`{3,}|~{3,})[ \t]*$")


def closes_fence(line: str, marker: str) -> bool:
    """Whether ``line`` closes a fence opened with ``marker``."""
    match = FENCE_CLOSE.match(line)
    return match is not None and match.group(1)[0] == marker[0] and len(match.group(1)) >= len(marker)


class Difficulty(str, Enum):
    """Difficulty tier of a category."""

    BASIC = "basic"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"
    UNKNOWN = "unknown"

    @classmethod
    def from_name(cls, name: str) -> "Difficulty":
        """Infer the tier from a category name.

        Args:
            name: Category heading text, e.g. "Intermediate SQL Questions"

        Returns:
            Matching tier, or UNKNOWN when no keyword matches
        """
        words = {w.strip(".:()-").lower() for w in name.split()}
        for tier, keywords in _TIER_KEYWORDS:
            if words & keywords:
                return tier
        return cls.UNKNOWN

    @property
    def rank(self) -> int:
        """Sort order: basic first, unknown last."""
        return _TIER_ORDER.index(self)


_TIER_KEYWORDS = [
    (Difficulty.BASIC, {"basic", "basics", "beginner", "easy", "fundamental", "fundamentals"}),
    (Difficulty.INTERMEDIATE, {"intermediate", "medium"}),
    (Difficulty.ADVANCED, {"advanced", "expert", "hard"}),
]

_TIER_ORDER = [
    Difficulty.BASIC,
    Difficulty.INTERMEDIATE,
    Difficulty.ADVANCED,
    Difficulty.UNKNOWN,
]


@dataclass(frozen=True)
class Heading:
    """An ATX heading.

    Attributes:
        level: 1-6
        text: Heading text with inline Markdown removed
        raw: Heading text as written
        line: 1-based source line
        anchor: Slug, unique within its document
    """

    level: int
    text: str
    raw: str
    line: int
    anchor: str


@dataclass(frozen=True)
class CodeBlock:
    """A fenced code block.

    ``closed`` is False when the file ended inside the fence.
    """

    language: str
    code: str
    line: int
    closed: bool = True


@dataclass(frozen=True)
class Link:
    """An inline Markdown link."""

    text: str
    target: str
    line: int

    @property
    def is_anchor(self) -> bool:
        return self.target.startswith("#")

    @property
    def fragment(self) -> str:
        """The part after ``#`` (empty when there is none)."""
        _, _, frag = self.target.partition("#")
        return frag


@dataclass(frozen=True)
class MalformedHeading:
    """A line that looks like a heading but is missing the space (``##Title``)."""

    raw: str
    line: int


@dataclass(frozen=True)
class Snippet:
    """A literal SQL example with the prose that introduces it."""

    code: str
    language: str
    prose: str
    line: int


@dataclass(frozen=True)
class Topic:
    """A named subsection within a category, usually one question."""

    title: str
    anchor: str
    line: int
    body: str = ""
    snippets: tuple[Snippet, ...] = ()

    @property
    def prose(self) -> str:
        """Body text with fenced code removed."""
        return _strip_fences(self.body)

    @property
    def is_empty(self) -> bool:
        return not self.prose.strip() and not self.snippets


@dataclass(frozen=True)
class Category:
    """A named grouping of topics, e.g. "Basic SQL"."""

    name: str
    anchor: str
    line: int
    tier: Difficulty = Difficulty.UNKNOWN
    intro: str = ""
    topics: tuple[Topic, ...] = ()

    @property
    def snippets(self) -> list[Snippet]:
        return [s for t in self.topics for s in t.snippets]


@dataclass(frozen=True)
class Document:
    """One loaded Markdown file.

    Attributes:
        path: Source file
        title: First H1, else the file stem
        headings: Every heading in document order
        code_blocks: Every fenced block in document order
        links: Inline links outside code
        malformed_headings: Lines like ``##Title``
        categories: Category/topic structure
        lines: Source lines
        toc_heading: Heading of the table-of-contents section, if any
    """

    path: Path
    title: str
    headings: tuple[Heading, ...] = ()
    code_blocks: tuple[CodeBlock, ...] = ()
    links: tuple[Link, ...] = ()
    malformed_headings: tuple[MalformedHeading, ...] = ()
    categories: tuple[Category, ...] = ()
    lines: tuple[str, ...] = ()
    toc_heading: Heading | None = None

    @property
    def anchors(self) -> set[str]:
        return {h.anchor for h in self.headings}

    @property
    def text(self) -> str:
        return "\n".join(self.lines)

    @property
    def topics(self) -> list[Topic]:
        return [t for c in self.categories for t in c.topics]


@dataclass(frozen=True)
class QuestionBank:
    """All loaded documents.

    Manifesto:
        The bank is the single thing every step shares. Loading happens
        once; indexing, rendering and linting only read from it.

    Features:
        - Flatten categories, topics and snippets across documents
        - Filter categories by difficulty tier
        - Look up a topic by anchor
        - Summarize counts for ``sqlbank stats``

    Tags:
        - model
        - question_bank
    """

    documents: tuple[Document, ...] = ()
    root: Path | None = None

    def __iter__(self) -> Iterator[Document]:
        return iter(self.documents)

    def __len__(self) -> int:
        return len(self.documents)

    @property
    def categories(self) -> list[Category]:
        return [c for d in self.documents for c in d.categories]

    @property
    def topics(self) -> list[Topic]:
        return [t for c in self.categories for t in c.topics]

    @property
    def snippets(self) -> list[Snippet]:
        return [s for t in self.topics for s in t.snippets]

    def by_tier(self, tier: Difficulty) -> list[Category]:
        """Categories of one difficulty tier, in document order."""
        return [c for c in self.categories if c.tier == tier]

    def find_topic(self, anchor: str) -> Topic | None:
        """Find the first topic with the given anchor (leading ``#`` allowed)."""
        anchor = anchor.lstrip("#")
        for topic in self.topics:
            if topic.anchor == anchor:
                return topic
        return None

    def document_for(self, path: Path) -> Document | None:
        for doc in self.documents:
            if doc.path == Path(path):
                return doc
        return None

    def stats(self) -> dict[str, Any]:
        """Counts for reporting.

        Returns:
            Dict with document, category, topic, snippet and heading counts,
            plus topics per tier
        """
        tiers: dict[str, int] = {}
        for category in self.categories:
            tiers[category.tier.value] = tiers.get(category.tier.value, 0) + len(category.topics)

        return {
            "documents": len(self.documents),
            "categories": len(self.categories),
            "topics": len(self.topics),
            "snippets": len(self.snippets),
            "headings": sum(len(d.headings) for d in self.documents),
            "code_blocks": sum(len(d.code_blocks) for d in self.documents),
            "links": sum(len(d.links) for d in self.documents),
            "topics_by_tier": dict(sorted(tiers.items(), key=lambda kv: Difficulty(kv[0]).rank)),
        }


def _strip_fences(text: str) -> str:
    """Remove fenced code blocks from Markdown text."""
    out = []
    fence: str | None = None
    for line in text.splitlines():
        if fence is None:
            opened = FENCE_OPEN.match(line)
            if opened:
                fence = opened.group(1)
                continue
            out.append(line)
        elif closes_fence(line, fence):
            fence = None
    return "\n".join(out).strip()
