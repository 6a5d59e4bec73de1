"""
Table-of-contents and bank indexing.

``TocBuilder`` turns a document's headings into a nested table of contents
and keeps the TOC block in the Markdown source up to date. ``BankIndex``
organizes a whole bank by difficulty tier and answers keyword searches.

Example:
    >>> toc = TocBuilder()
    >>> print(toc.render_markdown(toc.build(document)))
    - [Basic SQL](#basic-sql)
      - [What is SQL?](#what-is-sql)
"""

from dataclasses import dataclass, field

from sqlbank.logging import get_logger
from sqlbank.model import Category, Difficulty, Document, QuestionBank, Topic

logger = get_logger(__name__)


@dataclass
class TocEntry:
    """One table-of-contents line and its nested entries."""

    title: str
    anchor: str
    level: int
    children: list["TocEntry"] = field(default_factory=list)

    def walk(self):
        yield self
        for child in self.children:
            yield from child.walk()


class TocBuilder:
    """Build and maintain tables of contents.

    Manifesto:
        A TOC in a hand-edited file goes stale the moment somebody adds a
        question. Generating it from the headings, with the same anchors
        the viewer produces, keeps every entry resolvable.

    Architecture:
        ```
        Document.headings
              │
              ├── drop title (first H1) and the TOC section itself
              ├── keep min_level..max_level
              ▼
        stack-based nesting ──► [TocEntry(children=[...])]
              │
              ├──► render_markdown() ──► "- [Title](#anchor)"
              │
              └──► update_document() ──► text between <!-- toc --> markers
        ```

    Guardrails:
        - Do NOT list the TOC heading inside the TOC
          ✅ The TOC section is excluded from its own entries
        - Do NOT touch text outside the marked block
          ✅ Only the lines between the markers are replaced

    Tags:
        - indexer
        - toc
        - navigation

    Doc-Types:
        - API_REFERENCE (section: "Indexer Module", priority: 8)
    """

    def __init__(
        self,
        min_level: int = 2,
        max_level: int = 3,
        start_marker: str = "<!-- toc -->",
        end_marker: str = "<!-- tocstop -->",
    ):
        self.min_level = min_level
        self.max_level = max_level
        self.start_marker = start_marker
        self.end_marker = end_marker

    def build(self, document: Document) -> list[TocEntry]:
        """Nested TOC entries for a document.

        Args:
            document: Loaded document

        Returns:
            Top-level entries; deeper headings are nested as children
        """
        roots: list[TocEntry] = []
        stack: list[TocEntry] = []
        toc_end = self._toc_section_end(document)
        title_seen = False

        for heading in document.headings:
            if heading.level == 1 and not title_seen and heading.text == document.title:
                title_seen = True
                continue
            if document.toc_heading is not None and document.toc_heading.line <= heading.line < toc_end:
                continue
            if not self.min_level <= heading.level <= self.max_level:
                continue

            entry = TocEntry(title=heading.text, anchor=heading.anchor, level=heading.level)
            while stack and stack[-1].level >= entry.level:
                stack.pop()
            if stack:
                stack[-1].children.append(entry)
            else:
                roots.append(entry)
            stack.append(entry)

        return roots

    def render_markdown(self, entries: list[TocEntry]) -> str:
        """Render entries as a nested Markdown bullet list.

        Args:
            entries: Output of :meth:`build`

        Returns:
            Markdown, two spaces of indent per nesting level
        """
        lines: list[str] = []

        def emit(entry: TocEntry, depth: int) -> None:
            title = entry.title.replace("[", "\\[").replace("]", "\\]")
            lines.append(f"{'  ' * depth}- [{title}](#{entry.anchor})")
            for child in entry.children:
                emit(child, depth + 1)

        for entry in entries:
            emit(entry, 0)
        return "\n".join(lines)

    def generate(self, document: Document) -> str:
        """Markdown TOC for a document."""
        return self.render_markdown(self.build(document))

    def current_block(self, document: Document) -> str | None:
        """Text currently between the TOC markers, or None without markers."""
        span = self._marker_span(document.lines)
        if span is None:
            return None
        start, end = span
        return "\n".join(document.lines[start + 1:end]).strip()

    def is_current(self, document: Document) -> bool:
        """Whether the marked TOC block matches the generated one.

        Documents without markers are considered current.
        """
        block = self.current_block(document)
        if block is None:
            return True
        return block == self.generate(document).strip()

    def update_document(self, document: Document) -> str:
        """Return the document text with a regenerated TOC block.

        The block goes between the markers when they exist. Otherwise it
        replaces the body of the TOC section, or is inserted after the title
        heading, or at the top of the file.

        Args:
            document: Loaded document

        Returns:
            New file text (ends with a newline)
        """
        lines = list(document.lines)
        toc = self.generate(document)
        block = [self.start_marker, "", toc, "", self.end_marker] if toc else [self.start_marker, self.end_marker]

        span = self._marker_span(lines)
        if span is not None:
            start, end = span
            lines[start:end + 1] = block
        elif document.toc_heading is not None:
            start = document.toc_heading.line  # index of the line after the heading
            end = self._toc_section_end(document) - 1
            lines[start:end] = ["", *block, ""]
        else:
            title = next(
                (h for h in document.headings if h.level == 1 and h.text == document.title),
                None,
            )
            insert_at = title.line if title is not None else 0
            following = lines[insert_at] if insert_at < len(lines) else ""
            inserted = ["", *block] if insert_at else list(block)
            if following.strip():
                inserted.append("")
            lines[insert_at:insert_at] = inserted

        logger.debug("toc_updated", path=str(document.path), entries=toc.count("\n") + 1 if toc else 0)
        return "\n".join(lines).rstrip("\n") + "\n"

    def _marker_span(self, lines) -> tuple[int, int] | None:
        start = end = None
        for index, line in enumerate(lines):
            stripped = line.strip()
            if stripped == self.start_marker and start is None:
                start = index
            elif stripped == self.end_marker and start is not None:
                end = index
                break
        if start is None or end is None:
            return None
        return start, end

    def _toc_section_end(self, document: Document) -> int:
        """Line number (1-based) of the first heading after the TOC section."""
        toc = document.toc_heading
        if toc is None:
            return 0
        for heading in document.headings:
            if heading.line > toc.line and heading.level <= toc.level:
                return heading.line
        return len(document.lines) + 1


@dataclass(frozen=True)
class SearchHit:
    """A topic matching a search."""

    document: Document
    category: Category
    topic: Topic
    score: int


class BankIndex:
    """Tier listing, anchor lookup and keyword search over a bank.

    Examples:
        >>> index = BankIndex(bank)
        >>> [hit.topic.title for hit in index.search("window function")]
        ['What is a window function?']
    """

    def __init__(self, bank: QuestionBank):
        self.bank = bank
        self._by_anchor: dict[str, tuple[Document, Category, Topic]] = {}
        for document in bank:
            for category in document.categories:
                for topic in category.topics:
                    self._by_anchor.setdefault(topic.anchor, (document, category, topic))

    def tiers(self) -> dict[Difficulty, list[Category]]:
        """Categories grouped by tier, basic first; empty tiers omitted."""
        grouped: dict[Difficulty, list[Category]] = {}
        for tier in sorted(Difficulty, key=lambda t: t.rank):
            categories = self.bank.by_tier(tier)
            if categories:
                grouped[tier] = categories
        return grouped

    def lookup(self, anchor: str) -> tuple[Document, Category, Topic] | None:
        """Find a topic by anchor (leading ``#`` allowed)."""
        return self._by_anchor.get(anchor.lstrip("#"))

    def search(self, query: str, tier: Difficulty | None = None) -> list[SearchHit]:
        """Case-insensitive keyword search over topic titles and prose.

        Every term must appear in the title or the prose. Code in fenced
        blocks is not searched. Title matches weigh more than prose matches.

        Args:
            query: Whitespace-separated terms
            tier: Restrict to one difficulty tier

        Returns:
            Hits, best first (ties keep document order)
        """
        terms = [term.lower() for term in query.split()]
        if not terms:
            return []

        hits = []
        for document in self.bank:
            for category in document.categories:
                if tier is not None and category.tier != tier:
                    continue
                for topic in category.topics:
                    title = topic.title.lower()
                    prose = topic.prose.lower()
                    if not all(term in title or term in prose for term in terms):
                        continue
                    score = sum(3 * title.count(term) + prose.count(term) for term in terms)
                    hits.append(SearchHit(document=document, category=category, topic=topic, score=score))

        hits.sort(key=lambda hit: hit.score, reverse=True)
        logger.debug("search_completed", query=query, hits=len(hits))
        return hits
