"""
Documentation linter for question bank files.

Runs structural checks over a loaded ``QuestionBank`` and reports issues
as data. Content problems never raise.

Rules:
    SB001 broken-toc-link         anchor link has no matching heading
    SB002 implausible-sql         SQL fence does not read as SQL
    SB003 duplicate-sibling-slug  sibling headings share a slug
    SB004 malformed-heading       ``#Title`` without a space
    SB005 unclosed-fence          file ends inside a code fence
    SB006 empty-topic             topic without prose or snippet
    SB007 toc-out-of-date         marked TOC differs from the headings

Example:
    >>> report = Linter(config).lint(bank)
    >>> report.ok
    False
    >>> report.errors[0].code
    'SB001'
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Iterator
from urllib.parse import unquote

from sqlbank.config import SqlBankConfig
from sqlbank.indexer import TocBuilder
from sqlbank.logging import LogContext, get_logger
from sqlbank.model import Document, Heading, QuestionBank
from sqlbank.parser.markdown_reader import MarkdownReader
from sqlbank.parser.sql_text import check_sql
from sqlbank.slugs import slugify

logger = get_logger(__name__)


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"


@dataclass(frozen=True)
class LintIssue:
    """One finding."""

    code: str
    rule: str
    severity: Severity
    path: Path
    line: int
    message: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code,
            "rule": self.rule,
            "severity": self.severity.value,
            "path": str(self.path),
            "line": self.line,
            "message": self.message,
        }

    def __str__(self) -> str:
        return f"{self.path}:{self.line}: {self.code} {self.message}"


@dataclass
class LintReport:
    """All findings for a bank, sorted by file and line."""

    issues: list[LintIssue] = field(default_factory=list)
    files_checked: int = 0

    @property
    def errors(self) -> list[LintIssue]:
        return [i for i in self.issues if i.severity == Severity.ERROR]

    @property
    def warnings(self) -> list[LintIssue]:
        return [i for i in self.issues if i.severity == Severity.WARNING]

    @property
    def ok(self) -> bool:
        return not self.errors

    def by_code(self, code: str) -> list[LintIssue]:
        return [i for i in self.issues if i.code == code]

    def to_dict(self) -> dict[str, Any]:
        return {
            "ok": self.ok,
            "files_checked": self.files_checked,
            "errors": len(self.errors),
            "warnings": len(self.warnings),
            "issues": [i.to_dict() for i in self.issues],
        }


@dataclass(frozen=True)
class Rule:
    code: str
    name: str
    severity: Severity
    check: Callable[["Linter", Document], Iterator[tuple[int, str]]]


class Linter:
    """Check question bank documents for structural problems.

    Manifesto:
        Broken links, duplicate headings and half-pasted queries are
        editorial problems, not crashes. The linter finds them all in one
        run and lets the caller decide what fails a build.

    Architecture:
        ```
        QuestionBank
            │
            └──► for each Document
                     │
                     └──► for each enabled Rule
                              │
                              ▼
                         (line, message) ──► LintIssue(code, severity, path)
                                                   │
                                                   ▼
                                             LintReport (sorted)
        ```

    Features:
        - Seven rules, each with a stable code
        - Rules disabled per config (``disabled_rules: [SB006]``)
        - Errors and warnings kept apart; ``ok`` means no errors

    Tags:
        - linter
        - validation
        - documentation_quality

    Doc-Types:
        - API_REFERENCE (section: "Linter Module", priority: 8)
    """

    def __init__(self, config: SqlBankConfig | None = None):
        self.config = config or SqlBankConfig()
        self.reader = MarkdownReader(
            category_level=self.config.category_level,
            topic_level=self.config.topic_level,
            sql_languages=self.config.sql_languages,
        )
        self.toc = TocBuilder(
            min_level=self.config.toc_min_level,
            max_level=self.config.toc_max_level,
            start_marker=self.config.toc_start_marker,
            end_marker=self.config.toc_end_marker,
        )

    @property
    def rules(self) -> list[Rule]:
        """Enabled rules in code order."""
        return [rule for rule in RULES if self.config.is_rule_enabled(rule.code)]

    def lint(self, bank: QuestionBank) -> LintReport:
        """Lint every document in the bank.

        Args:
            bank: Loaded bank

        Returns:
            LintReport
        """
        report = LintReport()
        for document in bank:
            with LogContext(document=str(document.path)):
                issues = self.lint_document(document)
                logger.debug("document_linted", issues=len(issues))
            report.issues.extend(issues)
            report.files_checked += 1

        report.issues.sort(key=lambda i: (str(i.path), i.line, i.code))
        logger.info(
            "lint_completed",
            files=report.files_checked,
            errors=len(report.errors),
            warnings=len(report.warnings),
        )
        return report

    def lint_document(self, document: Document) -> list[LintIssue]:
        """Run every enabled rule on one document."""
        issues = []
        for rule in self.rules:
            for line, message in rule.check(self, document):
                issues.append(LintIssue(
                    code=rule.code,
                    rule=rule.name,
                    severity=rule.severity,
                    path=document.path,
                    line=line,
                    message=message,
                ))
        return issues

    # -------------------------------------------------------------------------
    # Rules
    # -------------------------------------------------------------------------

    def check_toc_links(self, document: Document) -> Iterator[tuple[int, str]]:
        anchors = document.anchors
        for link in document.links:
            # TOC generators percent-encode non-ASCII anchors
            if link.is_anchor and unquote(link.fragment) not in anchors:
                yield link.line, f"link [{link.text}] points to missing anchor #{link.fragment}"

    def check_sql_blocks(self, document: Document) -> Iterator[tuple[int, str]]:
        for block in document.code_blocks:
            if not block.closed or not self.reader.is_sql(block):
                continue
            for issue in check_sql(block.code):
                # Block content starts on the line after the opening fence
                yield block.line + issue.line, f"SQL block: {issue.message}"

    def check_sibling_slugs(self, document: Document) -> Iterator[tuple[int, str]]:
        for siblings in _sibling_groups(document.headings):
            seen: dict[str, Heading] = {}
            for heading in siblings:
                slug = slugify(heading.raw)
                if slug in seen:
                    first = seen[slug]
                    yield heading.line, (
                        f"heading {heading.text!r} collides with line {first.line} "
                        f"on anchor #{slug}"
                    )
                else:
                    seen[slug] = heading

    def check_malformed_headings(self, document: Document) -> Iterator[tuple[int, str]]:
        for malformed in document.malformed_headings:
            yield malformed.line, f"missing space after '#' in {malformed.raw!r}"

    def check_unclosed_fences(self, document: Document) -> Iterator[tuple[int, str]]:
        for block in document.code_blocks:
            if not block.closed:
                yield block.line, "code fence is never closed"

    def check_empty_topics(self, document: Document) -> Iterator[tuple[int, str]]:
        for topic in document.topics:
            if topic.is_empty:
                yield topic.line, f"topic {topic.title!r} has no content"

    def check_toc_current(self, document: Document) -> Iterator[tuple[int, str]]:
        if self.toc.is_current(document):
            return
        line = next(
            (i for i, text in enumerate(document.lines, start=1) if text.strip() == self.toc.start_marker),
            1,
        )
        yield line, "table of contents is out of date (run `sqlbank toc --write`)"


def _sibling_groups(headings: tuple[Heading, ...]) -> list[list[Heading]]:
    """Group headings that share a parent and a level."""
    groups: dict[tuple[int, int], list[Heading]] = {}
    # parent line per level; 0 is the document root
    parents: list[tuple[int, int]] = []

    for heading in headings:
        while parents and parents[-1][0] >= heading.level:
            parents.pop()
        parent_line = parents[-1][1] if parents else 0
        groups.setdefault((parent_line, heading.level), []).append(heading)
        parents.append((heading.level, heading.line))

    return list(groups.values())


RULES = [
    Rule("SB001", "broken-toc-link", Severity.ERROR, Linter.check_toc_links),
    Rule("SB002", "implausible-sql", Severity.ERROR, Linter.check_sql_blocks),
    Rule("SB003", "duplicate-sibling-slug", Severity.ERROR, Linter.check_sibling_slugs),
    Rule("SB004", "malformed-heading", Severity.WARNING, Linter.check_malformed_headings),
    Rule("SB005", "unclosed-fence", Severity.ERROR, Linter.check_unclosed_fences),
    Rule("SB006", "empty-topic", Severity.WARNING, Linter.check_empty_topics),
    Rule("SB007", "toc-out-of-date", Severity.WARNING, Linter.check_toc_current),
]
