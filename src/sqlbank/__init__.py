"""
SQL Question Bank

Tooling for a Markdown SQL interview question bank: parses documents into
categories, topics and SQL snippets, keeps tables of contents in sync with
headings, lints structure, and renders a static HTML site.

Example:
    >>> from sqlbank import BankOrchestrator
    >>> from pathlib import Path
    >>> orchestrator = BankOrchestrator(Path("README.md"), Path("site"))
    >>> orchestrator.build_site()
"""

from sqlbank.config import SqlBankConfig
from sqlbank.indexer import BankIndex, TocBuilder
from sqlbank.linter import Linter, LintReport
from sqlbank.loader import ContentLoader
from sqlbank.model import Category, Difficulty, Document, QuestionBank, Snippet, Topic
from sqlbank.orchestrator import BankOrchestrator
from sqlbank.parser import MarkdownReader
from sqlbank.slugs import SlugRegistry, slugify

__version__ = "0.1.0"

__all__ = [
    "BankIndex",
    "BankOrchestrator",
    "Category",
    "ContentLoader",
    "Difficulty",
    "Document",
    "Linter",
    "LintReport",
    "MarkdownReader",
    "QuestionBank",
    "SlugRegistry",
    "Snippet",
    "SqlBankConfig",
    "TocBuilder",
    "Topic",
    "slugify",
    "__version__",
]
