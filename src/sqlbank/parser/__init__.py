"""
Parser module for sqlbank.

Reads Markdown question bank files into the data model and checks SQL
snippets for plausibility.
"""

from sqlbank.parser.markdown_reader import MarkdownReader
from sqlbank.parser.sql_text import SqlIssue, check_sql, looks_like_sql

__all__ = [
    "MarkdownReader",
    "SqlIssue",
    "check_sql",
    "looks_like_sql",
]
