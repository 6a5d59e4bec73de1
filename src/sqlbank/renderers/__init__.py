"""
Renderers module for sqlbank.

Turns a loaded question bank into output files: a static HTML site,
Markdown tables of contents, and a JSON export.
"""

from sqlbank.renderers.base import BaseRenderer
from sqlbank.renderers.html_site import HtmlSiteRenderer
from sqlbank.renderers.json_export import JsonRenderer
from sqlbank.renderers.markdown_html import HtmlConverter, inline_html
from sqlbank.renderers.toc_markdown import TocMarkdownRenderer

__all__ = [
    "BaseRenderer",
    "HtmlSiteRenderer",
    "JsonRenderer",
    "TocMarkdownRenderer",
    "HtmlConverter",
    "inline_html",
]
