"""
Static HTML site renderer.

Produces an ``index.html`` listing every category by difficulty tier, plus
one page per Markdown document with a sidebar table of contents.
"""

from typing import Any

from sqlbank.indexer import BankIndex, TocBuilder
from sqlbank.logging import get_logger
from sqlbank.model import Document
from sqlbank.renderers.base import BaseRenderer
from sqlbank.renderers.markdown_html import HtmlConverter

logger = get_logger(__name__)


class HtmlSiteRenderer(BaseRenderer):
    """Render a question bank as navigable static HTML.

    Features:
        - Tier overview page with category and topic counts
        - One page per document, same anchors as the Markdown
        - Sidebar TOC built from the document headings
        - Relative links only, so the site works from ``file://``

    Tags:
        - renderer
        - html
        - static_site

    Doc-Types:
        - API_REFERENCE (section: "Renderers", priority: 6)
    """

    output_format = "html"
    template_name = "document.html"
    index_template_name = "index.html"

    def __init__(self, bank, toc_builder: TocBuilder | None = None, **kwargs: Any):
        super().__init__(bank, **kwargs)
        self.toc = toc_builder or TocBuilder()

    def render(self) -> dict[str, str]:
        """Generate every page.

        Returns:
            Mapping of relative page path to HTML
        """
        pages: dict[str, str] = {"index.html": self.render_index()}
        for document in self.bank:
            path = self.page_path(document)
            pages[str(path)] = self.render_document(document)
        logger.info("site_rendered", pages=len(pages))
        return pages

    def render_index(self) -> str:
        """Render the tier overview page."""
        index = BankIndex(self.bank)
        tiers = [
            {
                "tier": tier,
                "categories": [
                    {
                        "category": category,
                        "document": self._document_of(category),
                    }
                    for category in categories
                ],
            }
            for tier, categories in index.tiers().items()
        ]
        documents = [
            {"document": document, "href": str(self.page_path(document))}
            for document in self.bank
        ]

        template = self._get_template(self.index_template_name)
        return template.render(
            tiers=tiers,
            documents=documents,
            root="",
            **self._get_metadata(),
        )

    def render_document(self, document: Document) -> str:
        """Render one document page."""
        page = self.page_path(document)
        depth = len(page.parts) - 1
        body = HtmlConverter.for_document(document).convert(document.lines)

        template = self._get_template()
        return template.render(
            document=document,
            title=document.title,
            toc=self.toc.build(document),
            body=body,
            root="../" * depth,
            page=str(page),
            **self._get_metadata(),
        )

    def _document_of(self, category) -> Document | None:
        for document in self.bank:
            if any(c is category for c in document.categories):
                return document
        return None

