"""
JSON export of a question bank.

Exports the loaded model (documents, categories, topics, snippets) for
external tools such as search indexes or quiz front-ends.
"""

import json
from dataclasses import asdict
from typing import Any

from sqlbank.model import Category, Document, Snippet, Topic
from sqlbank.renderers.base import BaseRenderer


class JsonRenderer(BaseRenderer):
    """Render the bank as one JSON document.

    Examples:
        >>> data = json.loads(JsonRenderer(bank).render()["bank.json"])
        >>> data["documents"][0]["categories"][0]["tier"]
        'basic'
    """

    output_format = "json"
    output_name = "bank.json"

    def render(self) -> dict[str, str]:
        return {self.output_name: json.dumps(self.to_dict(), indent=2, ensure_ascii=False) + "\n"}

    def to_dict(self) -> dict[str, Any]:
        """Convert the bank to plain data."""
        metadata = self._get_metadata()
        generated_at = metadata["generated_at"]
        return {
            "title": self.site_title,
            "generated_at": generated_at.isoformat() if generated_at else None,
            "stats": metadata["stats"],
            "documents": [self._document(d) for d in self.bank],
        }

    def _document(self, document: Document) -> dict[str, Any]:
        return {
            "path": str(document.path),
            "page": str(self.page_path(document)),
            "title": document.title,
            "headings": [asdict(h) for h in document.headings],
            "categories": [self._category(c) for c in document.categories],
        }

    def _category(self, category: Category) -> dict[str, Any]:
        return {
            "name": category.name,
            "anchor": category.anchor,
            "line": category.line,
            "tier": category.tier.value,
            "intro": category.intro,
            "topics": [self._topic(t) for t in category.topics],
        }

    def _topic(self, topic: Topic) -> dict[str, Any]:
        return {
            "title": topic.title,
            "anchor": topic.anchor,
            "line": topic.line,
            "prose": topic.prose,
            "snippets": [self._snippet(s) for s in topic.snippets],
        }

    def _snippet(self, snippet: Snippet) -> dict[str, Any]:
        return asdict(snippet)
