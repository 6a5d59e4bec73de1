"""
Heading anchor slugs.

Anchors follow the way GitHub renders Markdown headings, so links written
against the repository view keep working in the generated site:

    "What is a CTE?"        -> "what-is-a-cte"
    "`GROUP BY` vs `HAVING`" -> "group-by-vs-having"
    second "Example"        -> "example-1"
"""

import re

_IMAGE = re.compile(r"!\[([^\]]*)\]\([^)]*\)")
_LINK = re.compile(r"\[([^\]]*)\]\([^)]*\)")
_HTML_TAG = re.compile(r"<[^>]+>")
_EMPHASIS = re.compile(r"(?<!\S)(\*{1,3})(\S(?:.*?\S)?)\1")
_UNDERSCORE_EMPHASIS = re.compile(r"(?<!\w)(_{1,3})(\S(?:.*?\S)?)\1(?!\w)")
_PUNCTUATION = re.compile(r"[^\w\- ]", re.UNICODE)


def strip_inline_markdown(text: str) -> str:
    """Reduce inline Markdown to its visible text.

    Args:
        text: Heading or link text as written

    Returns:
        Plain text
    """
    text = _IMAGE.sub(r"\1", text)
    text = _LINK.sub(r"\1", text)
    text = _HTML_TAG.sub("", text)
    text = text.replace("`", "")
    text = _EMPHASIS.sub(r"\2", text)
    text = _UNDERSCORE_EMPHASIS.sub(r"\2", text)
    return text.strip()


def slugify(text: str) -> str:
    """Anchor slug for a heading.

    Args:
        text: Heading text (inline Markdown allowed)

    Returns:
        Lower-case slug; may be empty for headings made only of punctuation
    """
    plain = strip_inline_markdown(text).lower()
    plain = _PUNCTUATION.sub("", plain)
    return plain.replace(" ", "-")


class SlugRegistry:
    """Hand out slugs that are unique within one document.

    The first occurrence keeps the bare slug; repeats get ``-1``, ``-2``
    and so on. A suffixed slug that collides with a literal heading is
    skipped over.

    Examples:
        >>> slugs = SlugRegistry()
        >>> slugs.unique("Example"), slugs.unique("Example")
        ('example', 'example-1')
    """

    def __init__(self):
        self._seen: dict[str, int] = {}

    def unique(self, text: str) -> str:
        base = slugify(text)
        if base not in self._seen:
            self._seen[base] = 0
            return base

        count = self._seen[base]
        while True:
            count += 1
            candidate = f"{base}-{count}"
            if candidate not in self._seen:
                break
        self._seen[base] = count
        self._seen[candidate] = 0
        return candidate

    def __contains__(self, slug: str) -> bool:
        return slug in self._seen

    def reset(self) -> None:
        self._seen.clear()
