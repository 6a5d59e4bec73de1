"""
Content loader.

Finds Markdown files, reads them with ``MarkdownReader`` and assembles a
``QuestionBank``.

Example:
    >>> loader = ContentLoader()
    >>> bank = loader.load(Path("content"))
    >>> bank.stats()["topics"]
    87
"""

from pathlib import Path

from sqlbank.config import SqlBankConfig
from sqlbank.errors import ContentDecodeError, ContentError, ContentNotFoundError
from sqlbank.logging import get_logger
from sqlbank.model import Document, QuestionBank
from sqlbank.parser.markdown_reader import MarkdownReader

logger = get_logger(__name__)

MARKDOWN_SUFFIXES = (".md", ".markdown")


class ContentLoader:
    """Load question bank content from a file or a directory tree.

    Manifesto:
        Content is organized by category either inside one file (category
        headings) or across a directory tree (one folder per category).
        The loader accepts both and hands every later step the same
        ``QuestionBank``.

    Features:
        - Load a single Markdown file
        - Recursively load ``*.md`` files in sorted order
        - Skip configured directories (``node_modules``, ``site``, ...)
        - Use the parent directory name as the category for files that
          have topics but no category heading

    Guardrails:
        - Do NOT guess when a path is missing
          ✅ Raise ContentNotFoundError with the path
        - Do NOT silently drop undecodable files
          ✅ Raise ContentDecodeError with the path

    Tags:
        - loader
        - content
        - core_infrastructure
    """

    def __init__(self, config: SqlBankConfig | None = None):
        self.config = config or SqlBankConfig()
        self.reader = MarkdownReader(
            category_level=self.config.category_level,
            topic_level=self.config.topic_level,
            sql_languages=self.config.sql_languages,
        )

    def load(self, path: Path | None = None) -> QuestionBank:
        """Load a file or directory.

        Args:
            path: Markdown file or directory (defaults to config.content_path)

        Returns:
            QuestionBank
        """
        path = Path(path) if path is not None else self.config.content_path
        if not path.exists():
            raise ContentNotFoundError(f"Content path does not exist: {path}").with_context(path=str(path))

        if path.is_dir():
            return self.load_directory(path)

        document = self.load_file(path)
        return QuestionBank(documents=(document,), root=path.parent)

    def load_file(self, path: Path, default_category: str | None = None) -> Document:
        """Load one Markdown file.

        Args:
            path: File to read
            default_category: Category for topics outside any category heading

        Returns:
            Document
        """
        path = Path(path)
        if not path.is_file():
            raise ContentNotFoundError(f"Content file not found: {path}").with_context(path=str(path))

        try:
            text = path.read_text(encoding="utf-8")
        except UnicodeDecodeError as e:
            raise ContentDecodeError(
                f"File is not valid UTF-8 (byte {e.start})", cause=e,
            ).with_context(path=str(path)) from e
        except OSError as e:
            raise ContentError(f"Cannot read file: {e.strerror}", cause=e).with_context(path=str(path)) from e

        document = self.reader.read(text, path, default_category=default_category)
        logger.info(
            "document_loaded",
            path=str(path),
            headings=len(document.headings),
            categories=len(document.categories),
            topics=len(document.topics),
        )
        return document

    def load_directory(self, root: Path) -> QuestionBank:
        """Recursively load every Markdown file under ``root``.

        Args:
            root: Directory to scan

        Returns:
            QuestionBank with documents in sorted path order
        """
        root = Path(root)
        if not root.is_dir():
            raise ContentNotFoundError(f"Content directory not found: {root}").with_context(path=str(root))

        documents = []
        for md_file in self.find_files(root):
            relative = md_file.relative_to(root)
            default_category = relative.parent.name.replace("-", " ").replace("_", " ").title() or None
            documents.append(self.load_file(md_file, default_category=default_category))

        logger.info("bank_loaded", root=str(root), documents=len(documents))
        return QuestionBank(documents=tuple(documents), root=root)

    def find_files(self, root: Path) -> list[Path]:
        """Markdown files under ``root`` that are not skipped, sorted."""
        found = []
        for candidate in root.rglob("*"):
            if not candidate.is_file() or candidate.suffix.lower() not in MARKDOWN_SUFFIXES:
                continue
            if self.config.should_skip(candidate.relative_to(root)):
                logger.debug("file_skipped", path=str(candidate))
                continue
            found.append(candidate)
        return sorted(found)
