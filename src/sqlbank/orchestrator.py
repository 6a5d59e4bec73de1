"""
Question bank orchestrator.

Coordinates loading, TOC maintenance, site generation, export and linting
so every command works from one loaded bank.

Example:
    >>> orchestrator = BankOrchestrator(Path("README.md"), Path("site"))
    >>> orchestrator.build_site()
    {'index.html': 5120, 'README.html': 48211}
"""

from pathlib import Path
from typing import Any

from sqlbank.config import SqlBankConfig
from sqlbank.errors import RenderError
from sqlbank.indexer import BankIndex, SearchHit, TocBuilder
from sqlbank.linter import Linter, LintReport
from sqlbank.loader import ContentLoader
from sqlbank.logging import get_logger
from sqlbank.model import Difficulty, QuestionBank
from sqlbank.renderers import HtmlSiteRenderer, JsonRenderer, TocMarkdownRenderer

logger = get_logger(__name__)


class BankOrchestrator:
    """Orchestrate every operation on a question bank.

    Manifesto:
        One command per job, one load per command. The orchestrator loads
        the bank once and shares it with the TOC builder, the renderers
        and the linter.

    Architecture:
        ```
        BankOrchestrator
              │
              ├──► ContentLoader.load() ──► QuestionBank (cached)
              │
              ├──► build_site()   ──► HtmlSiteRenderer ──► output_dir/*.html
              ├──► write_toc()    ──► TocBuilder.update_document()
              ├──► export_json()  ──► JsonRenderer ──► bank.json
              ├──► lint()         ──► Linter ──► LintReport
              └──► search()       ──► BankIndex
        ```

    Guardrails:
        - Do NOT reload the bank for each step
          ✅ Load once, share across steps
        - Do NOT stop at the first page that fails to write
          ✅ Collect errors, report them at the end

    Tags:
        - orchestrator
        - generation
        - coordination
        - core_infrastructure

    Doc-Types:
        - API_REFERENCE (section: "Core Module", priority: 9)
        - ARCHITECTURE (section: "Generation Pipeline", priority: 8)
    """

    def __init__(
        self,
        content_path: Path | None = None,
        output_dir: Path | None = None,
        config: SqlBankConfig | None = None,
    ):
        """Initialize the orchestrator.

        Args:
            content_path: Markdown file or directory (overrides config)
            output_dir: Where to write generated output (overrides config)
            config: Configuration object
        """
        self.config = config or SqlBankConfig()
        if content_path is not None:
            self.config.content_path = Path(content_path)
        if output_dir is not None:
            self.config.output_dir = Path(output_dir)

        self.loader = ContentLoader(self.config)
        self.toc = TocBuilder(
            min_level=self.config.toc_min_level,
            max_level=self.config.toc_max_level,
            start_marker=self.config.toc_start_marker,
            end_marker=self.config.toc_end_marker,
        )

        self.bank: QuestionBank | None = None
        self.errors: list[str] = []

    @property
    def content_path(self) -> Path:
        return self.config.content_path

    @property
    def output_dir(self) -> Path:
        return self.config.output_dir

    def load(self, reload: bool = False) -> QuestionBank:
        """Load the bank (cached after the first call).

        Returns:
            QuestionBank
        """
        if self.bank is None or reload:
            self.bank = self.loader.load(self.content_path)
        return self.bank

    def _renderer_options(self) -> dict[str, Any]:
        return {
            "template_dir": self.config.template_dir,
            "site_title": self.config.site_title,
        }

    def build_site(self) -> dict[str, int]:
        """Render the HTML site into the output directory.

        Returns:
            Dict mapping relative page path to size in bytes (0 when the
            page could not be written)
        """
        self.errors = []
        bank = self.load()

        renderer = HtmlSiteRenderer(bank, toc_builder=self.toc, **self._renderer_options())
        pages = renderer.render()

        self.output_dir.mkdir(parents=True, exist_ok=True)
        results = {}
        for relative, content in pages.items():
            results[relative] = self._write(self.output_dir / relative, content)

        self._report_errors()
        logger.info(
            "site_built",
            output_dir=str(self.output_dir),
            pages=len([size for size in results.values() if size > 0]),
            total_bytes=sum(results.values()),
        )
        return results

    def render_toc(self) -> dict[str, str]:
        """Generated TOC Markdown per document path."""
        renderer = TocMarkdownRenderer(self.load(), toc_builder=self.toc, **self._renderer_options())
        return renderer.render()

    def check_toc(self) -> dict[str, bool]:
        """Whether each document's marked TOC block is current.

        Same rule as SB007: a document without TOC markers counts as
        current. ``write_toc`` would still add a block to it.

        Returns:
            Dict mapping document path to whether its TOC is current
        """
        results = {str(document.path): self.toc.is_current(document) for document in self.load()}
        logger.info("toc_checked", documents=len(results), stale=list(results.values()).count(False))
        return results

    def write_toc(self, in_place: bool = True) -> dict[str, bool]:
        """Regenerate the TOC block in every document.

        Args:
            in_place: Write changed files back; False only reports

        Returns:
            Dict mapping document path to whether its text changed
        """
        self.errors = []
        changed = {}
        for document in self.load():
            updated = self.toc.update_document(document)
            original = document.text + "\n"
            is_changed = updated != original
            changed[str(document.path)] = is_changed
            if is_changed and in_place:
                self._write(Path(document.path), updated)

        self._report_errors()
        if in_place and any(changed.values()):
            self.load(reload=True)
        return changed

    def export_json(self, path: Path | None = None) -> Path:
        """Write the JSON export.

        Args:
            path: Output file (defaults to output_dir/bank.json)

        Returns:
            Path written
        """
        renderer = JsonRenderer(self.load(), **self._renderer_options())
        content = renderer.render()[renderer.output_name]
        target = Path(path) if path is not None else self.output_dir / renderer.output_name
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(content, encoding="utf-8")
        except OSError as e:
            raise RenderError(f"Cannot write export: {e.strerror}", cause=e).with_context(path=str(target)) from e
        logger.info("json_exported", path=str(target), bytes=len(content.encode("utf-8")))
        return target

    def lint(self) -> LintReport:
        """Run the linter over the bank."""
        return Linter(self.config).lint(self.load())

    def search(self, query: str, tier: Difficulty | None = None) -> list[SearchHit]:
        """Keyword search over topics."""
        return BankIndex(self.load()).search(query, tier=tier)

    def get_stats(self) -> dict[str, Any]:
        """Statistics about the loaded bank."""
        return self.load().stats()

    def _write(self, path: Path, content: str) -> int:
        """Write one file; failures are collected, not raised."""
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding="utf-8")
        except OSError as e:
            error = RenderError(f"Cannot write file: {e.strerror}", cause=e).with_context(path=str(path))
            self.errors.append(str(error))
            logger.error("write_failed", **error.to_dict())
            return 0
        return len(content.encode("utf-8"))

    def _report_errors(self) -> None:
        for error in self.errors:
            logger.warning("step_error", error=error)
