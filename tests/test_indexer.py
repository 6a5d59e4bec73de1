"""Tests for TOC generation and bank indexing."""

from pathlib import Path

from sqlbank.indexer import BankIndex, TocBuilder
from sqlbank.model import Difficulty, QuestionBank
from sqlbank.parser import MarkdownReader


def read(text: str):
    return MarkdownReader().read(text, Path("test.md"))


EXPECTED_TOC = """\
- [Basic SQL](#basic-sql)
  - [What is SQL?](#what-is-sql)
  - [What is the difference between WHERE and HAVING?](#what-is-the-difference-between-where-and-having)
- [Intermediate SQL](#intermediate-sql)
  - [How do you find duplicate rows?](#how-do-you-find-duplicate-rows)
  - [What is a CTE?](#what-is-a-cte)
- [Advanced SQL](#advanced-sql)
  - [What is a window function?](#what-is-a-window-function)
  - [How do you rank rows within a group?](#how-do-you-rank-rows-within-a-group)"""


# =============================================================================
# TocBuilder
# =============================================================================

class TestTocBuilder:
    """Tests for TocBuilder."""

    def test_build_nests_topics(self, document):
        entries = TocBuilder().build(document)
        assert [e.title for e in entries] == ["Basic SQL", "Intermediate SQL", "Advanced SQL"]
        assert [c.anchor for c in entries[2].children] == [
            "what-is-a-window-function",
            "how-do-you-rank-rows-within-a-group",
        ]

    def test_excludes_title_and_toc_section(self, document):
        anchors = [e.anchor for root in TocBuilder().build(document) for e in root.walk()]
        assert "sql-interview-questions" not in anchors
        assert "table-of-contents" not in anchors
        assert len(anchors) == 9

    def test_generate_matches_fixture(self, document):
        assert TocBuilder().generate(document) == EXPECTED_TOC

    def test_level_range(self):
        doc = read("# T\n\n## A\n\n### B\n\n#### C\n")
        assert TocBuilder(max_level=4).generate(doc) == (
            "- [A](#a)\n"
            "  - [B](#b)\n"
            "    - [C](#c)"
        )
        assert TocBuilder(min_level=3, max_level=3).generate(doc) == "- [B](#b)"

    def test_skipped_level_nests_under_nearest(self):
        doc = read("## A\n\n#### Deep\n\n### B\n")
        entries = TocBuilder(max_level=4).build(doc)
        assert [c.title for c in entries[0].children] == ["Deep", "B"]

    def test_escapes_brackets(self):
        doc = read("## Arrays [PostgreSQL]\n")
        assert TocBuilder().generate(doc) == "- [Arrays \\[PostgreSQL\\]](#arrays-postgresql)"

    def test_empty_document(self):
        assert TocBuilder().generate(read("Just text.\n")) == ""


class TestTocCurrency:
    """Tests for TOC currency checks and in-place updates."""

    def test_fixture_is_current(self, document):
        toc = TocBuilder()
        assert toc.current_block(document) == EXPECTED_TOC
        assert toc.is_current(document)

    def test_without_markers_is_current(self):
        assert TocBuilder().is_current(read("# T\n\n## A\n"))

    def test_stale_block_detected(self, questions_path):
        text = questions_path.read_text().replace("  - [What is a CTE?](#what-is-a-cte)\n", "")
        doc = read(text)
        assert not TocBuilder().is_current(doc)

    def test_update_restores_stale_block(self, questions_path):
        original = questions_path.read_text()
        stale = original.replace("  - [What is a CTE?](#what-is-a-cte)\n", "")
        assert TocBuilder().update_document(read(stale)) == original

    def test_update_current_document_is_unchanged(self, document, questions_path):
        assert TocBuilder().update_document(document) == questions_path.read_text()

    def test_update_replaces_unmarked_toc_section(self):
        doc = read(
            "# Bank\n"
            "\n"
            "## Contents\n"
            "\n"
            "- [Old](#old)\n"
            "\n"
            "## Basics\n"
            "\n"
            "### What is SQL?\n"
        )
        assert TocBuilder().update_document(doc) == (
            "# Bank\n"
            "\n"
            "## Contents\n"
            "\n"
            "<!-- toc -->\n"
            "\n"
            "- [Basics](#basics)\n"
            "  - [What is SQL?](#what-is-sql)\n"
            "\n"
            "<!-- tocstop -->\n"
            "\n"
            "## Basics\n"
            "\n"
            "### What is SQL?\n"
        )

    def test_update_inserts_after_title(self):
        doc = read("# Bank\n\n## Basics\n")
        assert TocBuilder().update_document(doc) == (
            "# Bank\n"
            "\n"
            "<!-- toc -->\n"
            "\n"
            "- [Basics](#basics)\n"
            "\n"
            "<!-- tocstop -->\n"
            "\n"
            "## Basics\n"
        )

    def test_update_inserts_at_top_without_title(self):
        doc = read("## Basics\n")
        assert TocBuilder().update_document(doc) == (
            "<!-- toc -->\n"
            "\n"
            "- [Basics](#basics)\n"
            "\n"
            "<!-- tocstop -->\n"
            "\n"
            "## Basics\n"
        )

    def test_update_is_idempotent(self):
        toc = TocBuilder()
        once = toc.update_document(read("# Bank\n\n## Basics\n\n### Q\n\nA.\n"))
        assert toc.update_document(read(once)) == once

    def test_custom_markers(self):
        toc = TocBuilder(start_marker="<!-- START -->", end_marker="<!-- END -->")
        doc = read("# Bank\n\n<!-- START -->\nstale\n<!-- END -->\n\n## Basics\n")
        updated = toc.update_document(doc)
        assert "stale" not in updated
        assert "<!-- START -->\n\n- [Basics](#basics)\n\n<!-- END -->" in updated


# =============================================================================
# BankIndex
# =============================================================================

class TestBankIndex:
    """Tests for BankIndex."""

    def test_tiers_ordered(self, bank):
        tiers = BankIndex(bank).tiers()
        assert list(tiers) == [Difficulty.BASIC, Difficulty.INTERMEDIATE, Difficulty.ADVANCED]
        assert [c.name for c in tiers[Difficulty.ADVANCED]] == ["Advanced SQL"]

    def test_empty_tiers_omitted(self, bank_dir):
        from sqlbank.loader import ContentLoader

        tiers = BankIndex(ContentLoader().load(bank_dir)).tiers()
        assert list(tiers) == [Difficulty.BASIC, Difficulty.ADVANCED]

    def test_unknown_tier_last(self):
        doc = read("## Misc\n\n### Q\n\nA.\n\n## Basics\n\n### R\n\nB.\n")
        tiers = BankIndex(QuestionBank(documents=(doc,))).tiers()
        assert list(tiers) == [Difficulty.BASIC, Difficulty.UNKNOWN]

    def test_lookup(self, bank):
        found = BankIndex(bank).lookup("#what-is-a-cte")
        assert found is not None
        _, category, topic = found
        assert category.name == "Intermediate SQL"
        assert topic.title == "What is a CTE?"

    def test_lookup_missing(self, bank):
        assert BankIndex(bank).lookup("nope") is None

    def test_search_all_terms_required(self, bank):
        hits = BankIndex(bank).search("window function")
        assert [h.topic.title for h in hits] == ["What is a window function?"]

    def test_search_case_insensitive(self, bank):
        assert BankIndex(bank).search("WINDOW FUNCTION")[0].topic.anchor == "what-is-a-window-function"

    def test_search_title_weighs_more(self, bank):
        hits = BankIndex(bank).search("duplicate")
        assert hits[0].topic.title == "How do you find duplicate rows?"

    def test_search_by_tier(self, bank):
        hits = BankIndex(bank).search("rows", tier=Difficulty.ADVANCED)
        assert {h.category.tier for h in hits} == {Difficulty.ADVANCED}
        assert len(hits) == 2

    def test_search_matches_prose(self, bank):
        hits = BankIndex(bank).search("common table expression")
        assert [h.topic.title for h in hits] == ["What is a CTE?"]

    def test_search_skips_code(self, bank):
        assert BankIndex(bank).search("high_earners") == []

    def test_empty_query(self, bank):
        assert BankIndex(bank).search("   ") == []
