"""Tests for sqlbank.cli via click's CliRunner."""

import json

import pytest
from click.testing import CliRunner

from sqlbank import __version__
from sqlbank.cli import cli

STALE_LINE = "  - [What is a CTE?](#what-is-a-cte)\n"


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def stale_questions(workspace):
    path = workspace / "sql_questions.md"
    path.write_text(path.read_text().replace(STALE_LINE, ""))
    return path


@pytest.fixture
def warnings_only(tmp_path):
    path = tmp_path / "warnings.md"
    path.write_text("# T\n\n## Basics\n\n### Empty\n")
    return path


# ─── Global options ──────────────────────────────────────────────────────


class TestGlobalOptions:
    """Tests for options on the command group."""

    def test_version(self, runner):
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_help_lists_commands(self, runner):
        result = runner.invoke(cli, ["--help"])
        assert result.exit_code == 0
        for command in ("build", "toc", "lint", "stats", "export", "search"):
            assert command in result.output

    def test_config_file_supplies_content(self, runner, tmp_path, questions_path):
        config_file = tmp_path / "sqlbank.yaml"
        config_file.write_text(f"content_path: {questions_path}\n")

        result = runner.invoke(cli, ["--config", str(config_file), "stats", "--json"])
        assert result.exit_code == 0
        assert json.loads(result.stdout)["topics"] == 6

    def test_default_config_in_working_directory(self, runner, tmp_path, questions_path, monkeypatch):
        (tmp_path / "sqlbank.yaml").write_text(f"content_path: {questions_path}\n")
        monkeypatch.chdir(tmp_path)

        result = runner.invoke(cli, ["stats", "--json"])
        assert result.exit_code == 0
        assert json.loads(result.stdout)["categories"] == 3

    def test_config_file_from_environment(self, runner, tmp_path, questions_path, monkeypatch):
        config_file = tmp_path / "bank.yaml"
        config_file.write_text(f"content_path: {questions_path}\n")
        monkeypatch.setenv("SQLBANK_CONFIG_FILE", str(config_file))

        result = runner.invoke(cli, ["stats", "--json"])
        assert result.exit_code == 0
        assert json.loads(result.stdout)["documents"] == 1

    def test_invalid_config_exits_2(self, runner, tmp_path, questions_path):
        config_file = tmp_path / "sqlbank.yaml"
        config_file.write_text("topic_level: 1\n")

        result = runner.invoke(cli, ["--config", str(config_file), "stats", str(questions_path)])
        assert result.exit_code == 2
        assert "Error" in result.output
        assert "topic_level" in result.output


# ─── build ───────────────────────────────────────────────────────────────


class TestBuildCommand:
    """Tests for 'sqlbank build'."""

    def test_build(self, runner, questions_path, tmp_path):
        output = tmp_path / "public"
        result = runner.invoke(cli, ["build", str(questions_path), "-o", str(output)])

        assert result.exit_code == 0
        assert (output / "index.html").is_file()
        assert (output / "sql_questions.html").is_file()

    def test_build_reports_write_failures(self, runner, questions_path, temp_output_dir):
        (temp_output_dir / "index.html").mkdir()
        result = runner.invoke(cli, ["build", str(questions_path), "-o", str(temp_output_dir)])
        assert result.exit_code == 1


# ─── toc ─────────────────────────────────────────────────────────────────


class TestTocCommand:
    """Tests for 'sqlbank toc'."""

    def test_prints_toc(self, runner, questions_path):
        result = runner.invoke(cli, ["toc", str(questions_path)])
        assert result.exit_code == 0
        assert result.stdout.startswith("- [Basic SQL](#basic-sql)\n")

    def test_check_current(self, runner, questions_path):
        result = runner.invoke(cli, ["toc", str(questions_path), "--check"])
        assert result.exit_code == 0

    def test_check_stale(self, runner, stale_questions):
        before = stale_questions.read_text()
        result = runner.invoke(cli, ["toc", str(stale_questions), "--check"])
        assert result.exit_code == 1
        assert stale_questions.read_text() == before

    def test_check_agrees_with_lint_without_markers(self, runner, warnings_only):
        result = runner.invoke(cli, ["toc", str(warnings_only), "--check"])
        assert result.exit_code == 0
        assert "current" in result.output

        lint_result = runner.invoke(cli, ["lint", str(warnings_only), "--json"])
        assert "SB007" not in lint_result.stdout

    def test_write(self, runner, stale_questions):
        result = runner.invoke(cli, ["toc", str(stale_questions), "--write"])
        assert result.exit_code == 0
        assert STALE_LINE in stale_questions.read_text()


# ─── lint ────────────────────────────────────────────────────────────────


class TestLintCommand:
    """Tests for 'sqlbank lint'."""

    def test_clean(self, runner, questions_path):
        result = runner.invoke(cli, ["lint", str(questions_path)])
        assert result.exit_code == 0
        assert "0 errors" in result.output

    def test_errors_exit_1(self, runner, broken_path):
        result = runner.invoke(cli, ["lint", str(broken_path)])
        assert result.exit_code == 1
        for code in ("SB001", "SB002", "SB003", "SB004", "SB005", "SB006"):
            assert code in result.output

    def test_info_logging_reports_unclosed_fence(self, runner, broken_path):
        result = runner.invoke(cli, ["--log-level", "INFO", "lint", str(broken_path)])
        assert result.exit_code == 1
        assert result.exception is None or isinstance(result.exception, SystemExit)
        assert "SB005" in result.output

    def test_warnings_pass_without_strict(self, runner, warnings_only):
        result = runner.invoke(cli, ["lint", str(warnings_only)])
        assert result.exit_code == 0
        assert "SB006" in result.output

    def test_strict_fails_on_warnings(self, runner, warnings_only):
        result = runner.invoke(cli, ["lint", str(warnings_only), "--strict"])
        assert result.exit_code == 1

    def test_json(self, runner, broken_path):
        result = runner.invoke(cli, ["--log-level", "ERROR", "lint", str(broken_path), "--json"])
        assert result.exit_code == 1
        data = json.loads(result.stdout)
        assert data["errors"] == 5
        assert data["issues"][0]["code"] == "SB001"

    def test_disabled_rules_from_config(self, runner, tmp_path, warnings_only):
        config_file = tmp_path / "sqlbank.yaml"
        config_file.write_text("disabled_rules: [SB006]\n")
        result = runner.invoke(
            cli, ["--config", str(config_file), "lint", str(warnings_only), "--strict"]
        )
        assert result.exit_code == 0


# ─── stats, export, search ───────────────────────────────────────────────


class TestStatsCommand:
    """Tests for 'sqlbank stats'."""

    def test_table(self, runner, questions_path):
        result = runner.invoke(cli, ["stats", str(questions_path)])
        assert result.exit_code == 0
        assert "Topics" in result.output
        assert "Advanced" in result.output

    def test_json(self, runner, bank_dir):
        result = runner.invoke(cli, ["stats", str(bank_dir), "--json"])
        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["documents"] == 2
        assert data["topics_by_tier"] == {"basic": 1, "advanced": 1}


class TestExportCommand:
    """Tests for 'sqlbank export'."""

    def test_export(self, runner, questions_path, tmp_path):
        target = tmp_path / "bank.json"
        result = runner.invoke(cli, ["export", str(questions_path), "-o", str(target)])
        assert result.exit_code == 0
        assert json.loads(target.read_text())["stats"]["topics"] == 6


class TestSearchCommand:
    """Tests for 'sqlbank search'."""

    def test_hit(self, runner, questions_path):
        result = runner.invoke(cli, ["search", "CTE", str(questions_path)])
        assert result.exit_code == 0
        assert "CTE" in result.output

    def test_tier_filter(self, runner, questions_path):
        result = runner.invoke(cli, ["search", "window", str(questions_path), "--tier", "basic"])
        assert result.exit_code == 1
        assert "No questions match" in result.output

    def test_no_hits(self, runner, questions_path):
        result = runner.invoke(cli, ["search", "xyzzy", str(questions_path)])
        assert result.exit_code == 1
