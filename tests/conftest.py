"""Pytest configuration and shared fixtures."""

import shutil
from pathlib import Path

import pytest
import structlog

from sqlbank.config import SqlBankConfig, reset_settings
from sqlbank.loader import ContentLoader
from sqlbank.parser import MarkdownReader


@pytest.fixture(autouse=True)
def _reset_global_state(monkeypatch):
    """Each test starts with default logging and fresh settings."""
    for name in ("SQLBANK_LOG_LEVEL", "SQLBANK_LOG_FORMAT", "SQLBANK_CONFIG_FILE"):
        monkeypatch.delenv(name, raising=False)
    reset_settings()
    yield
    # The CLI binds structlog to the stream it ran with
    structlog.reset_defaults()
    reset_settings()


@pytest.fixture(scope="session")
def fixtures_path():
    """Path to test fixtures."""
    return Path(__file__).parent / "fixtures"


@pytest.fixture(scope="session")
def questions_path(fixtures_path):
    """Well-formed single-file question bank."""
    return fixtures_path / "sql_questions.md"


@pytest.fixture(scope="session")
def broken_path(fixtures_path):
    """Question bank that breaks every lint rule but SB007."""
    return fixtures_path / "broken.md"


@pytest.fixture(scope="session")
def bank_dir(fixtures_path):
    """Question bank split across category directories."""
    return fixtures_path / "bank"


@pytest.fixture
def config():
    """Default configuration."""
    return SqlBankConfig()


@pytest.fixture
def reader():
    """Reader with default heading levels."""
    return MarkdownReader()


@pytest.fixture
def bank(questions_path, config):
    """Loaded well-formed bank."""
    return ContentLoader(config).load(questions_path)


@pytest.fixture
def document(bank):
    """The single document of the well-formed bank."""
    return bank.documents[0]


@pytest.fixture
def broken_bank(broken_path, config):
    """Loaded broken bank."""
    return ContentLoader(config).load(broken_path)


@pytest.fixture
def workspace(tmp_path, fixtures_path):
    """Writable copy of the fixtures."""
    target = tmp_path / "content"
    shutil.copytree(fixtures_path, target)
    return target


@pytest.fixture
def temp_output_dir(tmp_path):
    """Temporary output directory for generated files."""
    output_dir = tmp_path / "site"
    output_dir.mkdir()
    return output_dir
