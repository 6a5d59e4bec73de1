"""
Configuration for sqlbank.

Two layers:

* ``SqlBankConfig``: what to load and how to render it. Lives in a YAML file
  next to the content (``sqlbank.yaml``) or is built from CLI options.
* ``Settings``: process-level settings (logging) read from ``SQLBANK_*``
  environment variables and ``.env`` via pydantic-settings.
"""

from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic_settings import BaseSettings, SettingsConfigDict

from sqlbank.errors import ConfigError, InvalidConfigError

DEFAULT_SQL_LANGUAGES = [
    "sql", "mysql", "postgresql", "postgres", "psql", "sqlite", "tsql", "plsql",
]

ALL_LINT_RULES = [
    "SB001", "SB002", "SB003", "SB004", "SB005", "SB006", "SB007",
]


@dataclass
class SqlBankConfig:
    """Configuration for loading, indexing and rendering a question bank.

    Attributes:
        content_path: Markdown file or directory holding the question bank
        output_dir: Where to write the generated site
        template_dir: Directory containing Jinja2 templates
        skip_patterns: Patterns to skip when scanning directories
        category_level: Heading level that starts a category (tier)
        topic_level: Heading level that starts a topic (question)
        toc_min_level: Shallowest heading level listed in a TOC
        toc_max_level: Deepest heading level listed in a TOC
        toc_start_marker: Comment opening a generated TOC block
        toc_end_marker: Comment closing a generated TOC block
        sql_languages: Fence info strings treated as SQL
        disabled_rules: Lint rule codes to skip
        site_title: Title used on the HTML index page
    """

    content_path: Path = field(default_factory=lambda: Path("."))
    output_dir: Path = field(default_factory=lambda: Path("site"))
    template_dir: Path | None = None

    # File scanning
    skip_patterns: list[str] = field(default_factory=lambda: [
        "node_modules", ".git", ".venv", "venv", "site", "build", "dist",
    ])

    # Structure
    category_level: int = 2
    topic_level: int = 3

    # Table of contents
    toc_min_level: int = 2
    toc_max_level: int = 3
    toc_start_marker: str = "<!-- toc -->"
    toc_end_marker: str = "<!-- tocstop -->"

    # Snippets and linting
    sql_languages: list[str] = field(default_factory=lambda: list(DEFAULT_SQL_LANGUAGES))
    disabled_rules: list[str] = field(default_factory=list)

    # Rendering
    site_title: str = "SQL Interview Questions"

    def __post_init__(self):
        """Convert paths to Path objects and check heading levels."""
        if isinstance(self.content_path, str):
            self.content_path = Path(self.content_path)
        if isinstance(self.output_dir, str):
            self.output_dir = Path(self.output_dir)
        if isinstance(self.template_dir, str):
            self.template_dir = Path(self.template_dir)

        if self.template_dir is None:
            self.template_dir = Path(__file__).parent / "templates"

        self.sql_languages = [lang.lower() for lang in self.sql_languages]
        self.disabled_rules = [code.upper() for code in self.disabled_rules]

        for key in ("category_level", "topic_level", "toc_min_level", "toc_max_level"):
            value = getattr(self, key)
            if not isinstance(value, int) or not 1 <= value <= 6:
                raise InvalidConfigError(key, value, f"{key} must be a heading level 1-6, got {value!r}")

        if self.topic_level <= self.category_level:
            raise InvalidConfigError(
                "topic_level", self.topic_level,
                "topic_level must be deeper than category_level",
            )
        if self.toc_max_level < self.toc_min_level:
            raise InvalidConfigError(
                "toc_max_level", self.toc_max_level,
                "toc_max_level must not be shallower than toc_min_level",
            )

        unknown = [code for code in self.disabled_rules if code not in ALL_LINT_RULES]
        if unknown:
            raise InvalidConfigError("disabled_rules", unknown)

    @classmethod
    def from_yaml(cls, yaml_path: Path) -> "SqlBankConfig":
        """Load configuration from YAML file.

        Relative paths in the file are resolved against the file's directory.

        Args:
            yaml_path: Path to YAML configuration file

        Returns:
            SqlBankConfig instance
        """
        yaml_path = Path(yaml_path)
        if not yaml_path.exists():
            raise ConfigError(f"Config file not found: {yaml_path}")

        try:
            with open(yaml_path, encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {yaml_path}", cause=e) from e

        if not isinstance(data, dict):
            raise InvalidConfigError("<root>", data, f"{yaml_path} must contain a mapping")

        base = yaml_path.parent
        for key in ("content_path", "output_dir", "template_dir"):
            if data.get(key) is not None and not Path(data[key]).is_absolute():
                data[key] = base / data[key]

        return cls.from_dict(data)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SqlBankConfig":
        """Create config from dictionary.

        Args:
            data: Configuration dictionary

        Returns:
            SqlBankConfig instance

        Raises:
            InvalidConfigError: If the dictionary has keys the config does not know
        """
        known = {f.name for f in fields(cls)}
        for key in data:
            if key not in known:
                raise InvalidConfigError(key, data[key], f"Unknown configuration key: {key}")
        return cls(**data)

    def to_dict(self) -> dict[str, Any]:
        """Convert config to dictionary.

        Returns:
            Configuration as dictionary
        """
        return {
            "content_path": str(self.content_path),
            "output_dir": str(self.output_dir),
            "template_dir": str(self.template_dir) if self.template_dir else None,
            "skip_patterns": self.skip_patterns,
            "category_level": self.category_level,
            "topic_level": self.topic_level,
            "toc_min_level": self.toc_min_level,
            "toc_max_level": self.toc_max_level,
            "toc_start_marker": self.toc_start_marker,
            "toc_end_marker": self.toc_end_marker,
            "sql_languages": self.sql_languages,
            "disabled_rules": self.disabled_rules,
            "site_title": self.site_title,
        }

    def should_skip(self, file_path: Path) -> bool:
        """Check if a file should be skipped during scanning.

        Only path components are matched, so ``site`` skips ``site/`` but not
        ``website.md``.
        """
        parts = Path(file_path).parts
        return any(pattern in parts for pattern in self.skip_patterns)

    def is_rule_enabled(self, code: str) -> bool:
        """Check whether a lint rule runs."""
        return code.upper() not in self.disabled_rules


class Settings(BaseSettings):
    """Process settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="SQLBANK_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "WARNING"
    log_format: Literal["json", "console"] = "console"

    # Default config file picked up when --config is not given
    config_file: Path | None = None


# Global settings instance
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get or create settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Reset settings (for testing)."""
    global _settings
    _settings = None
