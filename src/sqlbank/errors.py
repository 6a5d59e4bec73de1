"""
Structured error types for sqlbank.

Every failure the tool can raise while loading, configuring or rendering a
question bank is a ``SqlBankError``. Lint findings are *not* errors: the
linter reports them as data (see ``sqlbank.linter``).

Manifesto:
    - **Typed Error Hierarchy:** One subclass per concern (content, config,
      render)
    - **Rich Context:** Errors carry the file path and line for reporting
    - **Error Chaining:** The original exception is kept as ``cause``

Architecture:
    ::

        ┌───────────────────────────────────────────────────────────┐
        │                       SqlBankError                         │
        │                (category, context, cause)                  │
        ├───────────────────────────────────────────────────────────┤
        │                                                            │
        │  ContentError                               ConfigError    │
        │  (CONTENT)                                  (CONFIG)       │
        │      │                                          │          │
        │  ContentNotFoundError                     InvalidConfig    │
        │  ContentDecodeError                                        │
        │                                                            │
        │  RenderError                                               │
        │  (RENDER)                                                  │
        │      │                                                     │
        │  TemplateNotFoundError                                     │
        └───────────────────────────────────────────────────────────┘

Examples:
    >>> error = ContentNotFoundError("No such file").with_context(path="bank.md")
    >>> error.context["path"]
    'bank.md'
    >>> error.to_dict()["category"]
    'CONTENT'

Tags:
    error-handling, exception-hierarchy, error-context, sqlbank

Doc-Types:
    - API Reference
"""

from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Standard error categories used for reporting."""

    CONTENT = "CONTENT"    # Missing or unreadable content files
    CONFIG = "CONFIG"      # Missing config, invalid settings
    RENDER = "RENDER"      # Template and output failures
    INTERNAL = "INTERNAL"  # Bugs, unexpected state


class SqlBankError(Exception):
    """
    Base exception for all sqlbank errors.

    Subclasses set ``default_category``; callers attach metadata with
    :meth:`with_context` and serialize with :meth:`to_dict` for structured
    logging.

    Examples:
        >>> error = SqlBankError("Something went wrong")
        >>> error.category
        <ErrorCategory.INTERNAL: 'INTERNAL'>

        >>> try:
        ...     raise OSError("disk gone")
        ... except OSError as e:
        ...     error = SqlBankError("Write failed", cause=e)
        >>> error.cause
        OSError('disk gone')
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.context: dict[str, Any] = dict(context or {})
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> SqlBankError:
        """
        Add context to this error (fluent API).

        Usage:
            raise ContentError("Unreadable").with_context(path="bank.md", line=3)
        """
        self.context.update(kwargs)
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result: dict[str, Any] = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
        }
        if self.context:
            result["context"] = {k: str(v) for k, v in self.context.items()}
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __str__(self) -> str:
        location = self.context.get("path")
        if location is None:
            return self.message
        line = self.context.get("line")
        where = f"{location}:{line}" if line is not None else str(location)
        return f"{where}: {self.message}"

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# CONTENT ERRORS
# =============================================================================


class ContentError(SqlBankError):
    """Error reading question bank content."""

    default_category = ErrorCategory.CONTENT


class ContentNotFoundError(ContentError):
    """Content file or directory does not exist."""

    pass


class ContentDecodeError(ContentError):
    """Content file is not valid UTF-8 text."""

    pass


# =============================================================================
# CONFIGURATION ERRORS
# =============================================================================


class ConfigError(SqlBankError):
    """Configuration error. The configuration must be fixed."""

    default_category = ErrorCategory.CONFIG


class InvalidConfigError(ConfigError):
    """Configuration value is invalid."""

    def __init__(self, key: str, value: Any, message: str | None = None):
        self.key = key
        self.value = value
        super().__init__(message or f"Invalid configuration for {key}: {value!r}")


# =============================================================================
# RENDER ERRORS
# =============================================================================


class RenderError(SqlBankError):
    """Error producing output documents."""

    default_category = ErrorCategory.RENDER


class TemplateNotFoundError(RenderError):
    """A Jinja2 template could not be located."""

    def __init__(self, template_name: str, template_dir: str | None = None):
        self.template_name = template_name
        message = f"Template not found: {template_name}"
        if template_dir:
            message += f" (searched {template_dir})"
        super().__init__(message)


__all__ = [
    "ErrorCategory",
    "SqlBankError",
    "ContentError",
    "ContentNotFoundError",
    "ContentDecodeError",
    "ConfigError",
    "InvalidConfigError",
    "RenderError",
    "TemplateNotFoundError",
]
