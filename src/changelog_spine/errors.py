"""Structured error types for changelog synthesis.

Stability: stable
Tier: none
Since: 0.1.0
Dependencies: stdlib-only
Doc-Types: API_REFERENCE
Tags: errors, exception-hierarchy, changelog

Only conditions that must abort a run are modelled as exceptions. Per-item
failures (a tag that is not an ancestor, a truncated log record, a subject
that does not follow the conventional-commit grammar) are values, handled
where they occur, and never raised across a stage boundary.

Architecture::

    ┌───────────────────────────────────────────────────┐
    │                  ChangelogError                   │
    │          (category, context, cause)               │
    ├─────────────────┬────────────────┬────────────────┤
    │  VcsError       │  StorageError  │  ConfigError   │
    │  (VCS)          │  (STORAGE)     │  (CONFIG)      │
    │      │          │                │                │
    │  VcsUnavailable │                │                │
    └─────────────────┴────────────────┴────────────────┘

Usage::

    from changelog_spine.errors import VcsUnavailableError

    try:
        run_git(...)
    except FileNotFoundError as e:
        raise VcsUnavailableError("git executable not found", cause=e)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Categories used for routing and reporting errors."""

    VCS = "VCS"              # git missing, not a repository, failed log
    STORAGE = "STORAGE"      # changelog file unreadable/unwritable
    CONFIG = "CONFIG"        # invalid settings
    INTERNAL = "INTERNAL"    # bugs, unexpected state


@dataclass
class ErrorContext:
    """Metadata attached to an error for logging.

    Attributes:
        command: The external command that failed, if any.
        path: The file path involved, if any.
        ref: The git ref involved, if any.
        metadata: Free-form extra fields.
    """

    command: str | None = None
    path: str | None = None
    ref: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary, excluding unset fields."""
        result: dict[str, Any] = {}
        if self.command:
            result["command"] = self.command
        if self.path:
            result["path"] = self.path
        if self.ref:
            result["ref"] = self.ref
        if self.metadata:
            result.update(self.metadata)
        return result


class ChangelogError(Exception):
    """Base class for every error that aborts a synthesis run.

    Args:
        message: Human-readable description.
        category: Overrides the class default category.
        context: Structured metadata for logging.
        cause: Underlying exception, kept for root cause analysis.
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        context: ErrorContext | None = None,
        cause: BaseException | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.context = context or ErrorContext()
        self.cause = cause
        if cause is not None:
            self.__cause__ = cause

    def to_dict(self) -> dict[str, Any]:
        """Serialize for structured logging and ``--json`` output."""
        result: dict[str, Any] = {
            "error_type": type(self).__name__,
            "message": self.message,
            "category": self.category.value,
        }
        ctx = self.context.to_dict()
        if ctx:
            result["context"] = ctx
        if self.cause is not None:
            result["cause"] = f"{type(self.cause).__name__}: {self.cause}"
        return result

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.message!r}, category={self.category.value})"


class VcsError(ChangelogError):
    """Version-control query failed."""

    default_category = ErrorCategory.VCS


class VcsUnavailableError(VcsError):
    """The version-control system cannot be queried at all.

    Raised when git is not installed, the working directory is not a
    repository, or the commit log query itself fails. This is the one
    condition that aborts synthesis.
    """


class StorageError(ChangelogError):
    """The persisted changelog could not be read or written."""

    default_category = ErrorCategory.STORAGE


class ConfigError(ChangelogError):
    """Invalid configuration."""

    default_category = ErrorCategory.CONFIG


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "ChangelogError",
    "VcsError",
    "VcsUnavailableError",
    "StorageError",
    "ConfigError",
]
