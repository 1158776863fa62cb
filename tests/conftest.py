"""
Shared pytest fixtures and configuration for changelog-spine tests.

This module provides:
- Structlog and CHANGELOG_* environment reset between tests
- Auto-marking of tests without an explicit marker as unit tests
- Paths to the JSON fixture repository

Fake version control lives in ``tests/_support/fakes.py``.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Generator

import pytest
import structlog

FIXTURE_DIR = Path(__file__).resolve().parent / "fixtures" / "changelog_repo"


# =============================================================================
# Test Markers Configuration
# =============================================================================


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Mark all tests without explicit markers as unit tests."""
    for item in items:
        markers = {mark.name for mark in item.iter_markers()}
        if not markers.intersection({"unit", "integration"}):
            item.add_marker(pytest.mark.unit)


# =============================================================================
# Isolation
# =============================================================================


@pytest.fixture(autouse=True)
def reset_structlog() -> Generator[None, None, None]:
    """Restore structlog defaults around each test.

    ``configure_logging`` binds the current stderr; under CliRunner that
    stream is closed once the invocation ends.
    """
    structlog.reset_defaults()
    structlog.contextvars.clear_contextvars()
    yield
    structlog.reset_defaults()
    structlog.contextvars.clear_contextvars()


@pytest.fixture(autouse=True)
def clean_changelog_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Drop ``CHANGELOG_*`` variables inherited from the shell."""
    for key in list(os.environ):
        if key.startswith("CHANGELOG_"):
            monkeypatch.delenv(key)


# =============================================================================
# Fixture repository
# =============================================================================


@pytest.fixture
def fixture_dir() -> Path:
    """Directory holding ``repo.json`` for ``FixtureVersionControl``."""
    return FIXTURE_DIR
