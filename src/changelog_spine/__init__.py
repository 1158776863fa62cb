"""Conventional-commit changelog synthesis.

Stability: stable
Tier: none
Since: 0.1.0
Dependencies: packaging, pydantic-settings, structlog
Doc-Types: API_REFERENCE, TECHNICAL_DESIGN
Tags: changelog, git, release, conventional-commits

Turns the commits since the last stable release tag into one grouped,
idempotently-merged ``CHANGELOG.md`` entry.

Usage::

    from changelog_spine import generate_changelog

    # Preview
    result = generate_changelog("9.8.0", dry_run=True)
    print(result.fragment.text)

    # Apply (writes CHANGELOG.md unless the version is already there)
    result = generate_changelog("9.8.0")
    result.outcome  # SynthesisOutcome.APPLIED
"""

from __future__ import annotations

from .baseline import BaselineResolver
from .classify import CommitClassifier
from .errors import ChangelogError, VcsUnavailableError
from .harvest import CommitHarvester
from .merge import ChangelogMerger
from .model import (
    BaselineRef,
    Category,
    ChangelogFragment,
    ClassifiedEntry,
    CommitRecord,
    MergeResult,
    SynthesisOutcome,
    SynthesisResult,
)
from .render import ChangelogRenderer
from .settings import ChangelogSettings
from .synthesizer import ChangelogSynthesizer, generate_changelog

__version__ = "0.1.0"

__all__ = [
    "generate_changelog",
    "ChangelogSynthesizer",
    "ChangelogSettings",
    "BaselineResolver",
    "CommitHarvester",
    "CommitClassifier",
    "ChangelogRenderer",
    "ChangelogMerger",
    "BaselineRef",
    "Category",
    "ChangelogFragment",
    "ClassifiedEntry",
    "CommitRecord",
    "MergeResult",
    "SynthesisOutcome",
    "SynthesisResult",
    "ChangelogError",
    "VcsUnavailableError",
]
