"""Classify commits under the conventional-commit taxonomy.

Stability: stable
Tier: none
Since: 0.1.0
Dependencies: stdlib-only
Doc-Types: API_REFERENCE, TECHNICAL_DESIGN
Tags: changelog, conventional-commits, parser, classifier

Each ``CommitRecord`` yields zero, one, or two ``ClassifiedEntry`` values:

- zero when the subject does not follow ``type(scope): description``,
  when the type is unmapped, or when it is pre-release bookkeeping
  (``chore: release v1.2.0-beta.3``);
- one under the type's category for an ordinary commit;
- two for a commit whose body carries ``BREAKING CHANGE``: one under
  Breaking Changes and one under its type's category. Both are kept.

Usage::

    from changelog_spine.classify import CommitClassifier, match_subject

    match_subject("feat(cli): add --dry-run")
    # SubjectMatch(type='feat', scope='cli', description='add --dry-run')

    entries = CommitClassifier().classify(records)
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Union

from .logging import get_logger
from .model import Category, ClassifiedEntry, CommitRecord

logger = get_logger(__name__)

# type(scope): description
_SUBJECT_RE = re.compile(
    r"^(?P<type>\w+)"              # type (feat, fix, etc.)
    r"(?:\((?P<scope>[^)]+)\))?"   # optional scope
    r": "                          # colon + space
    r"(?P<desc>.+)$"               # description
)

BREAKING_MARKER = "BREAKING CHANGE"

# Detail runs from the marker to the end of its paragraph or the next marker.
_BREAKING_DETAIL_RE = re.compile(
    rf"{BREAKING_MARKER}:(?P<detail>.*?)(?=\n[ \t]*\n|{BREAKING_MARKER}|\Z)",
    re.DOTALL,
)

_BETA_VERSION_RE = re.compile(r"v\d+\.\d+\.\d+-beta")

MAINTENANCE_TYPE = "chore"

TYPE_CATEGORIES: dict[str, Category] = {
    "feat": Category.FEATURES,
    "fix": Category.BUG_FIXES,
    "perf": Category.PERFORMANCE,
    "refactor": Category.REFACTORS,
    "docs": Category.DOCUMENTATION,
    "style": Category.STYLES,
    "test": Category.TESTS,
    "revert": Category.REVERTS,
}


@dataclass(frozen=True)
class SubjectMatch:
    """A subject that follows the conventional-commit grammar."""

    type: str
    scope: str | None
    description: str


@dataclass(frozen=True)
class Unmatched:
    """A subject that does not follow the grammar."""

    subject: str


ParsedSubject = Union[SubjectMatch, Unmatched]


def match_subject(subject: str) -> ParsedSubject:
    m = _SUBJECT_RE.match(subject)
    if m is None:
        return Unmatched(subject)
    return SubjectMatch(
        type=m.group("type"),
        scope=m.group("scope"),
        description=m.group("desc"),
    )


def is_prerelease_noise(parsed: SubjectMatch) -> bool:
    """True for ``chore`` commits that bookkeep a beta release."""
    if parsed.type != MAINTENANCE_TYPE:
        return False
    desc = parsed.description
    return (
        "beta" in desc
        or "-beta." in desc
        or _BETA_VERSION_RE.search(desc) is not None
    )


def extract_breaking_detail(body: str) -> str | None:
    """Text following ``BREAKING CHANGE:``, folded onto one line.

    Returns None when the body has no marker at all, and an empty string
    when the marker is present without a ``:`` detail.
    """
    if BREAKING_MARKER not in body:
        return None
    m = _BREAKING_DETAIL_RE.search(body)
    if m is None:
        return ""
    return " ".join(m.group("detail").split())


class CommitClassifier:
    """Turn commit records into classified changelog entries.

    Args:
        type_categories: Mapping of conventional type to category.
            Defaults to ``TYPE_CATEGORIES``. There is deliberately no
            type that maps to Breaking Changes; only the body marker
            reaches it.
    """

    def __init__(self, type_categories: dict[str, Category] | None = None):
        self.type_categories = dict(type_categories or TYPE_CATEGORIES)

    def classify(self, commits: Iterable[CommitRecord]) -> list[ClassifiedEntry]:
        entries: list[ClassifiedEntry] = []
        skipped = 0
        for commit in commits:
            produced = self.classify_one(commit)
            if not produced:
                skipped += 1
            entries.extend(produced)
        logger.info("commits_classified", entries=len(entries), skipped=skipped)
        return entries

    def classify_one(self, commit: CommitRecord) -> list[ClassifiedEntry]:
        parsed = match_subject(commit.subject)
        if isinstance(parsed, Unmatched):
            logger.debug("subject_unmatched", hash=commit.short_hash)
            return []

        if is_prerelease_noise(parsed):
            logger.debug("prerelease_noise_dropped", hash=commit.short_hash)
            return []

        entries: list[ClassifiedEntry] = []

        detail = extract_breaking_detail(commit.body)
        if detail is not None:
            entries.append(ClassifiedEntry(
                short_hash=commit.short_hash,
                scope=parsed.scope,
                description=parsed.description,
                body_detail=detail,
                category=Category.BREAKING_CHANGES,
            ))

        category = self.type_categories.get(parsed.type)
        if category is not None:
            entries.append(ClassifiedEntry(
                short_hash=commit.short_hash,
                scope=parsed.scope,
                description=parsed.description,
                body_detail=commit.body.strip(),
                category=category,
            ))

        return entries


__all__ = [
    "CommitClassifier",
    "SubjectMatch",
    "Unmatched",
    "ParsedSubject",
    "TYPE_CATEGORIES",
    "BREAKING_MARKER",
    "match_subject",
    "is_prerelease_noise",
    "extract_breaking_detail",
]
