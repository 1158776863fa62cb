"""Data models for changelog synthesis.

Stability: stable
Tier: none
Since: 0.1.0
Dependencies: packaging
Doc-Types: API_REFERENCE
Tags: changelog, model, dataclass

Frozen dataclasses for everything that flows between pipeline stages,
plus the ``Category`` enum whose declaration order is the rendering
precedence of changelog sections.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from packaging.version import Version

# ---------------------------------------------------------------------------
# Controlled vocabularies
# ---------------------------------------------------------------------------


class Category(Enum):
    """Changelog section a classified entry belongs to.

    Members are declared in rendering precedence. Iterating the enum
    yields sections in the order they appear in a fragment, so ordering
    never depends on dict insertion order.
    """

    BREAKING_CHANGES = "Breaking Changes"
    FEATURES = "Features"
    BUG_FIXES = "Bug Fixes"
    PERFORMANCE = "Performance"
    REFACTORS = "Refactors"
    DOCUMENTATION = "Documentation"
    TESTS = "Tests"
    STYLES = "Styles"
    REVERTS = "Reverts"

    @property
    def title(self) -> str:
        """Section heading text."""
        return self.value


class SynthesisOutcome(Enum):
    """What a synthesis run did to the persisted document."""

    APPLIED = "applied"
    PREVIEW = "preview"
    ALREADY_PRESENT = "already_present"
    NOTHING_TO_RELEASE = "nothing_to_release"


# ---------------------------------------------------------------------------
# Dataclasses
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TagCandidate:
    """A tag considered as a release baseline.

    Attributes:
        name: Tag name as listed by git (e.g. ``v1.2.0``).
        version: Parsed version, None if the name is not a version.
        is_ancestor: Whether the tag is reachable from the target tip.
    """

    name: str
    version: Version | None = None
    is_ancestor: bool = False

    @property
    def is_stable(self) -> bool:
        return self.version is not None and not self.version.is_prerelease


@dataclass(frozen=True)
class BaselineRef:
    """The point in history new commits are counted from.

    Attributes:
        ref: Tag name, or ``HEAD~N`` for the fallback window.
        is_fallback: True when no stable ancestor tag exists.
        depth: Size of the fallback window (0 for tags).
    """

    ref: str
    is_fallback: bool = False
    depth: int = 0

    @classmethod
    def fallback(cls, depth: int, tip: str = "HEAD") -> BaselineRef:
        return cls(ref=f"{tip}~{depth}", is_fallback=True, depth=depth)

    def __str__(self) -> str:
        return self.ref


@dataclass(frozen=True)
class CommitRecord:
    """A harvested non-merge commit.

    Attributes:
        hash: Full commit SHA.
        subject: First line of the message.
        body: Message body (may be empty).
        author_name: Author name.
        author_email: Author email.
        date: Author date string (ISO 8601 from git).
    """

    hash: str
    subject: str
    body: str = ""
    author_name: str = ""
    author_email: str = ""
    date: str = ""

    @property
    def short_hash(self) -> str:
        return self.hash[:7]


@dataclass(frozen=True)
class ClassifiedEntry:
    """One changelog bullet derived from a commit.

    A breaking commit yields two of these: one under
    ``Category.BREAKING_CHANGES`` and one under its type's category.

    Attributes:
        short_hash: First 7 characters of the commit SHA.
        scope: Conventional-commit scope, if any.
        description: Text after ``type(scope): ``.
        body_detail: Breaking-change detail for breaking entries,
            the full trimmed body otherwise.
        category: Section this entry renders under.
    """

    short_hash: str
    scope: str | None
    description: str
    body_detail: str
    category: Category


@dataclass(frozen=True)
class ChangelogSection:
    """Entries of one category, in harvest order."""

    category: Category
    entries: tuple[ClassifiedEntry, ...] = ()


@dataclass(frozen=True)
class ChangelogFragment:
    """Rendered text for exactly one version.

    Attributes:
        version: Version the fragment describes.
        heading: The ``## [version](url) (date)`` line.
        sections: Non-empty sections in precedence order.
        text: Full markdown text (heading plus sections).
    """

    version: str
    heading: str
    sections: tuple[ChangelogSection, ...] = ()
    text: str = ""

    @property
    def is_empty(self) -> bool:
        return not self.sections


@dataclass(frozen=True)
class MergeResult:
    """Outcome of merging a fragment into the persisted document."""

    document: str
    applied: bool


@dataclass(frozen=True)
class SynthesisResult:
    """Everything one synthesis run computed.

    The run itself never writes; the caller persists ``document`` when
    ``should_persist`` is true.
    """

    version: str
    baseline: BaselineRef
    outcome: SynthesisOutcome
    document: str
    fragment: ChangelogFragment | None = None
    commits: tuple[CommitRecord, ...] = ()
    entries: tuple[ClassifiedEntry, ...] = ()
    dry_run: bool = False

    @property
    def categories(self) -> tuple[Category, ...]:
        """Categories that ended up non-empty."""
        if self.fragment is None:
            return ()
        return tuple(s.category for s in self.fragment.sections)

    @property
    def applied(self) -> bool:
        return self.outcome in (SynthesisOutcome.APPLIED, SynthesisOutcome.PREVIEW)

    @property
    def should_persist(self) -> bool:
        return self.outcome is SynthesisOutcome.APPLIED
