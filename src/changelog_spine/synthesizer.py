"""Synthesize one release's changelog entry from git history.

Stability: stable
Tier: none
Since: 0.1.0
Dependencies: packaging, pydantic-settings, structlog
Doc-Types: API_REFERENCE, TECHNICAL_DESIGN
Tags: changelog, generator, pipeline

The orchestrator: resolves the baseline, harvests commits, classifies
them, renders a fragment, and merges it into the persisted document.
Data flows forward only; no stage re-queries an earlier one.

Architecture::

    ┌──────────────┐   ┌──────────────┐   ┌──────────────┐
    │   Baseline   │──▶│   Harvester  │──▶│  Classifier  │
    │   Resolver   │   │  (git log)   │   │ (conv. type) │
    └──────────────┘   └──────────────┘   └──────┬───────┘
                                                 ▼
                       ┌──────────────┐   ┌──────────────┐
       SynthesisResult◀│    Merger    │◀──│   Renderer   │
                       │ (idempotent) │   │  (markdown)  │
                       └──────────────┘   └──────────────┘

``ChangelogSynthesizer.synthesize`` is pure: it returns the new document
and whether it should be persisted. ``generate_changelog`` is the
convenience wrapper that also reads and writes the file.
"""

from __future__ import annotations

from datetime import date as date_type
from datetime import datetime, timezone

from .baseline import BaselineResolver
from .classify import CommitClassifier
from .harvest import CommitHarvester
from .logging import bind_context, get_logger, unbind_context
from .merge import ChangelogMerger
from .model import SynthesisOutcome, SynthesisResult
from .render import ChangelogRenderer
from .settings import ChangelogSettings
from .storage import ChangelogStore
from .vcs import GitClient, VersionControl

logger = get_logger(__name__)


def utc_today() -> date_type:
    """Release date for headings: the current date in UTC."""
    return datetime.now(timezone.utc).date()


class ChangelogSynthesizer:
    """Run the five-stage pipeline for one version.

    Args:
        vcs: Version-control query interface.
        settings: Links, header, target ref, fallback depth.

    Examples:
        >>> synth = ChangelogSynthesizer(GitClient(Path(".")), ChangelogSettings())
        >>> result = synth.synthesize("9.8.0", persisted=None, dry_run=True)
        >>> print(result.fragment.text)
    """

    def __init__(self, vcs: VersionControl, settings: ChangelogSettings | None = None):
        self.settings = settings or ChangelogSettings()
        self.vcs = vcs
        self.resolver = BaselineResolver(
            vcs,
            target_ref=self.settings.target_ref,
            fallback_depth=self.settings.fallback_depth,
        )
        self.harvester = CommitHarvester(vcs)
        self.classifier = CommitClassifier()
        self.renderer = ChangelogRenderer(self.settings.commit_url)
        self.merger = ChangelogMerger(self.settings.header)

    def synthesize(
        self,
        version: str,
        persisted: str | None,
        *,
        dry_run: bool = False,
        today: date_type | None = None,
    ) -> SynthesisResult:
        """Compute the updated document for ``version``.

        Args:
            version: Target version, free-form (``9.8.0``).
            persisted: Current document text, None if there is none.
            dry_run: Compute everything but mark the result as preview.
            today: Release date (defaults to the current UTC date).

        Raises:
            VcsUnavailableError: History could not be queried at all.
        """
        bind_context(version=version)
        try:
            return self._synthesize(version, persisted, dry_run, today or utc_today())
        finally:
            unbind_context("version")

    def _synthesize(
        self,
        version: str,
        persisted: str | None,
        dry_run: bool,
        today: date_type,
    ) -> SynthesisResult:
        target = self.settings.target_ref
        baseline = self.resolver.resolve()
        commits = self.harvester.harvest(baseline, target)

        if not commits:
            logger.warning("nothing_to_release", baseline=baseline.ref)
            return SynthesisResult(
                version=version,
                baseline=baseline,
                outcome=SynthesisOutcome.NOTHING_TO_RELEASE,
                document=self.settings.header if persisted is None else persisted,
                dry_run=dry_run,
            )

        entries = self.classifier.classify(commits)
        fragment = self.renderer.render(
            entries,
            version,
            self.settings.compare_url(baseline.ref, version),
            today,
        )
        merged = self.merger.merge(persisted, fragment, version)

        if not merged.applied:
            outcome = SynthesisOutcome.ALREADY_PRESENT
        elif dry_run:
            outcome = SynthesisOutcome.PREVIEW
        else:
            outcome = SynthesisOutcome.APPLIED

        logger.info(
            "changelog_synthesized",
            baseline=baseline.ref,
            commits=len(commits),
            entries=len(entries),
            sections=[s.category.title for s in fragment.sections],
            outcome=outcome.value,
        )
        return SynthesisResult(
            version=version,
            baseline=baseline,
            outcome=outcome,
            document=merged.document,
            fragment=fragment,
            commits=tuple(commits),
            entries=tuple(entries),
            dry_run=dry_run,
        )


def generate_changelog(
    version: str,
    *,
    dry_run: bool = False,
    settings: ChangelogSettings | None = None,
    vcs: VersionControl | None = None,
    today: date_type | None = None,
) -> SynthesisResult:
    """Synthesize ``version`` and persist it unless ``dry_run``.

    Reads the changelog at ``settings.resolved_changelog_path`` once and
    writes it at most once.

    Returns:
        The ``SynthesisResult``; ``result.document`` is the full updated
        document in both modes.
    """
    settings = settings or ChangelogSettings()
    vcs = vcs or GitClient(settings.repo_dir)
    store = ChangelogStore(settings.resolved_changelog_path)

    synth = ChangelogSynthesizer(vcs, settings)
    result = synth.synthesize(version, store.read(), dry_run=dry_run, today=today)

    if result.should_persist:
        store.write(result.document)
    return result


__all__ = ["ChangelogSynthesizer", "generate_changelog", "utc_today"]
