"""Resolve the release baseline for a changelog run.

Stability: stable
Tier: none
Since: 0.1.0
Dependencies: packaging
Doc-Types: API_REFERENCE
Tags: changelog, git, semver, baseline

The baseline is the newest stable release tag already merged into the
target tip. Betas and release candidates are never baselines: their
commits belong to the next stable release. With no usable tag, the last
``fallback_depth`` commits are used instead.
"""

from __future__ import annotations

from packaging.version import InvalidVersion, Version

from .errors import VcsError
from .logging import get_logger
from .model import BaselineRef, TagCandidate
from .vcs import VersionControl

logger = get_logger(__name__)

DEFAULT_FALLBACK_DEPTH = 30


def parse_stable_version(tag: str) -> Version | None:
    """Parse ``tag`` as a stable ``MAJOR.MINOR.PATCH`` version.

    A single leading ``v`` is stripped. Returns None for anything that is
    not a three-part version or that carries a pre-release qualifier.

    >>> parse_stable_version("v1.2.3")
    <Version('1.2.3')>
    >>> parse_stable_version("v1.2.3-beta.1") is None
    True
    """
    name = tag[1:] if tag.startswith("v") else tag
    try:
        version = Version(name)
    except InvalidVersion:
        return None
    if len(version.release) != 3 or version.epoch:
        return None
    if version.is_prerelease or version.is_postrelease:
        return None
    return version


class BaselineResolver:
    """Find the newest stable ancestor tag of ``target_ref``.

    Args:
        vcs: Version-control query interface.
        target_ref: Tip of the release range.
        fallback_depth: Size of the recent-history window used when no
            stable ancestor tag exists.
    """

    def __init__(
        self,
        vcs: VersionControl,
        *,
        target_ref: str = "HEAD",
        fallback_depth: int = DEFAULT_FALLBACK_DEPTH,
    ):
        self.vcs = vcs
        self.target_ref = target_ref
        self.fallback_depth = fallback_depth

    def resolve(self) -> BaselineRef:
        candidates = self.candidates()
        stable = [c for c in candidates if c.is_ancestor and c.is_stable]

        if not stable:
            baseline = BaselineRef.fallback(self.fallback_depth, self.target_ref)
            logger.info(
                "baseline_fallback",
                ref=baseline.ref, tags_seen=len(candidates),
            )
            return baseline

        best = max(stable, key=lambda c: c.version)
        logger.info("baseline_resolved", ref=best.name, tag_version=str(best.version))
        return BaselineRef(ref=best.name)

    def candidates(self) -> list[TagCandidate]:
        """Every tag, with its parsed version and ancestry outcome.

        A failed ancestry check marks that tag alone as a non-ancestor.
        """
        try:
            tags = self.vcs.list_tags()
        except VcsError as exc:
            logger.warning("tag_listing_failed", error=exc.message)
            return []

        candidates: list[TagCandidate] = []
        for tag in tags:
            check = self.vcs.is_ancestor(tag, self.target_ref).inspect_err(
                lambda e, tag=tag: logger.debug("ancestry_check_failed", tag=tag, error=str(e))
            )
            candidates.append(TagCandidate(
                name=tag,
                version=parse_stable_version(tag),
                is_ancestor=check.unwrap_or(False),
            ))
        return candidates
