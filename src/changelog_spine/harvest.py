"""Harvest commit records for a release range.

Stability: stable
Tier: none
Since: 0.1.0
Dependencies: stdlib-only
Doc-Types: API_REFERENCE
Tags: changelog, git, parser

One ``git log`` call, six fields per commit. Fields and records are joined
with marker strings that never occur in ordinary commit text, so multi-line
bodies survive the round trip. A record that cannot be split into at least
a hash and a subject is dropped; it never aborts the run.
"""

from __future__ import annotations

from .logging import get_logger
from .model import BaselineRef, CommitRecord
from .result import Err, Ok, Result, partition_results
from .vcs import VersionControl

logger = get_logger(__name__)

# Unique string separators instead of NUL bytes (Windows rejects NUL in args)
FIELD_SEP = "---CHANGELOG_FIELD_SEP---"
RECORD_SEP = "---CHANGELOG_RECORD_SEP---"

# hash, subject, body, author name, author email, author date (ISO 8601)
_FIELDS = ("%H", "%s", "%b", "%an", "%ae", "%aI")
LOG_FORMAT = FIELD_SEP.join(_FIELDS) + RECORD_SEP


def parse_record(raw: str) -> Result[CommitRecord]:
    """Split one raw record into a ``CommitRecord``.

    Missing trailing fields (truncated output) default to empty strings;
    a record without a hash and a subject is an ``Err``.
    """
    parts = raw.strip().split(FIELD_SEP)
    if len(parts) < 2 or not parts[0].strip() or not parts[1].strip():
        return Err(ValueError(f"malformed commit record: {raw[:80]!r}"))

    parts += [""] * (len(_FIELDS) - len(parts))
    hash_, subject, body, author_name, author_email, date = (p.strip() for p in parts[:6])
    return Ok(CommitRecord(
        hash=hash_,
        subject=subject,
        body=body,
        author_name=author_name,
        author_email=author_email,
        date=date,
    ))


def split_records(output: str) -> list[CommitRecord]:
    """Parse ``git log`` output produced with ``LOG_FORMAT``."""
    raws = [r for r in output.split(RECORD_SEP) if r.strip()]
    records, errors = partition_results(parse_record(r) for r in raws)
    for err in errors:
        logger.debug("commit_record_skipped", error=str(err))
    return records


class CommitHarvester:
    """Collect non-merge commits between a baseline and a target ref."""

    def __init__(self, vcs: VersionControl):
        self.vcs = vcs

    def harvest(self, baseline: BaselineRef, target_ref: str = "HEAD") -> list[CommitRecord]:
        """Commits reachable from ``target_ref`` but not from ``baseline``.

        Newest first, as git lists them. The fallback baseline asks for
        the last ``baseline.depth`` commits, which also works for
        histories shorter than the window.

        Raises:
            VcsUnavailableError: History could not be queried at all.
        """
        if baseline.ref == target_ref:
            logger.info("commits_harvested", count=0, reason="empty_range")
            return []

        if baseline.is_fallback:
            output = self.vcs.log(
                since=None, until=target_ref, fmt=LOG_FORMAT,
                max_count=baseline.depth,
            )
        else:
            output = self.vcs.log(since=baseline.ref, until=target_ref, fmt=LOG_FORMAT)

        records = split_records(output)
        logger.info(
            "commits_harvested",
            count=len(records), baseline=baseline.ref, target=target_ref,
        )
        return records


__all__ = [
    "CommitHarvester",
    "LOG_FORMAT",
    "FIELD_SEP",
    "RECORD_SEP",
    "parse_record",
    "split_records",
]
