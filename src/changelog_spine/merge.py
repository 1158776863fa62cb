"""Merge a rendered fragment into the persisted changelog.

The newest version goes directly under the fixed header. A version whose
``## [version]`` heading is already present is left alone, which makes
re-running a release a safe no-op.
"""

from __future__ import annotations

from .logging import get_logger
from .model import ChangelogFragment, MergeResult
from .settings import DEFAULT_HEADER

logger = get_logger(__name__)


def version_heading_marker(version: str) -> str:
    return f"## [{version}]"


class ChangelogMerger:
    """Splice fragments into a changelog document. Pure; never writes."""

    def __init__(self, header: str = DEFAULT_HEADER):
        self.header = header

    def contains_version(self, document: str, version: str) -> bool:
        return version_heading_marker(version) in document

    def merge(
        self,
        persisted: str | None,
        fragment: ChangelogFragment,
        version: str,
    ) -> MergeResult:
        existing = self.header if persisted is None else persisted

        if self.contains_version(existing, version):
            logger.warning("version_already_present", version=version)
            return MergeResult(document=existing, applied=False)

        rest = existing.replace(self.header, "", 1).strip()
        document = self.header + "\n" + fragment.text + rest
        return MergeResult(document=document, applied=True)


__all__ = ["ChangelogMerger", "version_heading_marker"]
