"""Render classified entries into a changelog fragment.

Stability: stable
Tier: none
Since: 0.1.0
Dependencies: stdlib-only
Doc-Types: API_REFERENCE
Tags: changelog, markdown, renderer

Output for one version::

    ## [9.8.0](https://github.com/o/r/compare/v9.7.0...9.8.0) (2026-10-19)

    ### Features

    * add export ([a1b2c3d](https://github.com/o/r/commit/a1b2c3d))

    ### Bug Fixes

    * **core:** null check ([e4f5a6b](https://github.com/o/r/commit/e4f5a6b))
      - guard against missing config

Sections follow ``Category`` declaration order; empty ones are omitted.
Rendering is a one-way text transformation and is deterministic for a
given input and date.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable
from datetime import date as date_type

from .classify import BREAKING_MARKER
from .model import Category, ChangelogFragment, ChangelogSection, ClassifiedEntry

_LEADING_BULLET_RE = re.compile(r"^[-*]\s*")


def group_entries(entries: Iterable[ClassifiedEntry]) -> list[ChangelogSection]:
    """Group by category, in precedence order, preserving entry order."""
    buckets: dict[Category, list[ClassifiedEntry]] = {c: [] for c in Category}
    for entry in entries:
        buckets[entry.category].append(entry)
    return [
        ChangelogSection(category=c, entries=tuple(buckets[c]))
        for c in Category
        if buckets[c]
    ]


def body_sub_items(body: str) -> list[str]:
    """Body lines re-emitted as sub-bullets.

    Lines are trimmed; blank lines and breaking-change marker lines are
    dropped; an existing ``-``/``*`` bullet is stripped.
    """
    items: list[str] = []
    for line in body.splitlines():
        line = line.strip()
        if not line or line.startswith(BREAKING_MARKER):
            continue
        clean = _LEADING_BULLET_RE.sub("", line)
        if clean:
            items.append(clean)
    return items


class ChangelogRenderer:
    """Render a ``ChangelogFragment`` from classified entries.

    Args:
        commit_url: Builds the link target for a short hash.
    """

    def __init__(self, commit_url: Callable[[str], str]):
        self.commit_url = commit_url

    def render(
        self,
        entries: Iterable[ClassifiedEntry],
        version: str,
        compare_url: str,
        date: date_type | str,
    ) -> ChangelogFragment:
        day = date.isoformat() if isinstance(date, date_type) else date
        heading = f"## [{version}]({compare_url}) ({day})"
        sections = group_entries(entries)

        lines: list[str] = [heading, ""]
        for section in sections:
            lines.append(f"### {section.category.title}")
            lines.append("")
            for entry in section.entries:
                lines.extend(self._render_entry(entry))
            lines.append("")

        return ChangelogFragment(
            version=version,
            heading=heading,
            sections=tuple(sections),
            text="\n".join(lines) + "\n",
        )

    def _render_entry(self, entry: ClassifiedEntry) -> list[str]:
        scope = f"**{entry.scope}:** " if entry.scope else ""
        link = f"([{entry.short_hash}]({self.commit_url(entry.short_hash)}))"
        lines = [f"* {scope}{entry.description} {link}"]

        if entry.category is Category.BREAKING_CHANGES:
            if entry.body_detail:
                lines.append(f"  {entry.body_detail}")
        else:
            lines.extend(f"  - {item}" for item in body_sub_items(entry.body_detail))
        return lines


__all__ = ["ChangelogRenderer", "group_entries", "body_sub_items"]
