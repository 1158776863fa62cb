"""Version-control query interface for changelog synthesis.

Stability: stable
Tier: none
Since: 0.1.0
Dependencies: stdlib-only
Doc-Types: API_REFERENCE, TECHNICAL_DESIGN
Tags: changelog, git, subprocess, fixtures

Three queries are all the pipeline needs: list tags, test ancestry, and
list non-merge commits in a range with a caller-chosen format. ``GitClient``
answers them with ``subprocess`` calls; ``FixtureVersionControl`` answers
them from a JSON file for deterministic tests and offline previews.

Architecture::

    ┌──────────────────────────────────────────────────┐
    │               VersionControl (Protocol)          │
    ├────────────────────────┬─────────────────────────┤
    │  GitClient             │  FixtureVersionControl  │
    │  (subprocess calls)    │  (reads repo.json)      │
    └────────────────────────┴─────────────────────────┘

Usage::

    from changelog_spine.vcs import GitClient

    git = GitClient(Path("."))
    git.list_tags()
    git.is_ancestor("v1.2.0", "HEAD")   # Ok(True) / Ok(False) / Err(...)
"""

from __future__ import annotations

import json
import re
import subprocess
from pathlib import Path
from typing import Protocol

from .errors import ErrorContext, VcsError, VcsUnavailableError
from .logging import get_logger
from .result import Err, Ok, Result

logger = get_logger(__name__)

_GIT_TIMEOUT = 30


class VersionControl(Protocol):
    """Queries the synthesis pipeline makes against history."""

    def list_tags(self) -> list[str]:
        """All tag names. Raises ``VcsError`` if tags cannot be listed."""
        ...

    def is_ancestor(self, ref: str, tip: str) -> Result[bool]:
        """Whether ``ref`` is reachable from ``tip``.

        ``Err`` when the check itself could not be made (unknown ref,
        broken tag); callers treat that as a skip.
        """
        ...

    def log(
        self,
        *,
        since: str | None,
        until: str,
        fmt: str,
        max_count: int | None = None,
    ) -> str:
        """Formatted non-merge commits in ``since..until``, newest first.

        Raises ``VcsUnavailableError`` when history cannot be queried.
        """
        ...


class GitClient:
    """``VersionControl`` backed by the ``git`` executable.

    Args:
        repo_dir: Working tree to run git in.
        timeout: Seconds before a git call is abandoned.
    """

    def __init__(self, repo_dir: Path, *, timeout: int = _GIT_TIMEOUT):
        self.repo_dir = repo_dir
        self.timeout = timeout

    def _run(self, args: list[str], *, check: bool = True) -> subprocess.CompletedProcess[bytes]:
        cmd = ["git", *args]
        try:
            return subprocess.run(
                cmd, capture_output=True, cwd=str(self.repo_dir),
                check=check, timeout=self.timeout,
            )
        except FileNotFoundError as exc:
            raise VcsUnavailableError(
                "git executable not found",
                context=ErrorContext(command=" ".join(cmd), path=str(self.repo_dir)),
                cause=exc,
            ) from exc
        except subprocess.TimeoutExpired as exc:
            raise VcsUnavailableError(
                f"git timed out after {self.timeout}s",
                context=ErrorContext(command=" ".join(cmd), path=str(self.repo_dir)),
                cause=exc,
            ) from exc
        except subprocess.CalledProcessError as exc:
            stderr = (exc.stderr or b"").decode("utf-8", errors="replace").strip()
            raise VcsError(
                stderr or f"git exited with status {exc.returncode}",
                context=ErrorContext(command=" ".join(cmd), path=str(self.repo_dir)),
                cause=exc,
            ) from exc

    def list_tags(self) -> list[str]:
        result = self._run(["tag", "-l"])
        stdout = result.stdout.decode("utf-8", errors="replace")
        return [line.strip() for line in stdout.splitlines() if line.strip()]

    def is_ancestor(self, ref: str, tip: str) -> Result[bool]:
        try:
            result = self._run(["merge-base", "--is-ancestor", ref, tip], check=False)
        except VcsError as exc:
            return Err(exc)
        # Exit 1 means "not an ancestor"; anything else is a failed check.
        if result.returncode == 0:
            return Ok(True)
        if result.returncode == 1:
            return Ok(False)
        stderr = result.stderr.decode("utf-8", errors="replace").strip()
        return Err(VcsError(
            stderr or f"ancestry check exited with status {result.returncode}",
            context=ErrorContext(ref=ref),
        ))

    def log(
        self,
        *,
        since: str | None,
        until: str,
        fmt: str,
        max_count: int | None = None,
    ) -> str:
        args = ["log", f"--pretty=format:{fmt}", "--no-merges"]
        if max_count is not None:
            args.append(f"--max-count={max_count}")
        args.append(f"{since}..{until}" if since else until)
        try:
            result = self._run(args)
        except VcsUnavailableError:
            raise
        except VcsError as exc:
            raise VcsUnavailableError(
                f"cannot read commit history: {exc.message}",
                context=exc.context,
                cause=exc,
            ) from exc
        return result.stdout.decode("utf-8", errors="replace")


# ---------------------------------------------------------------------------
# Fixture-backed implementation
# ---------------------------------------------------------------------------

_PLACEHOLDER_RE = re.compile(r"%(aI|an|ae|H|s|b)")

_PLACEHOLDER_FIELDS = {
    "H": "hash",
    "s": "subject",
    "b": "body",
    "an": "author_name",
    "ae": "author_email",
    "aI": "date",
}


class FixtureVersionControl:
    """``VersionControl`` backed by a ``repo.json`` fixture.

    Expected fixture structure::

        fixture_dir/
        └── repo.json

    ``repo.json``::

        {
            "head": "HEAD",
            "tags": ["v1.0.0", "v1.1.0-beta.1", "v2.0.0"],
            "ancestors": ["v1.0.0", "v1.1.0-beta.1"],
            "commits": [
                {
                    "hash": "a1b2c3d4...",
                    "subject": "feat(core): add export",
                    "body": "",
                    "author_name": "Ada",
                    "author_email": "ada@example.com",
                    "date": "2026-02-15T08:00:00+00:00",
                    "tags": ["v1.1.0"]
                }
            ]
        }

    ``commits`` is a single linear history, newest first. A tag named in a
    commit's ``tags`` list points at that commit.
    ``ancestors`` lists tags reachable from the head; older tips reach
    only the tagged commits at or below them.
    """

    def __init__(self, fixture_dir: Path):
        self.fixture_dir = fixture_dir
        repo_file = fixture_dir / "repo.json"
        if not repo_file.is_file():
            raise VcsUnavailableError(
                f"no repo.json in fixture dir: {fixture_dir}",
                context=ErrorContext(path=str(repo_file)),
            )
        data = json.loads(repo_file.read_text(encoding="utf-8"))
        self.head: str = data.get("head", "HEAD")
        self.tags: list[str] = list(data.get("tags", []))
        self.ancestors: set[str] = set(data.get("ancestors", []))
        self.commits: list[dict] = list(data.get("commits", []))

    def list_tags(self) -> list[str]:
        return list(self.tags)

    def is_ancestor(self, ref: str, tip: str) -> Result[bool]:
        if ref not in self.tags:
            return Err(VcsError(f"unknown ref: {ref}", context=ErrorContext(ref=ref)))
        if ref not in self.ancestors:
            return Ok(False)
        try:
            tip_index = self._index_of(tip)
        except VcsError as exc:
            return Err(exc)
        ref_index = self._commit_index(ref)
        # A tag on no listed commit only reaches the head.
        if ref_index is None:
            return Ok(tip_index == 0)
        return Ok(ref_index >= tip_index)

    def _commit_index(self, ref: str) -> int | None:
        for i, commit in enumerate(self.commits):
            if ref in commit.get("tags", ()) or commit.get("hash") == ref:
                return i
        return None

    def _index_of(self, ref: str) -> int:
        """Position of the commit ``ref`` points at (0 = newest)."""
        if ref == self.head:
            return 0
        tilde = re.fullmatch(rf"{re.escape(self.head)}~(\d+)", ref)
        if tilde:
            return int(tilde.group(1))
        index = self._commit_index(ref)
        if index is not None:
            return index
        raise VcsUnavailableError(
            f"unknown revision: {ref}", context=ErrorContext(ref=ref),
        )

    def log(
        self,
        *,
        since: str | None,
        until: str,
        fmt: str,
        max_count: int | None = None,
    ) -> str:
        start = self._index_of(until)
        stop = self._index_of(since) if since else len(self.commits)
        selected = [
            c for c in self.commits[start:stop]
            if not c.get("merge", False)
        ]
        if max_count is not None:
            selected = selected[:max_count]
        return "\n".join(self._format(c, fmt) for c in selected)

    @staticmethod
    def _format(commit: dict, fmt: str) -> str:
        return _PLACEHOLDER_RE.sub(
            lambda m: str(commit.get(_PLACEHOLDER_FIELDS[m.group(1)], "")),
            fmt,
        )


__all__ = ["VersionControl", "GitClient", "FixtureVersionControl"]
