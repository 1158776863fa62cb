"""Settings for changelog synthesis.

Configuration is explicit, validated, and environment-driven. Every field
can be set through a ``CHANGELOG_``-prefixed environment variable or a
``.env`` file; CLI flags override both.

Examples:
    >>> from changelog_spine.settings import ChangelogSettings
    >>> settings = ChangelogSettings(repository_url="https://github.com/acme/widget")
    >>> settings.commit_url("abc1234")
    'https://github.com/acme/widget/commit/abc1234'

    Environment::

        CHANGELOG_CHANGELOG_PATH=docs/CHANGELOG.md
        CHANGELOG_FALLBACK_DEPTH=50

Tags:
    settings, configuration, pydantic, environment
"""

from __future__ import annotations

from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_HEADER = (
    "# Changelog\n\n"
    "All notable changes to this project will be documented in this file.\n\n"
)


class ChangelogSettings(BaseSettings):
    """Settings for one changelog run.

    Fields
    ──────
    repo_dir              : Git working tree to query
    changelog_path        : Persisted changelog (relative to repo_dir unless absolute)
    repository_url        : Web URL of the repository, used in links
    commit_url_template   : ``{repository_url}`` and ``{hash}`` placeholders
    compare_url_template  : ``{repository_url}``, ``{base}`` and ``{version}`` placeholders
    target_ref            : Tip of the release range
    fallback_depth        : Commits to include when no stable tag exists
    header                : Fixed document header
    log_level             : Structlog log level
    json_logs             : JSON logs (True), console (False), auto (None)
    """

    model_config = SettingsConfigDict(
        env_prefix="CHANGELOG_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Repository ───────────────────────────────────────────────
    repo_dir: Path = Path(".")
    changelog_path: Path = Path("CHANGELOG.md")
    target_ref: str = "HEAD"
    fallback_depth: int = Field(default=30, ge=1)

    # ── Links ────────────────────────────────────────────────────
    repository_url: str = "https://github.com/Quorafind/Obsidian-Task-Genius"
    commit_url_template: str = "{repository_url}/commit/{hash}"
    compare_url_template: str = "{repository_url}/compare/{base}...{version}"

    # ── Document ─────────────────────────────────────────────────
    header: str = DEFAULT_HEADER

    # ── Observability ────────────────────────────────────────────
    log_level: str = "WARNING"
    json_logs: bool | None = None

    @field_validator("repository_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @field_validator("commit_url_template")
    @classmethod
    def _check_commit_template(cls, value: str) -> str:
        if "{hash}" not in value:
            raise ValueError("commit_url_template must contain {hash}")
        return value

    @field_validator("compare_url_template")
    @classmethod
    def _check_compare_template(cls, value: str) -> str:
        for placeholder in ("{base}", "{version}"):
            if placeholder not in value:
                raise ValueError(f"compare_url_template must contain {placeholder}")
        return value

    @property
    def resolved_changelog_path(self) -> Path:
        """Changelog path, anchored at ``repo_dir`` when relative."""
        if self.changelog_path.is_absolute():
            return self.changelog_path
        return self.repo_dir / self.changelog_path

    def commit_url(self, short_hash: str) -> str:
        return self.commit_url_template.format(
            repository_url=self.repository_url, hash=short_hash,
        )

    def compare_url(self, base: str, version: str) -> str:
        return self.compare_url_template.format(
            repository_url=self.repository_url, base=base, version=version,
        )
