"""Tests for changelog_spine.synthesizer: the end-to-end pipeline."""

from __future__ import annotations

import json
from datetime import date, datetime, timezone

import pytest
import structlog

from changelog_spine.errors import VcsUnavailableError
from changelog_spine.model import Category, SynthesisOutcome
from changelog_spine.settings import DEFAULT_HEADER, ChangelogSettings
from changelog_spine import synthesizer
from changelog_spine.logging import configure_logging
from changelog_spine.synthesizer import ChangelogSynthesizer, generate_changelog, utc_today
from changelog_spine.vcs import FixtureVersionControl
from tests._support.fakes import FakeVersionControl, make_record

REPO = "https://github.com/acme/widget"
TODAY = date(2026, 10, 19)


@pytest.fixture
def settings(tmp_path) -> ChangelogSettings:
    return ChangelogSettings(
        repo_dir=tmp_path,
        repository_url=REPO,
    )


@pytest.fixture
def release_vcs() -> FakeVersionControl:
    """v9.7.0 is the newest stable ancestor; three commits since, one a beta bump."""
    return FakeVersionControl(
        tags=["v9.6.0", "v9.7.0", "v9.8.0-beta.1"],
        ancestors={"v9.6.0", "v9.7.0", "v9.8.0-beta.1"},
        commits=[
            make_record("fix(core): null check", hash="e4f5a6b" + "0" * 33),
            make_record("feat: add export", hash="a1b2c3d" + "0" * 33),
            make_record("chore: bump beta to v9.8.0-beta.2", hash="9f8e7d6" + "0" * 33),
        ],
    )


class TestChangelogSynthesizer:
    """Pure synthesis: computes the document, never writes."""

    def test_release_scenario(self, release_vcs, settings):
        result = ChangelogSynthesizer(release_vcs, settings).synthesize(
            "9.8.0", None, today=TODAY,
        )

        assert result.outcome is SynthesisOutcome.APPLIED
        assert result.should_persist is True
        assert result.baseline.ref == "v9.7.0"
        assert result.categories == (Category.FEATURES, Category.BUG_FIXES)
        assert len(result.entries) == 2
        assert "beta" not in result.document
        assert result.document == (
            DEFAULT_HEADER + "\n"
            f"## [9.8.0]({REPO}/compare/v9.7.0...9.8.0) (2026-10-19)\n"
            "\n"
            "### Features\n"
            "\n"
            f"* add export ([a1b2c3d]({REPO}/commit/a1b2c3d))\n"
            "\n"
            "### Bug Fixes\n"
            "\n"
            f"* **core:** null check ([e4f5a6b]({REPO}/commit/e4f5a6b))\n"
            "\n"
        )

    def test_dry_run_is_preview(self, release_vcs, settings):
        result = ChangelogSynthesizer(release_vcs, settings).synthesize(
            "9.8.0", None, dry_run=True, today=TODAY,
        )
        assert result.outcome is SynthesisOutcome.PREVIEW
        assert result.applied is True
        assert result.should_persist is False
        assert result.fragment.text in result.document

    def test_already_present(self, release_vcs, settings):
        synth = ChangelogSynthesizer(release_vcs, settings)
        first = synth.synthesize("9.8.0", None, today=TODAY)
        second = synth.synthesize("9.8.0", first.document, today=TODAY)

        assert second.outcome is SynthesisOutcome.ALREADY_PRESENT
        assert second.document == first.document
        assert second.should_persist is False

    def test_nothing_to_release(self, settings):
        vcs = FakeVersionControl(tags=["v1.0.0"], ancestors={"v1.0.0"})
        existing = DEFAULT_HEADER + "## [1.0.0](u) (d)\n"
        result = ChangelogSynthesizer(vcs, settings).synthesize("1.0.1", existing, today=TODAY)

        assert result.outcome is SynthesisOutcome.NOTHING_TO_RELEASE
        assert result.document == existing
        assert result.fragment is None
        assert result.categories == ()

    def test_commits_without_entries_still_get_heading(self, settings):
        vcs = FakeVersionControl(commits=[make_record("update stuff"), make_record("chore: tidy")])
        result = ChangelogSynthesizer(vcs, settings).synthesize("0.1.0", None, today=TODAY)

        assert result.outcome is SynthesisOutcome.APPLIED
        assert result.fragment.is_empty
        assert "## [0.1.0]" in result.document

    def test_fallback_baseline_links(self, settings):
        vcs = FakeVersionControl(commits=[make_record("feat: first")])
        result = ChangelogSynthesizer(vcs, settings).synthesize("0.1.0", None, today=TODAY)

        assert result.baseline.is_fallback is True
        assert f"({REPO}/compare/HEAD~30...0.1.0)" in result.fragment.heading
        assert vcs.log_calls[0]["max_count"] == 30

    def test_unavailable_history_raises(self, settings):
        with pytest.raises(VcsUnavailableError):
            ChangelogSynthesizer(FakeVersionControl(fail_log=True), settings).synthesize(
                "1.0.0", None,
            )
        assert "version" not in structlog.contextvars.get_contextvars()

    def test_log_events_carry_version(self, release_vcs, settings, capsys):
        configure_logging(level="INFO", json_format=True)
        ChangelogSynthesizer(release_vcs, settings).synthesize("9.8.0", None, today=TODAY)

        events = [json.loads(line) for line in capsys.readouterr().err.splitlines() if line.strip()]
        names = [e["event"] for e in events]
        assert "baseline_resolved" in names
        assert "commits_harvested" in names
        assert "changelog_synthesized" in names
        assert all(e["version"] == "9.8.0" for e in events)
        assert "version" not in structlog.contextvars.get_contextvars()

    def test_default_date_is_utc(self, release_vcs, settings, monkeypatch):
        monkeypatch.setattr(synthesizer, "utc_today", lambda: date(2030, 1, 2))
        result = ChangelogSynthesizer(release_vcs, settings).synthesize("9.8.0", None)
        assert result.fragment.heading.endswith("(2030-01-02)")

    def test_utc_today(self):
        before = datetime.now(timezone.utc).date()
        today = utc_today()
        after = datetime.now(timezone.utc).date()
        assert today in (before, after)

    def test_fixture_repository(self, fixture_dir, settings):
        result = ChangelogSynthesizer(FixtureVersionControl(fixture_dir), settings).synthesize(
            "1.2.0", None, today=TODAY,
        )

        assert result.baseline.ref == "v1.1.0"
        assert len(result.commits) == 6
        assert result.categories == (
            Category.BREAKING_CHANGES,
            Category.FEATURES,
            Category.BUG_FIXES,
            Category.REFACTORS,
            Category.DOCUMENTATION,
        )
        text = result.fragment.text
        assert f"* **parser:** split tokenizer ([ddddddd]({REPO}/commit/ddddddd))\n" \
            "  Tokenizer.parse now returns a list" in text
        assert "  - supports a custom delimiter\n  - streams large files" in text
        assert "  - Move lexing into its own module." in text
        assert "beta" not in text
        assert "update stuff" not in text


class TestGenerateChangelog:
    """Read, synthesize, and persist."""

    def test_writes_file(self, release_vcs, settings, tmp_path):
        result = generate_changelog("9.8.0", settings=settings, vcs=release_vcs, today=TODAY)

        path = tmp_path / "CHANGELOG.md"
        assert path.read_text(encoding="utf-8") == result.document
        assert result.outcome is SynthesisOutcome.APPLIED

    def test_dry_run_does_not_write(self, release_vcs, settings, tmp_path):
        result = generate_changelog(
            "9.8.0", dry_run=True, settings=settings, vcs=release_vcs, today=TODAY,
        )
        assert not (tmp_path / "CHANGELOG.md").exists()
        assert "## [9.8.0]" in result.document

    def test_rerun_is_idempotent(self, release_vcs, settings, tmp_path):
        generate_changelog("9.8.0", settings=settings, vcs=release_vcs, today=TODAY)
        before = (tmp_path / "CHANGELOG.md").read_text(encoding="utf-8")

        again = generate_changelog("9.8.0", settings=settings, vcs=release_vcs, today=TODAY)

        assert again.outcome is SynthesisOutcome.ALREADY_PRESENT
        assert (tmp_path / "CHANGELOG.md").read_text(encoding="utf-8") == before

    def test_prepends_to_existing(self, release_vcs, settings, tmp_path):
        path = tmp_path / "CHANGELOG.md"
        path.write_text(DEFAULT_HEADER + "## [9.7.0](u) (2026-09-01)\n\n* older\n", encoding="utf-8")

        generate_changelog("9.8.0", settings=settings, vcs=release_vcs, today=TODAY)

        text = path.read_text(encoding="utf-8")
        assert text.index("## [9.8.0]") < text.index("## [9.7.0]")
        assert text.endswith("* older")
