"""Tests for changelog_spine.classify: conventional-commit classification."""

from __future__ import annotations

import pytest

from changelog_spine.classify import (
    CommitClassifier,
    SubjectMatch,
    Unmatched,
    extract_breaking_detail,
    is_prerelease_noise,
    match_subject,
)
from changelog_spine.model import Category
from tests._support.fakes import make_record


class TestMatchSubject:
    """The ``type(scope): description`` grammar."""

    def test_type_scope_description(self):
        assert match_subject("feat(cli): add --dry-run") == SubjectMatch(
            type="feat", scope="cli", description="add --dry-run",
        )

    def test_without_scope(self):
        parsed = match_subject("fix: handle empty body")
        assert parsed == SubjectMatch(type="fix", scope=None, description="handle empty body")

    @pytest.mark.parametrize("subject", [
        "update stuff",
        "Merge branch 'main'",
        "feat:missing space",
        "feat(): empty scope",
        "feat!: bang is not part of the grammar",
        "",
    ])
    def test_unmatched(self, subject):
        assert isinstance(match_subject(subject), Unmatched)

    def test_scope_with_separators(self):
        parsed = match_subject("fix(task-view/gantt): redraw on resize")
        assert parsed.scope == "task-view/gantt"


class TestPrereleaseNoise:
    @pytest.mark.parametrize("description", [
        "release v1.2.0-beta.3",
        "bump to beta",
        "tag 2.0.0-beta.1",
    ])
    def test_chore_beta_is_noise(self, description):
        assert is_prerelease_noise(SubjectMatch("chore", None, description))

    def test_chore_stable_release_kept(self):
        assert not is_prerelease_noise(SubjectMatch("chore", None, "release v1.2.0"))

    def test_only_chore_type_filtered(self):
        assert not is_prerelease_noise(SubjectMatch("feat", None, "beta toggle"))


class TestExtractBreakingDetail:
    def test_no_marker(self):
        assert extract_breaking_detail("just a body") is None

    def test_detail_after_colon(self):
        body = "Refactor.\n\nBREAKING CHANGE: config key renamed"
        assert extract_breaking_detail(body) == "config key renamed"

    def test_detail_stops_at_blank_line(self):
        body = "BREAKING CHANGE: first line\ncontinues here\n\nunrelated paragraph"
        assert extract_breaking_detail(body) == "first line continues here"

    def test_detail_stops_at_next_marker(self):
        body = "BREAKING CHANGE: config key renamed\nBREAKING CHANGE: cli flag removed"
        assert extract_breaking_detail(body) == "config key renamed"

    def test_marker_without_colon_gives_empty(self):
        assert extract_breaking_detail("BREAKING CHANGE everywhere") == ""


class TestCommitClassifier:
    """Commit to entry mapping."""

    def test_feature_entry(self):
        commit = make_record("feat(export): add CSV export")
        [entry] = CommitClassifier().classify_one(commit)
        assert entry.category is Category.FEATURES
        assert entry.scope == "export"
        assert entry.description == "add CSV export"
        assert entry.short_hash == commit.hash[:7]

    @pytest.mark.parametrize("type_, category", [
        ("feat", Category.FEATURES),
        ("fix", Category.BUG_FIXES),
        ("perf", Category.PERFORMANCE),
        ("refactor", Category.REFACTORS),
        ("docs", Category.DOCUMENTATION),
        ("style", Category.STYLES),
        ("test", Category.TESTS),
        ("revert", Category.REVERTS),
    ])
    def test_type_table(self, type_, category):
        [entry] = CommitClassifier().classify_one(make_record(f"{type_}: something"))
        assert entry.category is category

    def test_breaking_change_yields_two_entries(self):
        """Breaking entry first, then the type entry; both kept."""
        commit = make_record("feat(x): add y", "BREAKING CHANGE: z")
        entries = CommitClassifier().classify_one(commit)

        assert [e.category for e in entries] == [Category.BREAKING_CHANGES, Category.FEATURES]
        assert entries[0].body_detail == "z"
        assert entries[1].body_detail == "BREAKING CHANGE: z"
        assert {e.short_hash for e in entries} == {commit.short_hash}

    def test_breaking_change_on_unmapped_type(self):
        entries = CommitClassifier().classify_one(
            make_record("build: drop node 16", "BREAKING CHANGE: node 18 required"),
        )
        assert [e.category for e in entries] == [Category.BREAKING_CHANGES]

    def test_beta_chore_yields_nothing(self):
        assert CommitClassifier().classify_one(make_record("chore: release v1.2.0-beta.3")) == []

    def test_unmatched_subject_yields_nothing(self):
        assert CommitClassifier().classify_one(make_record("update stuff")) == []

    @pytest.mark.parametrize("subject", ["chore: tidy", "ci: cache deps", "build: bump"])
    def test_unmapped_types_dropped(self, subject):
        assert CommitClassifier().classify_one(make_record(subject)) == []

    def test_body_kept_for_sub_items(self):
        [entry] = CommitClassifier().classify_one(
            make_record("fix(core): null check", "\n- refactor internals\nfix edge case\n"),
        )
        assert entry.body_detail == "- refactor internals\nfix edge case"

    def test_classify_preserves_order(self):
        commits = [
            make_record("fix: b"),
            make_record("update stuff"),
            make_record("feat: a"),
        ]
        entries = CommitClassifier().classify(commits)
        assert [e.description for e in entries] == ["b", "a"]

    def test_custom_type_table(self):
        classifier = CommitClassifier({"build": Category.REFACTORS})
        [entry] = classifier.classify_one(make_record("build: vite"))
        assert entry.category is Category.REFACTORS
        assert classifier.classify_one(make_record("feat: gone")) == []
