"""
CLI for ``changelog-spine``: synthesize release changelog entries.

Usage::

    # Preview the entry for 9.8.0 without touching CHANGELOG.md
    changelog-spine generate 9.8.0 --dry-run

    # Write it
    changelog-spine generate 9.8.0

    # Which tag would be diffed against?
    changelog-spine baseline

    # Run against a fixture repository instead of live git
    changelog-spine generate 9.8.0 --fixture-dir tests/fixtures/changelog_repo --dry-run
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape

from .baseline import BaselineResolver
from .errors import ChangelogError, ConfigError
from .logging import configure_logging
from .model import SynthesisOutcome, SynthesisResult
from .settings import ChangelogSettings
from .synthesizer import generate_changelog
from .vcs import FixtureVersionControl, GitClient, VersionControl

app = typer.Typer(
    name="changelog-spine",
    help="changelog-spine: conventional-commit changelog synthesis.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

console = Console()
err_console = Console(stderr=True)


# ── Version callback ─────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        from importlib.metadata import PackageNotFoundError
        from importlib.metadata import version as pkg_version

        try:
            v = pkg_version("changelog-spine")
        except PackageNotFoundError:
            v = "0.1.0"
        typer.echo(f"changelog-spine {v}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(  # noqa: UP007
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """Merge conventional-commit history into CHANGELOG.md."""


# ── Helpers ──────────────────────────────────────────────────────────────


def _load_settings(**overrides: Any) -> ChangelogSettings:
    """Build settings from env/.env plus non-None CLI overrides."""
    given = {k: v for k, v in overrides.items() if v is not None}
    try:
        return ChangelogSettings(**given)
    except ValidationError as exc:
        raise ConfigError(f"invalid configuration: {exc.errors()[0]['msg']}", cause=exc) from exc


def _make_vcs(settings: ChangelogSettings, fixture_dir: Path | None) -> VersionControl:
    if fixture_dir is not None:
        return FixtureVersionControl(fixture_dir)
    return GitClient(settings.repo_dir)


def _fail(exc: ChangelogError, as_json: bool) -> None:
    if as_json:
        typer.echo(json.dumps(exc.to_dict(), indent=2))
    else:
        err_console.print(f"[bold red]Error[/bold red] ({exc.category.value}): {escape(exc.message)}")
    raise typer.Exit(code=1)


def _summary(result: SynthesisResult, path: Path) -> dict[str, Any]:
    return {
        "version": result.version,
        "baseline": result.baseline.ref,
        "baseline_is_fallback": result.baseline.is_fallback,
        "outcome": result.outcome.value,
        "applied": result.applied,
        "persisted": result.should_persist,
        "changelog": str(path),
        "commits": len(result.commits),
        "entries": len(result.entries),
        "sections": [c.title for c in result.categories],
        "fragment": result.fragment.text if result.fragment else None,
    }


# ── changelog-spine generate ─────────────────────────────────────────────


@app.command("generate")
def generate_cmd(
    version: str = typer.Argument(..., help="Version being released, e.g. 9.8.0."),
    dry_run: bool = typer.Option(False, "--dry-run", help="Preview only; do not write."),
    changelog: Path | None = typer.Option(
        None, "--changelog", "-c", help="Changelog file (default: CHANGELOG.md).",
    ),
    repo_dir: Path | None = typer.Option(None, "--repo-dir", help="Git working tree."),
    target_ref: str | None = typer.Option(None, "--target-ref", help="Tip of the release range."),
    repository_url: str | None = typer.Option(
        None, "--repository-url", help="Web URL used for commit and compare links.",
    ),
    fixture_dir: Path | None = typer.Option(
        None, "--fixture-dir", help="Read history from a repo.json fixture instead of git.",
    ),
    json_out: bool = typer.Option(False, "--json", "-j", help="Output as JSON."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
) -> None:
    """Synthesize the changelog entry for VERSION and merge it into the changelog.

    Example:
        changelog-spine generate 9.8.0 --dry-run
    """
    try:
        settings = _load_settings(
            changelog_path=changelog,
            repo_dir=repo_dir,
            target_ref=target_ref,
            repository_url=repository_url,
        )
        configure_logging(
            level="DEBUG" if verbose else settings.log_level,
            json_format=settings.json_logs,
        )
        vcs = _make_vcs(settings, fixture_dir)
        result = generate_changelog(version, dry_run=dry_run, settings=settings, vcs=vcs)
    except ChangelogError as exc:
        _fail(exc, json_out)
        return

    path = settings.resolved_changelog_path

    if json_out:
        typer.echo(json.dumps(_summary(result, path), indent=2))
        return

    # Version, ref and path are free-form; keep them out of markup parsing.
    shown_version = escape(version)
    shown_ref = escape(result.baseline.ref)
    shown_path = escape(str(path))

    console.print(
        f"[dim]Changelog for[/dim] [bold]{shown_version}[/bold] "
        f"[dim]since[/dim] {shown_ref}"
        + (" [dim](no stable tag; recent history)[/dim]" if result.baseline.is_fallback else "")
    )

    if result.outcome is SynthesisOutcome.NOTHING_TO_RELEASE:
        console.print(f"[yellow]⚠ No commits since {shown_ref}; nothing to release.[/yellow]")
    elif result.outcome is SynthesisOutcome.ALREADY_PRESENT:
        console.print(f"[yellow]⚠ Version {shown_version} already exists in {shown_path}[/yellow]")
    elif result.outcome is SynthesisOutcome.PREVIEW:
        console.print("[bold]📋 Preview (dry-run mode):[/bold]")
        typer.echo(result.fragment.text if result.fragment else "")
    else:
        sections = ", ".join(c.title for c in result.categories) or "no sections"
        console.print(f"[green]✅ {shown_path} updated with version {shown_version}[/green] ({sections})")


# ── changelog-spine baseline ─────────────────────────────────────────────


@app.command("baseline")
def baseline_cmd(
    repo_dir: Path | None = typer.Option(None, "--repo-dir", help="Git working tree."),
    target_ref: str | None = typer.Option(None, "--target-ref", help="Tip of the release range."),
    fixture_dir: Path | None = typer.Option(
        None, "--fixture-dir", help="Read history from a repo.json fixture instead of git.",
    ),
    json_out: bool = typer.Option(False, "--json", "-j", help="Output as JSON."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
) -> None:
    """Show the tag the next changelog entry would be diffed against."""
    try:
        settings = _load_settings(repo_dir=repo_dir, target_ref=target_ref)
        configure_logging(
            level="DEBUG" if verbose else settings.log_level,
            json_format=settings.json_logs,
        )
        resolver = BaselineResolver(
            _make_vcs(settings, fixture_dir),
            target_ref=settings.target_ref,
            fallback_depth=settings.fallback_depth,
        )
        baseline = resolver.resolve()
    except ChangelogError as exc:
        _fail(exc, json_out)
        return

    if json_out:
        typer.echo(json.dumps({
            "ref": baseline.ref,
            "is_fallback": baseline.is_fallback,
            "depth": baseline.depth,
        }, indent=2))
    elif baseline.is_fallback:
        console.print(f"{escape(baseline.ref)} [dim](no stable ancestor tag; last {baseline.depth} commits)[/dim]")
    else:
        console.print(escape(baseline.ref))


if __name__ == "__main__":
    app()
