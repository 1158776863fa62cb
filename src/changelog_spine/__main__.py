"""Allow ``python -m changelog_spine``."""

from changelog_spine.cli import app

app()
