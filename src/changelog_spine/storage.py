"""Read and atomically replace the persisted changelog file."""

from __future__ import annotations

import os
import tempfile
from pathlib import Path

from .errors import ErrorContext, StorageError
from .logging import get_logger

logger = get_logger(__name__)


class ChangelogStore:
    """The on-disk changelog.

    A missing file reads as ``None`` ("start fresh"). Writes go to a
    temporary file in the same directory and are moved into place with
    ``os.replace``, so readers never see a half-written document.
    """

    def __init__(self, path: Path):
        self.path = path

    def read(self) -> str | None:
        try:
            return self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            logger.info("changelog_missing", path=str(self.path))
            return None
        except OSError as exc:
            raise StorageError(
                f"cannot read changelog: {exc}",
                context=ErrorContext(path=str(self.path)),
                cause=exc,
            ) from exc

    def write(self, text: str) -> None:
        directory = self.path.parent
        tmp_name: str | None = None
        try:
            directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{self.path.name}.", suffix=".tmp", dir=str(directory),
            )
            with os.fdopen(fd, "w", encoding="utf-8", newline="") as fh:
                fh.write(text)
            os.replace(tmp_name, self.path)
            tmp_name = None
        except OSError as exc:
            raise StorageError(
                f"cannot write changelog: {exc}",
                context=ErrorContext(path=str(self.path)),
                cause=exc,
            ) from exc
        finally:
            if tmp_name is not None and os.path.exists(tmp_name):
                os.unlink(tmp_name)
        logger.info("changelog_written", path=str(self.path), bytes=len(text.encode("utf-8")))


__all__ = ["ChangelogStore"]
