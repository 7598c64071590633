"""Restorer: disk-driven rollback from snapshot files."""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
from datetime import datetime
from pathlib import Path

from llmguardian.core.config import DEFAULT_BACKUP_SUFFIX
from llmguardian.core.models import RestoreSummary, Snapshot

logger = logging.getLogger("llmguardian.undo")

SKIP_DIRS = frozenset({
    "node_modules",
    ".git",
    "dist",
    "build",
    "coverage",
    ".next",
    ".cache",
    "out",
    "__pycache__",
    ".venv",
    "venv",
    ".tox",
    ".mypy_cache",
    ".pytest_cache",
})


class Restorer:
    """Finds snapshot files under a tree and copies them back over their originals.

    Works purely from what is on disk, so it can undo a patch pass long
    after the process that made it has exited.
    """

    def __init__(
        self,
        suffix: str = DEFAULT_BACKUP_SUFFIX,
        skip_dirs: frozenset[str] | set[str] = SKIP_DIRS,
    ):
        if not suffix:
            raise ValueError("snapshot suffix must not be empty")
        self.suffix = suffix
        self.skip_dirs = frozenset(skip_dirs)

    def find_snapshots(self, root: Path | str) -> list[Snapshot]:
        snapshots: list[Snapshot] = []

        def on_error(error: OSError) -> None:
            logger.warning("Could not read directory %s: %s", error.filename, error.strerror)

        for dirpath, dirnames, filenames in os.walk(root, onerror=on_error):
            dirnames[:] = sorted(d for d in dirnames if d not in self.skip_dirs)
            for name in sorted(filenames):
                if not name.endswith(self.suffix) or name == self.suffix:
                    continue
                snapshot = os.path.join(dirpath, name)
                try:
                    stat = os.stat(snapshot)
                except OSError as e:
                    logger.warning("Could not stat %s: %s", snapshot, e)
                    continue
                snapshots.append(Snapshot(
                    original=snapshot[: -len(self.suffix)],
                    snapshot=snapshot,
                    size=stat.st_size,
                    modified_time=datetime.fromtimestamp(stat.st_mtime),
                ))
        return snapshots

    def restore(self, snapshots: list[Snapshot], cleanup: bool = False) -> RestoreSummary:
        summary = RestoreSummary()
        for snap in snapshots:
            try:
                _copy_over(snap.snapshot, snap.original)
            except OSError as e:
                summary.failed += 1
                summary.errors.append(f"{snap.original}: {e}")
                logger.error("Failed to restore %s: %s", snap.original, e)
                continue

            summary.restored += 1
            if cleanup:
                try:
                    os.remove(snap.snapshot)
                except OSError as e:
                    logger.warning("Restored %s but could not delete %s: %s", snap.original, snap.snapshot, e)
        return summary


def filter_snapshots(snapshots: list[Snapshot], target: str) -> list[Snapshot]:
    """Keep snapshots whose original path equals or ends with ``target``."""
    return [s for s in snapshots if s.original == target or s.original.endswith(target)]


def _copy_over(source: str, destination: str) -> None:
    # Stage next to the destination so a failed copy never truncates it.
    directory = os.path.dirname(os.path.abspath(destination))
    fd, tmp = tempfile.mkstemp(dir=directory, prefix=".restore.", suffix=".tmp")
    os.close(fd)
    try:
        shutil.copy2(source, tmp)
        os.replace(tmp, destination)
    except BaseException:
        if os.path.exists(tmp):
            os.remove(tmp)
        raise
