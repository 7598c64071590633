"""Patcher: applies fixes to files with snapshot and rollback support."""

from __future__ import annotations

import logging
import os
import re
import shutil
import tempfile
from pathlib import Path

from llmguardian.core.config import DEFAULT_BACKUP_SUFFIX
from llmguardian.core.models import ChangeStats, Finding, FixKind, PatchResult

logger = logging.getLogger("llmguardian.applier")


class FixNotApplicable(Exception):
    """A single fix could not be applied to the working copy."""


class FixApplier:
    """Applies fix-bearing findings to source files.

    Files are processed one at a time. Within a file, fixes are applied in
    the given order to a working copy, so each fix sees the result of the
    ones before it. The original is snapshotted to ``<path><suffix>``
    before anything is written.
    """

    def __init__(
        self,
        dry_run: bool = False,
        create_snapshots: bool = True,
        snapshot_suffix: str = DEFAULT_BACKUP_SUFFIX,
        min_confidence: float = 0.0,
    ):
        self.dry_run = dry_run
        self.create_snapshots = create_snapshots
        self.snapshot_suffix = snapshot_suffix
        self.min_confidence = min_confidence

    def apply_fixes(self, findings: list[Finding]) -> list[PatchResult]:
        results: list[PatchResult] = []
        groups: dict[str, list[Finding]] = {}

        for finding in findings:
            if finding.fix is None or not finding.fix.search:
                results.append(PatchResult(
                    success=False,
                    file_path=finding.file_path,
                    finding_id=finding.id,
                    error="Finding has no applicable fix",
                ))
                continue
            if finding.fix.effective_confidence < self.min_confidence:
                logger.debug(
                    "Skipping %s: confidence %.2f below %.2f",
                    finding.id, finding.fix.effective_confidence, self.min_confidence,
                )
                continue
            groups.setdefault(finding.file_path, []).append(finding)

        for file_path, group in groups.items():
            results.extend(self._fix_file(file_path, group))

        return results

    def _fix_file(self, file_path: str, findings: list[Finding]) -> list[PatchResult]:
        path = Path(file_path)
        if not path.is_file():
            return [_failure(file_path, f, f"File not found: {file_path}") for f in findings]

        snapshot: Path | None = None
        results: list[PatchResult] = []
        try:
            original = _read(path)

            if self.create_snapshots and not self.dry_run:
                snapshot = path.with_name(path.name + self.snapshot_suffix)
                shutil.copy2(path, snapshot)

            working = original
            for finding in findings:
                try:
                    working = apply_fix(working, finding)
                except FixNotApplicable as e:
                    results.append(_failure(file_path, finding, str(e), snapshot))
                    continue
                results.append(PatchResult(
                    success=True,
                    file_path=file_path,
                    finding_id=finding.id,
                    snapshot_path=str(snapshot) if snapshot else None,
                    change_stats=change_stats(original, working),
                ))

            if working != original and not self.dry_run:
                _atomic_write(path, working)

        except Exception as e:
            logger.warning("Patching %s failed: %s", file_path, e)
            if snapshot is not None and snapshot.exists():
                try:
                    shutil.copy2(snapshot, path)
                except OSError as restore_error:
                    logger.error("Could not restore %s from %s: %s", file_path, snapshot, restore_error)
            return [_failure(file_path, f, str(e), snapshot) for f in findings]

        return results

    # ------------------------------------------------------------------
    # Rollback
    # ------------------------------------------------------------------

    def rollback(self, results: list[PatchResult]) -> int:
        """Restore every patched file whose snapshot is still on disk."""
        pairs: dict[str, str] = {}
        for r in results:
            if r.success and r.snapshot_path and os.path.exists(r.snapshot_path):
                pairs[r.file_path] = r.snapshot_path

        restored = 0
        for file_path, snapshot in pairs.items():
            try:
                shutil.copy2(snapshot, file_path)
                restored += 1
            except OSError as e:
                logger.error("Failed to restore %s: %s", file_path, e)
        return restored

    def cleanup(self, results: list[PatchResult]) -> None:
        """Delete snapshots referenced by ``results``."""
        for snapshot in dict.fromkeys(r.snapshot_path for r in results if r.snapshot_path):
            try:
                os.remove(snapshot)
            except OSError as e:
                logger.debug("Could not remove snapshot %s: %s", snapshot, e)


def apply_fix(content: str, finding: Finding) -> str:
    """Apply one finding's fix to ``content`` and return the new text."""
    fix = finding.fix
    if fix is None:
        raise FixNotApplicable("No fix provided")

    if fix.kind is FixKind.PATTERN_REPLACE:
        try:
            pattern = re.compile(fix.search)
            new_content = pattern.sub(lambda _match: fix.replace, content, count=1)
        except re.error as e:
            raise FixNotApplicable(f"Invalid pattern: {e}") from e
        if new_content == content:
            raise FixNotApplicable("Pattern did not match any content")
        return new_content

    if fix.search not in content:
        raise FixNotApplicable(f"Search text not found in file: {fix.search[:50]}")
    new_content = content.replace(fix.search, fix.replace, 1)
    if new_content == content:
        raise FixNotApplicable("Replacement did not modify content")
    return new_content


def change_stats(original: str, modified: str) -> ChangeStats:
    old_lines = original.split("\n")
    new_lines = modified.split("\n")
    changed = sum(
        1
        for i in range(max(len(old_lines), len(new_lines)))
        if (old_lines[i] if i < len(old_lines) else None)
        != (new_lines[i] if i < len(new_lines) else None)
    )
    return ChangeStats(lines_changed=changed, chars_changed=abs(len(modified) - len(original)))


def _failure(file_path: str, finding: Finding, error: str, snapshot: Path | None = None) -> PatchResult:
    return PatchResult(
        success=False,
        file_path=file_path,
        finding_id=finding.id,
        snapshot_path=str(snapshot) if snapshot else None,
        error=error,
    )


def _read(path: Path) -> str:
    with open(path, encoding="utf-8", newline="") as f:
        return f.read()


def _atomic_write(path: Path, content: str) -> None:
    fd, tmp = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as f:
            f.write(content)
        shutil.copymode(path, tmp)
        os.replace(tmp, path)
    except BaseException:
        if os.path.exists(tmp):
            os.remove(tmp)
        raise
