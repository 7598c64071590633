"""Tests for fix application and snapshots."""

from __future__ import annotations

import os
from unittest.mock import patch
from pathlib import Path

import pytest

from llmguardian.core.config import DEFAULT_BACKUP_SUFFIX
from llmguardian.core.models import Finding, FixCandidate, FixKind, Severity
from llmguardian.fix.applier import FixApplier, FixNotApplicable, apply_fix, change_stats


def _finding(
    path: Path,
    search: str | None,
    replace: str = "",
    confidence: float | None = None,
    fid: str = "fake-package-pkg",
    kind: FixKind = FixKind.LITERAL_REPLACE,
) -> Finding:
    fix = None if search is None else FixCandidate(kind, search=search, replace=replace, confidence=confidence)
    return Finding(
        id=fid,
        severity=Severity.CRITICAL,
        category="hallucination",
        file_path=str(path),
        line=1,
        message="test finding",
        fix=fix,
    )


def _snapshot(path: Path) -> Path:
    return path.with_name(path.name + DEFAULT_BACKUP_SUFFIX)


@pytest.fixture
def source(tmp_path: Path) -> Path:
    path = tmp_path / "a.ts"
    path.write_text("import {X} from 'pkg';\nconsole.log(X);\n")
    return path


class TestApplyFixes:
    def test_applies_fix_above_threshold(self, source: Path):
        finding = _finding(source, "'pkg'", "'pkg2'", confidence=0.9)

        [result] = FixApplier(min_confidence=0.8).apply_fixes([finding])

        assert result.success
        assert "'pkg2'" in source.read_text()
        assert result.snapshot_path == str(_snapshot(source))
        assert _snapshot(source).read_text() == "import {X} from 'pkg';\nconsole.log(X);\n"
        assert result.change_stats.lines_changed == 1
        assert result.change_stats.chars_changed == 1

    def test_below_threshold_is_filtered_out(self, source: Path):
        before = source.read_bytes()
        finding = _finding(source, "'pkg'", "'pkg2'", confidence=0.9)

        results = FixApplier(min_confidence=0.95).apply_fixes([finding])

        assert results == []
        assert source.read_bytes() == before
        assert not _snapshot(source).exists()

    def test_missing_confidence_passes_any_threshold(self, source: Path):
        finding = _finding(source, "'pkg'", "'pkg2'", confidence=None)
        [result] = FixApplier(min_confidence=1.0).apply_fixes([finding])
        assert result.success

    def test_finding_without_fix_fails_without_writing(self, source: Path):
        before = source.read_bytes()

        [result] = FixApplier().apply_fixes([_finding(source, None)])

        assert not result.success
        assert result.error == "Finding has no applicable fix"
        assert source.read_bytes() == before
        assert not _snapshot(source).exists()

    def test_unmatched_search_leaves_file_untouched(self, source: Path):
        before = source.read_bytes()

        [result] = FixApplier().apply_fixes([_finding(source, "'nope'", "'x'")])

        assert not result.success
        assert "Search text not found" in result.error
        assert source.read_bytes() == before

    def test_fixes_apply_in_declared_order(self, source: Path):
        first = _finding(source, "'pkg'", "'pkg2'", fid="first")
        second = _finding(source, "'pkg2'", "'pkg3'", fid="second")

        results = FixApplier().apply_fixes([first, second])

        assert [r.success for r in results] == [True, True]
        assert "'pkg3'" in source.read_text()

    def test_reversed_order_fails_dependent_fix_only(self, source: Path):
        first = _finding(source, "'pkg'", "'pkg2'", fid="first")
        second = _finding(source, "'pkg2'", "'pkg3'", fid="second")

        results = {r.finding_id: r for r in FixApplier().apply_fixes([second, first])}

        assert not results["second"].success
        assert results["first"].success
        assert "'pkg2'" in source.read_text()

    def test_groups_by_file(self, tmp_path: Path, source: Path):
        other = tmp_path / "b.ts"
        other.write_text("console.log(1);\n")

        results = FixApplier().apply_fixes([
            _finding(source, "'pkg'", "'pkg2'"),
            _finding(other, "console.log(1);", "// console.log(1);", fid="console-statement"),
        ])

        assert all(r.success for r in results)
        assert other.read_text() == "// console.log(1);\n"

    def test_missing_file(self, tmp_path: Path):
        [result] = FixApplier().apply_fixes([_finding(tmp_path / "gone.ts", "x", "y")])

        assert not result.success
        assert result.error.startswith("File not found")

    def test_dry_run_writes_nothing(self, source: Path):
        before = source.read_bytes()

        [result] = FixApplier(dry_run=True).apply_fixes([_finding(source, "'pkg'", "'pkg2'")])

        assert result.success
        assert result.snapshot_path is None
        assert source.read_bytes() == before
        assert not _snapshot(source).exists()

    def test_snapshots_disabled(self, source: Path):
        [result] = FixApplier(create_snapshots=False).apply_fixes([_finding(source, "'pkg'", "'pkg2'")])

        assert result.success
        assert result.snapshot_path is None
        assert not _snapshot(source).exists()

    def test_preserves_crlf_line_endings(self, tmp_path: Path):
        path = tmp_path / "win.ts"
        path.write_bytes(b"import {X} from 'pkg';\r\nfoo();\r\n")

        FixApplier().apply_fixes([_finding(path, "'pkg'", "'pkg2'")])

        assert path.read_bytes() == b"import {X} from 'pkg2';\r\nfoo();\r\n"

    def test_preserves_file_mode(self, source: Path):
        os.chmod(source, 0o640)
        FixApplier().apply_fixes([_finding(source, "'pkg'", "'pkg2'")])
        assert (source.stat().st_mode & 0o777) == 0o640


class TestRollbackAndCleanup:
    def test_rollback_restores_original(self, source: Path):
        before = source.read_bytes()
        applier = FixApplier()
        results = applier.apply_fixes([_finding(source, "'pkg'", "'pkg2'")])

        assert applier.rollback(results) == 1
        assert source.read_bytes() == before

    def test_cleanup_removes_snapshots(self, source: Path):
        applier = FixApplier()
        results = applier.apply_fixes([
            _finding(source, "'pkg'", "'pkg2'", fid="one"),
            _finding(source, "console.log(X);", "", fid="two"),
        ])

        applier.cleanup(results)

        assert not _snapshot(source).exists()
        # A second cleanup is a no-op.
        applier.cleanup(results)

    def test_failed_fixes_still_reference_snapshot(self, source: Path):
        applier = FixApplier()
        [result] = applier.apply_fixes([_finding(source, "'absent'", "'x'")])

        assert not result.success
        assert result.snapshot_path == str(_snapshot(source))

        applier.cleanup([result])

        assert not _snapshot(source).exists()

    def test_write_error_restores_file_and_fails_group(self, source: Path):
        before = source.read_bytes()
        findings = [
            _finding(source, "'pkg'", "'pkg2'", fid="one"),
            _finding(source, "console.log(X);", "", fid="two"),
        ]

        with patch("llmguardian.fix.applier._atomic_write", side_effect=OSError("disk full")):
            results = FixApplier().apply_fixes(findings)

        assert [r.success for r in results] == [False, False]
        assert all(r.error == "disk full" for r in results)
        assert source.read_bytes() == before


class TestApplyFix:
    def test_literal_replaces_first_occurrence_only(self, tmp_path: Path):
        finding = _finding(tmp_path / "x.ts", "a", "b")
        assert apply_fix("a a a", finding) == "b a a"

    def test_pattern_replace(self, tmp_path: Path):
        finding = _finding(tmp_path / "x.ts", r"console\.\w+\(", "logger.info(", kind=FixKind.PATTERN_REPLACE)
        assert apply_fix("console.warn('x')", finding) == "logger.info('x')"

    def test_pattern_replacement_is_literal(self, tmp_path: Path):
        finding = _finding(tmp_path / "x.ts", r"\bOLD\b", r"'C:\new\dir'", kind=FixKind.PATTERN_REPLACE)
        assert apply_fix("path = OLD;", finding) == r"path = 'C:\new\dir';"

    def test_pattern_without_match(self, tmp_path: Path):
        finding = _finding(tmp_path / "x.ts", r"nomatch\d+", "y", kind=FixKind.PATTERN_REPLACE)
        with pytest.raises(FixNotApplicable):
            apply_fix("abc", finding)

    def test_invalid_pattern(self, tmp_path: Path):
        finding = _finding(tmp_path / "x.ts", "(unclosed", "y", kind=FixKind.PATTERN_REPLACE)
        with pytest.raises(FixNotApplicable, match="Invalid pattern"):
            apply_fix("(unclosed", finding)

    def test_identical_replacement_is_a_failure(self, tmp_path: Path):
        finding = _finding(tmp_path / "x.ts", "same", "same")
        with pytest.raises(FixNotApplicable, match="did not modify"):
            apply_fix("same thing", finding)


class TestChangeStats:
    def test_counts_changed_and_added_lines(self):
        stats = change_stats("a\nb\nc", "a\nB\nc\nd")
        assert stats.lines_changed == 2
        assert stats.chars_changed == 2
