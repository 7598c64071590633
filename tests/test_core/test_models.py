"""Tests for the shared data model."""

from __future__ import annotations

import pytest

from llmguardian.core.models import (
    AnalysisFile,
    AnalysisReport,
    ChangeStats,
    Finding,
    FixCandidate,
    FixKind,
    PatchResult,
    Severity,
    ValidationOutcome,
    ValidationReport,
    enrichment_statistics,
    patch_statistics,
)


def _finding(**overrides) -> Finding:
    fields = dict(
        id="console-statement",
        severity=Severity.LOW,
        category="code-quality",
        file_path="/src/a.ts",
        line=3,
        message="console.log() statement found",
    )
    fields.update(overrides)
    return Finding(**fields)


class TestFixCandidate:
    def test_missing_confidence_is_full_trust(self):
        fix = FixCandidate(kind=FixKind.LITERAL_REPLACE, search="a", replace="b")
        assert fix.effective_confidence == 1.0

    def test_stated_confidence_is_used(self):
        fix = FixCandidate(kind=FixKind.LITERAL_REPLACE, search="a", replace="b", confidence=0.4)
        assert fix.effective_confidence == 0.4

    @pytest.mark.parametrize(
        "search,replace,confidence,expected",
        [
            ("a", "b", None, True),
            ("a", "", 0.5, True),
            ("", "b", 0.5, False),
            ("a", "b", 1.5, False),
            ("a", "b", -0.1, False),
        ],
    )
    def test_is_well_formed(self, search, replace, confidence, expected):
        fix = FixCandidate(kind=FixKind.EXTERNALLY_GENERATED, search=search, replace=replace, confidence=confidence)
        assert fix.is_well_formed is expected


class TestFinding:
    def test_rejects_line_below_one_for_file_findings(self):
        with pytest.raises(ValueError):
            _finding(line=0)

    def test_pipeline_error_allows_line_zero(self):
        finding = _finding(file_path="", line=0, id="analyzer-error-security")
        assert finding.is_pipeline_error

    def test_with_fix_returns_new_instance(self):
        original = _finding()
        fix = FixCandidate(kind=FixKind.LITERAL_REPLACE, search="x", replace="y")
        updated = original.with_fix(fix)

        assert updated.fix is fix
        assert original.fix is None
        assert updated.id == original.id


class TestAnalysisFile:
    def test_extension_derived_from_path(self):
        assert AnalysisFile(path="/src/app.tsx", content="").extension == ".tsx"

    def test_explicit_extension_kept(self):
        assert AnalysisFile(path="/src/app", content="", extension=".js").extension == ".js"


class TestAnalysisReport:
    def test_severity_counts_and_blocking(self):
        report = AnalysisReport(findings=[
            _finding(severity=Severity.LOW),
            _finding(severity=Severity.HIGH),
            _finding(severity=Severity.MEDIUM),
        ])

        assert report.low_count == 1
        assert report.high_count == 1
        assert report.critical_count == 0
        assert report.has_blocking_findings

    def test_no_blocking_for_low_and_medium(self):
        report = AnalysisReport(findings=[_finding(severity=Severity.MEDIUM)])
        assert not report.has_blocking_findings


class TestValidationReport:
    def test_all_passed_requires_every_outcome(self):
        report = ValidationReport(outcomes=[
            ValidationOutcome(procedure_name="type-check", passed=False),
            ValidationOutcome(procedure_name="test", passed=True),
        ])

        assert not report.all_passed
        assert [o.procedure_name for o in report.failed] == ["type-check"]

    def test_skipped_procedures_do_not_affect_verdict(self):
        report = ValidationReport(
            outcomes=[ValidationOutcome(procedure_name="test", passed=True)],
            skipped=["lint"],
        )
        assert report.all_passed


class TestStatistics:
    def test_patch_statistics(self):
        results = [
            PatchResult(success=True, file_path="a.ts", finding_id="x", change_stats=ChangeStats(2, 5)),
            PatchResult(success=True, file_path="a.ts", finding_id="y", change_stats=ChangeStats(1, 0)),
            PatchResult(success=False, file_path="b.ts", finding_id="z", error="nope"),
        ]
        stats = patch_statistics(results)

        assert stats.total == 3
        assert stats.successful == 2
        assert stats.failed == 1
        assert stats.files_modified == 1
        assert stats.lines_modified == 3

    def test_enrichment_statistics(self):
        findings = [
            _finding(fix=FixCandidate(FixKind.LITERAL_REPLACE, "a", "b", confidence=0.6)),
            _finding(fix=FixCandidate(FixKind.LITERAL_REPLACE, "a", "b")),
            _finding(),
        ]
        stats = enrichment_statistics(findings)

        assert stats.total == 3
        assert stats.with_fix == 2
        assert stats.without_fix == 1
        assert stats.avg_confidence == pytest.approx(0.8)
