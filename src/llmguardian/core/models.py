"""Shared data models used across LLM Guardian modules."""

from __future__ import annotations

import enum
import os
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any


class Severity(enum.Enum):
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANK[self]

    @property
    def is_blocking(self) -> bool:
        return self in (Severity.CRITICAL, Severity.HIGH)


_SEVERITY_RANK = {
    Severity.CRITICAL: 0,
    Severity.HIGH: 1,
    Severity.MEDIUM: 2,
    Severity.LOW: 3,
}


class FixKind(enum.Enum):
    LITERAL_REPLACE = "literal-replace"
    PATTERN_REPLACE = "pattern-replace"
    EXTERNALLY_GENERATED = "externally-generated"


@dataclass(frozen=True)
class FixCandidate:
    """A proposed textual repair for a finding."""

    kind: FixKind
    search: str
    replace: str
    confidence: float | None = None
    explanation: str = ""

    @property
    def effective_confidence(self) -> float:
        # No score means the fix is trusted fully.
        return 1.0 if self.confidence is None else self.confidence

    @property
    def is_well_formed(self) -> bool:
        if not isinstance(self.search, str) or not self.search:
            return False
        if not isinstance(self.replace, str):
            return False
        if self.confidence is not None and not 0.0 <= self.confidence <= 1.0:
            return False
        return True


@dataclass(frozen=True)
class Finding:
    """One detected defect instance.

    A finding with an empty ``file_path`` is a pipeline-level error (for
    example a crashed analyzer), not a code location.
    """

    id: str
    severity: Severity
    category: str
    file_path: str
    line: int
    message: str
    column: int | None = None
    suggestion: str = ""
    evidence: str = ""
    fix: FixCandidate | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.file_path and self.line < 1:
            raise ValueError(
                f"Finding {self.id!r} in {self.file_path!r} has line {self.line}; lines are 1-indexed"
            )

    @property
    def is_pipeline_error(self) -> bool:
        return self.file_path == ""

    def with_fix(self, fix: FixCandidate) -> Finding:
        return replace(self, fix=fix)


@dataclass(frozen=True)
class AnalysisFile:
    """A source file handed to analyzers."""

    path: str
    content: str
    extension: str = ""

    def __post_init__(self) -> None:
        if not self.extension:
            object.__setattr__(self, "extension", os.path.splitext(self.path)[1])


@dataclass
class AnalyzerResult:
    """Output of a single analyzer run."""

    analyzer_name: str
    findings: list[Finding] = field(default_factory=list)
    success: bool = True
    error: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass
class AnalysisReport:
    """Aggregated findings from every analyzer in a run."""

    findings: list[Finding] = field(default_factory=list)
    results: list[AnalyzerResult] = field(default_factory=list)
    files_analyzed: int = 0
    duration_ms: int = 0
    scanned_at: datetime = field(default_factory=datetime.now)

    def count(self, severity: Severity) -> int:
        return sum(1 for f in self.findings if f.severity == severity)

    @property
    def critical_count(self) -> int:
        return self.count(Severity.CRITICAL)

    @property
    def high_count(self) -> int:
        return self.count(Severity.HIGH)

    @property
    def medium_count(self) -> int:
        return self.count(Severity.MEDIUM)

    @property
    def low_count(self) -> int:
        return self.count(Severity.LOW)

    @property
    def has_blocking_findings(self) -> bool:
        return any(f.severity.is_blocking for f in self.findings)

    @property
    def failed_analyzers(self) -> list[str]:
        return [r.analyzer_name for r in self.results if not r.success]


@dataclass(frozen=True)
class ChangeStats:
    lines_changed: int = 0
    chars_changed: int = 0


@dataclass(frozen=True)
class PatchResult:
    """Outcome of applying one finding's fix to one file."""

    success: bool
    file_path: str
    finding_id: str
    snapshot_path: str | None = None
    error: str | None = None
    change_stats: ChangeStats = field(default_factory=ChangeStats)


@dataclass(frozen=True)
class ValidationOutcome:
    """Result of one external validation procedure."""

    procedure_name: str
    passed: bool
    output: str = ""
    error: str | None = None
    duration_ms: int = 0


@dataclass
class ValidationReport:
    """Outcomes of every attempted procedure after a patch pass."""

    outcomes: list[ValidationOutcome] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    files_validated: int = 0

    @property
    def all_passed(self) -> bool:
        return all(o.passed for o in self.outcomes)

    @property
    def failed(self) -> list[ValidationOutcome]:
        return [o for o in self.outcomes if not o.passed]


@dataclass(frozen=True)
class Snapshot:
    """A pre-mutation copy of a file found on disk."""

    original: str
    snapshot: str
    size: int
    modified_time: datetime


@dataclass
class RestoreSummary:
    restored: int = 0
    failed: int = 0
    errors: list[str] = field(default_factory=list)


class ReviewDecision(enum.Enum):
    APPROVE = "approve"
    REJECT = "reject"
    APPROVE_REST = "approve-rest"
    REJECT_REST = "reject-rest"
    ABORT = "abort"


class ReviewMode(enum.Enum):
    PROMPTING = "prompting"
    AUTO_APPROVE = "auto-approve"
    AUTO_REJECT = "auto-reject"


@dataclass
class ReviewResult:
    approved: list[Finding] = field(default_factory=list)
    rejected: list[Finding] = field(default_factory=list)
    cancelled: bool = False


@dataclass(frozen=True)
class PatchStatistics:
    total: int
    successful: int
    failed: int
    files_modified: int
    lines_modified: int


@dataclass(frozen=True)
class EnrichmentStatistics:
    total: int
    with_fix: int
    without_fix: int
    avg_confidence: float


def patch_statistics(results: list[PatchResult]) -> PatchStatistics:
    """Summarize a patch pass for reporting."""
    successful = [r for r in results if r.success]
    return PatchStatistics(
        total=len(results),
        successful=len(successful),
        failed=len(results) - len(successful),
        files_modified=len({r.file_path for r in successful}),
        lines_modified=sum(r.change_stats.lines_changed for r in successful),
    )


def enrichment_statistics(findings: list[Finding]) -> EnrichmentStatistics:
    with_fix = [f for f in findings if f.fix is not None]
    avg = (
        sum(f.fix.effective_confidence for f in with_fix) / len(with_fix)  # type: ignore[union-attr]
        if with_fix
        else 0.0
    )
    return EnrichmentStatistics(
        total=len(findings),
        with_fix=len(with_fix),
        without_fix=len(findings) - len(with_fix),
        avg_confidence=avg,
    )
