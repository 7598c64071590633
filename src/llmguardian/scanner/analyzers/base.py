"""Base analyzer class for all scanner analyzers."""

from __future__ import annotations

import time
from abc import ABC, abstractmethod
from typing import Any

from llmguardian.core.models import AnalysisFile, AnalyzerResult, Finding, FixCandidate, Severity

JS_EXTENSIONS = (".ts", ".tsx", ".js", ".jsx", ".mjs", ".cjs")
COMMENT_PREFIXES = ("//", "/*", "*", "#")


class BaseAnalyzer(ABC):
    """Abstract base class for all analyzers.

    Analyzers are stateless: ``detect`` receives the whole file set and
    must not depend on any other analyzer having run.
    """

    name: str = ""
    category: str = ""
    supported_extensions: tuple[str, ...] = JS_EXTENSIONS

    def detect(self, files: list[AnalysisFile]) -> AnalyzerResult:
        """Run the analyzer on every supported file and time the run."""
        start = time.monotonic()
        supported = [f for f in files if self.supports(f)]
        findings = self.analyze(supported)
        return AnalyzerResult(
            analyzer_name=self.name,
            findings=findings,
            success=True,
            metadata={
                "files_analyzed": len(supported),
                "duration_ms": int((time.monotonic() - start) * 1000),
                **self.summarize(findings),
            },
        )

    def supports(self, file: AnalysisFile) -> bool:
        return file.extension in self.supported_extensions

    @abstractmethod
    def analyze(self, files: list[AnalysisFile]) -> list[Finding]:
        """Return findings for the supported files."""
        ...

    def summarize(self, findings: list[Finding]) -> dict[str, Any]:
        """Analyzer-specific counters merged into the result metadata."""
        return {}

    def _make_finding(
        self,
        finding_id: str,
        message: str,
        file: AnalysisFile,
        line: int,
        severity: Severity,
        column: int | None = None,
        suggestion: str = "",
        evidence: str = "",
        fix: FixCandidate | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> Finding:
        """Helper to create a Finding with this analyzer's defaults."""
        return Finding(
            id=finding_id,
            severity=severity,
            category=self.category or self.name,
            file_path=file.path,
            line=line,
            column=column,
            message=message,
            suggestion=suggestion,
            evidence=evidence,
            fix=fix,
            metadata=metadata or {},
        )


def is_comment(line: str) -> bool:
    return line.strip().startswith(COMMENT_PREFIXES)
