"""Orchestrator: runs analyzers in parallel and merges their findings."""

from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor

from llmguardian.core.models import AnalysisFile, AnalysisReport, AnalyzerResult, Finding, Severity
from llmguardian.scanner.analyzers.base import BaseAnalyzer

logger = logging.getLogger("llmguardian.scanner")


class Orchestrator:
    """Runs every analyzer over the same file set.

    A failing analyzer never aborts the run: it is reported as a single
    critical finding with an empty ``file_path`` so callers can tell
    pipeline errors apart from defects in the code under analysis.
    """

    def __init__(self, max_workers: int = 4):
        self.max_workers = max(1, max_workers)

    def run(self, analyzers: list[BaseAnalyzer], files: list[AnalysisFile]) -> AnalysisReport:
        start = time.monotonic()
        if not analyzers:
            return AnalysisReport(files_analyzed=len(files))

        with ThreadPoolExecutor(max_workers=min(self.max_workers, len(analyzers))) as pool:
            futures = [pool.submit(analyzer.detect, files) for analyzer in analyzers]
            # Collected in submission order, not completion order.
            results = [
                self._collect(analyzer, future)
                for analyzer, future in zip(analyzers, futures)
            ]

        findings: list[Finding] = []
        for result in results:
            findings.extend(result.findings)

        return AnalysisReport(
            findings=findings,
            results=results,
            files_analyzed=len(files),
            duration_ms=int((time.monotonic() - start) * 1000),
        )

    def _collect(self, analyzer: BaseAnalyzer, future) -> AnalyzerResult:
        try:
            result = future.result()
        except Exception as e:
            logger.warning("Analyzer %s crashed: %s", analyzer.name, e)
            return AnalyzerResult(
                analyzer_name=analyzer.name,
                findings=[analyzer_error(analyzer.name, str(e) or type(e).__name__)],
                success=False,
                error=str(e),
            )

        if not result.success:
            logger.warning("Analyzer %s reported failure: %s", analyzer.name, result.error)
            return AnalyzerResult(
                analyzer_name=result.analyzer_name,
                findings=[analyzer_error(analyzer.name, result.error or "analyzer failed")],
                success=False,
                error=result.error,
                metadata=result.metadata,
            )
        return result


def analyzer_error(name: str, error: str) -> Finding:
    """Synthetic finding standing in for an analyzer that could not run."""
    return Finding(
        id=f"analyzer-error-{name}",
        severity=Severity.CRITICAL,
        category=name,
        file_path="",
        line=0,
        message=f"Analyzer '{name}' failed: {error}",
        evidence=error,
    )
