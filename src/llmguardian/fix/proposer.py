"""Enricher: asks a suggestion engine for fixes under bounded concurrency."""

from __future__ import annotations

import asyncio
import logging
import time

from llmguardian.core.models import AnalysisFile, Finding
from llmguardian.fix.models import SuggestionContext
from llmguardian.fix.prompts import extract_surrounding_lines
from llmguardian.fix.suggestion import SuggestionEngine

logger = logging.getLogger("llmguardian.proposer")

DEFAULT_FIX_CATEGORIES = ("hallucination", "code-quality")


class Proposer:
    """Attaches engine-generated fixes to eligible findings.

    The returned list always has the input's length and order. Nothing
    here raises to the caller: an unavailable engine, a timeout or an
    unparseable answer all leave the affected finding without a fix.
    """

    def __init__(
        self,
        engine: SuggestionEngine,
        max_concurrency: int = 3,
        categories: tuple[str, ...] | list[str] = DEFAULT_FIX_CATEGORIES,
        context_radius: int = 3,
        call_timeout: float | None = 30.0,
    ):
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be at least 1")
        self.engine = engine
        self.max_concurrency = max_concurrency
        self.categories = set(categories)
        self.context_radius = context_radius
        self.call_timeout = call_timeout

    def is_eligible(self, finding: Finding) -> bool:
        return (
            finding.category in self.categories
            and not finding.is_pipeline_error
            and finding.fix is None
        )

    async def enrich(self, findings: list[Finding], files: list[AnalysisFile]) -> list[Finding]:
        start = time.monotonic()
        result = list(findings)

        try:
            available = await self.engine.is_available()
        except Exception as e:
            logger.warning("Suggestion engine %s availability check failed: %s", self.engine.name, e)
            available = False
        if not available:
            logger.warning("Suggestion engine %s not available, skipping fix suggestions", self.engine.name)
            return result

        eligible = [i for i, f in enumerate(findings) if self.is_eligible(f)]
        if not eligible:
            return result

        by_path = {f.path: f for f in files}
        enriched = 0
        for offset in range(0, len(eligible), self.max_concurrency):
            batch = eligible[offset:offset + self.max_concurrency]
            updated = await asyncio.gather(
                *(self._enrich_one(findings[i], findings, by_path) for i in batch)
            )
            for index, finding in zip(batch, updated):
                if finding is not findings[index]:
                    enriched += 1
                result[index] = finding

        logger.info(
            "Generated %d of %d suggestions in %dms",
            enriched, len(eligible), int((time.monotonic() - start) * 1000),
        )
        return result

    def build_context(
        self,
        finding: Finding,
        findings: list[Finding],
        by_path: dict[str, AnalysisFile],
    ) -> SuggestionContext | None:
        file = by_path.get(finding.file_path)
        if file is None:
            return None
        related = [
            f for f in findings
            if f.file_path == finding.file_path and f is not finding
        ]
        return SuggestionContext(
            file_content=file.content,
            file_path=file.path,
            file_extension=file.extension or ".txt",
            surrounding_lines=extract_surrounding_lines(file.content, finding.line, self.context_radius),
            related_findings=related,
        )

    async def _enrich_one(
        self,
        finding: Finding,
        findings: list[Finding],
        by_path: dict[str, AnalysisFile],
    ) -> Finding:
        context = self.build_context(finding, findings, by_path)
        if context is None:
            return finding

        try:
            response = await asyncio.wait_for(
                self.engine.generate_fix(finding, context),
                timeout=self.call_timeout,
            )
        except asyncio.TimeoutError:
            logger.warning("Suggestion for %s at %s:%d timed out", finding.id, finding.file_path, finding.line)
            return finding
        except Exception as e:
            logger.warning("Suggestion for %s failed: %s", finding.id, e)
            return finding

        if not response.success or response.fix is None or not response.fix.is_well_formed:
            logger.debug("No usable fix for %s: %s", finding.id, response.error)
            return finding
        return finding.with_fix(response.fix)
