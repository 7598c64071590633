"""Guardian pipeline: analyze -> enrich -> review -> apply -> validate."""

from __future__ import annotations

import asyncio
from pathlib import Path

from llmguardian.core.config import GuardianConfig, load_config
from llmguardian.core.files import FileProvider
from llmguardian.core.models import (
    AnalysisFile,
    AnalysisReport,
    Finding,
    PatchResult,
    ReviewResult,
    ValidationReport,
)
from llmguardian.fix.applier import FixApplier
from llmguardian.fix.judge import Judge
from llmguardian.fix.proposer import Proposer
from llmguardian.fix.review import DecideFn, Reviewer
from llmguardian.fix.suggestion import SuggestionEngine, create_engine
from llmguardian.scanner.analyzers import build_analyzers
from llmguardian.scanner.analyzers.hallucination import RegistryLike
from llmguardian.scanner.engine import Orchestrator
from llmguardian.scanner.registry import OfflineRegistry, PackageRegistry, TTLCache


class GuardianPipeline:
    """Wires the pipeline stages from configuration.

    Each method takes only the previous stage's output, so callers can
    stop after any stage or swap one out.
    """

    def __init__(
        self,
        project_path: Path | None = None,
        config: GuardianConfig | None = None,
        engine: SuggestionEngine | None = None,
        registry: RegistryLike | None = None,
    ):
        self.project_path = (project_path or Path.cwd()).resolve()
        self.config = config or load_config(self.project_path)
        self._engine = engine
        self._registry = registry

    @property
    def registry(self) -> RegistryLike:
        if self._registry is None:
            scan = self.config.scan
            if scan.offline:
                self._registry = OfflineRegistry()
            else:
                self._registry = PackageRegistry(
                    base_url=scan.registry_url,
                    cache=TTLCache(ttl=scan.registry_ttl_seconds),
                )
        return self._registry

    @property
    def engine(self) -> SuggestionEngine:
        if self._engine is None:
            fix = self.config.fix
            self._engine = create_engine(
                fix.engine, model=fix.model, max_tokens=fix.max_tokens, timeout=fix.timeout_seconds
            )
        return self._engine

    def collect_files(self, all_files: bool = False) -> list[AnalysisFile]:
        provider = FileProvider(
            self.project_path,
            extensions=self.config.scan.extensions,
            exclude=self.config.exclude,
        )
        return provider.tracked_files() if all_files else provider.staged_files()

    def analyze(self, files: list[AnalysisFile], analyzers: list[str] | None = None) -> AnalysisReport:
        names = analyzers or self.config.scan.analyzers
        built = build_analyzers(names, self.config.scan, self.registry)
        return Orchestrator(max_workers=self.config.scan.max_workers).run(built, files)

    async def enrich_async(self, findings: list[Finding], files: list[AnalysisFile]) -> list[Finding]:
        fix = self.config.fix
        proposer = Proposer(
            self.engine,
            max_concurrency=fix.max_concurrency,
            categories=fix.categories,
            context_radius=fix.context_lines,
            # Leave room for the engine's own retry.
            call_timeout=fix.timeout_seconds * 2 + 5,
        )
        return await proposer.enrich(findings, files)

    def enrich(self, findings: list[Finding], files: list[AnalysisFile]) -> list[Finding]:
        return asyncio.run(self.enrich_async(findings, files))

    def review(self, findings: list[Finding], decide: DecideFn) -> ReviewResult:
        return Reviewer(decide).review(findings)

    def apply(
        self,
        findings: list[Finding],
        dry_run: bool = False,
        min_confidence: float | None = None,
    ) -> list[PatchResult]:
        return self.applier(dry_run, min_confidence).apply_fixes(findings)

    def applier(self, dry_run: bool = False, min_confidence: float | None = None) -> FixApplier:
        fix = self.config.fix
        return FixApplier(
            dry_run=dry_run,
            create_snapshots=fix.create_backups,
            snapshot_suffix=fix.backup_suffix,
            min_confidence=fix.min_confidence if min_confidence is None else min_confidence,
        )

    def validate(self, results: list[PatchResult]) -> ValidationReport:
        v = self.config.validate
        judge = Judge(
            self.project_path,
            run_type_check=v.type_check,
            run_tests=v.tests,
            run_lint=v.lint,
            timeout=v.timeout_seconds,
            commands=v.commands,
        )
        return judge.validate_sync(results)

    def close(self) -> None:
        if self._registry is not None and hasattr(self._registry, "close"):
            self._registry.close()
