"""Analyzer registry."""

from __future__ import annotations

from llmguardian.core.config import ScanConfig
from llmguardian.scanner.analyzers.base import BaseAnalyzer
from llmguardian.scanner.analyzers.code_quality import CodeQualityAnalyzer
from llmguardian.scanner.analyzers.hallucination import HallucinationAnalyzer, RegistryLike
from llmguardian.scanner.analyzers.performance import PerformanceAnalyzer
from llmguardian.scanner.analyzers.security import SecurityAnalyzer

ALL_ANALYZERS: list[type[BaseAnalyzer]] = [
    HallucinationAnalyzer,
    CodeQualityAnalyzer,
    SecurityAnalyzer,
    PerformanceAnalyzer,
]

ANALYZER_NAMES = [cls.name for cls in ALL_ANALYZERS]


def build_analyzers(
    names: list[str],
    config: ScanConfig,
    registry: RegistryLike,
) -> list[BaseAnalyzer]:
    """Instantiate the named analyzers in declaration order."""
    unknown = [n for n in names if n not in ANALYZER_NAMES]
    if unknown:
        raise ValueError(
            f"Unknown analyzer(s): {', '.join(unknown)}. "
            f"Available: {', '.join(ANALYZER_NAMES)}"
        )

    analyzers: list[BaseAnalyzer] = []
    for cls in ALL_ANALYZERS:
        if cls.name not in names:
            continue
        if cls is HallucinationAnalyzer:
            analyzers.append(HallucinationAnalyzer(registry))
        elif cls is CodeQualityAnalyzer:
            analyzers.append(CodeQualityAnalyzer(
                max_file_lines=config.max_file_lines,
                max_function_lines=config.max_function_lines,
                warn_any_count=config.warn_any_count,
            ))
        else:
            analyzers.append(cls())
    return analyzers
