"""Fix stage data models."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from llmguardian.core.models import Finding, FixCandidate


@dataclass(frozen=True)
class SurroundingLines:
    """Lines around a finding, clipped to the file bounds."""

    before: list[str]
    line: str
    after: list[str]


@dataclass(frozen=True)
class SuggestionContext:
    """Everything a suggestion engine sees besides the finding itself."""

    file_content: str
    file_path: str
    file_extension: str
    surrounding_lines: SurroundingLines | None = None
    related_findings: list[Finding] = field(default_factory=list)


@dataclass
class SuggestionResponse:
    success: bool
    fix: FixCandidate | None = None
    error: str | None = None
    raw_text: str = ""
    metadata: dict[str, Any] = field(default_factory=dict)
