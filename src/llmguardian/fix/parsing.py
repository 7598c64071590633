"""Turn free-form suggestion text into a FixCandidate.

Each strategy is an independent function returning a candidate or None.
Strategies are tried in priority order; the first hit wins. When nothing
matches, no fix is produced.
"""

from __future__ import annotations

import re
from typing import Callable

from llmguardian.core.models import Finding, FixCandidate, FixKind
from llmguardian.fix.prompts import stated_confidence

FENCE = re.compile(r"```[\w+-]*[ \t]*\n(.*?)```", re.DOTALL)
LABELED_SEARCH = re.compile(r"SEARCH:\s*```[\w+-]*[ \t]*\n?(.*?)```", re.DOTALL)
LABELED_REPLACE = re.compile(r"REPLACE:\s*```[\w+-]*[ \t]*\n?(.*?)```", re.DOTALL)
INLINE_CHANGE = re.compile(r"(?:change|replace|use)\s+`([^`]+)`\s+(?:to|with|->|→)\s+`([^`]+)`", re.IGNORECASE)

EXPLANATION_LIMIT = 200
DEFAULT_EXPLANATION = "Suggested fix"

Strategy = Callable[[str, Finding], "FixCandidate | None"]


def extract_explanation(text: str) -> str:
    """First prose paragraph with code fences removed, truncated."""
    labeled = re.search(r"EXPLANATION:\s*\n?(.+?)(?:\n\s*\n|\n[A-Z]+:|$)", text, re.DOTALL)
    if labeled and labeled.group(1).strip():
        return labeled.group(1).strip()[:EXPLANATION_LIMIT]

    prose = re.sub(r"```.*?```", "", text, flags=re.DOTALL)
    for paragraph in prose.split("\n\n"):
        paragraph = paragraph.strip()
        if paragraph and not paragraph.rstrip(":").isupper():
            return paragraph[:EXPLANATION_LIMIT]
    return DEFAULT_EXPLANATION


def _candidate(search: str, replace: str, confidence: float, text: str) -> FixCandidate | None:
    if not search:
        return None
    return FixCandidate(
        kind=FixKind.EXTERNALLY_GENERATED,
        search=search,
        replace=replace,
        confidence=confidence,
        explanation=extract_explanation(text),
    )


def labeled_blocks(text: str, finding: Finding) -> FixCandidate | None:
    search = LABELED_SEARCH.search(text)
    replace = LABELED_REPLACE.search(text)
    if not search or not replace:
        return None
    confidence = stated_confidence(text)
    return _candidate(
        search.group(1).strip(),
        replace.group(1).strip(),
        0.9 if confidence is None else confidence,
        text,
    )


def before_after_blocks(text: str, finding: Finding) -> FixCandidate | None:
    blocks = [b.strip() for b in FENCE.findall(text)]
    if len(blocks) != 2 or not blocks[1]:
        return None
    return _candidate(blocks[0], blocks[1], 0.85, text)


def single_block(text: str, finding: Finding) -> FixCandidate | None:
    blocks = [b.strip() for b in FENCE.findall(text)]
    if len(blocks) != 1 or not blocks[0] or not finding.evidence:
        return None
    return _candidate(finding.evidence, blocks[0], 0.75, text)


def inline_change(text: str, finding: Finding) -> FixCandidate | None:
    match = INLINE_CHANGE.search(text)
    if not match:
        return None
    return _candidate(match.group(1), match.group(2), 0.7, text)


STRATEGIES: list[Strategy] = [
    labeled_blocks,
    before_after_blocks,
    single_block,
    inline_change,
]


def parse_fix_response(text: str, finding: Finding) -> FixCandidate | None:
    if not text or not text.strip():
        return None
    for strategy in STRATEGIES:
        candidate = strategy(text, finding)
        if candidate is not None:
            return candidate
    return None
