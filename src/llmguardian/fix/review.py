"""Reviewer: human approval gate in front of the patcher."""

from __future__ import annotations

import logging
from typing import Callable

from llmguardian.core.models import Finding, ReviewDecision, ReviewMode, ReviewResult

logger = logging.getLogger("llmguardian.review")

DecideFn = Callable[[Finding, int, int], ReviewDecision]


def reviewable(findings: list[Finding]) -> list[Finding]:
    """Findings that carry a fix worth showing to a reviewer."""
    return [f for f in findings if f.fix is not None and f.fix.search]


class Reviewer:
    """Walks fix-bearing findings and records a decision for each.

    ``decide(finding, index, total)`` is the only source of input, so any
    front end (terminal prompt, test stub, web form) can drive it.
    """

    def __init__(self, decide: DecideFn):
        self.decide = decide

    def review(self, findings: list[Finding]) -> ReviewResult:
        candidates = reviewable(findings)
        result = ReviewResult()
        mode = ReviewMode.PROMPTING

        for index, finding in enumerate(candidates):
            if mode is ReviewMode.AUTO_APPROVE:
                result.approved.append(finding)
                continue
            if mode is ReviewMode.AUTO_REJECT:
                result.rejected.append(finding)
                continue

            decision = self.decide(finding, index, len(candidates))
            if decision is ReviewDecision.ABORT:
                logger.info("Review aborted at %d of %d", index + 1, len(candidates))
                return ReviewResult(cancelled=True)

            if decision in (ReviewDecision.APPROVE, ReviewDecision.APPROVE_REST):
                result.approved.append(finding)
            else:
                result.rejected.append(finding)

            if decision is ReviewDecision.APPROVE_REST:
                mode = ReviewMode.AUTO_APPROVE
            elif decision is ReviewDecision.REJECT_REST:
                mode = ReviewMode.AUTO_REJECT

        return result


def approve_all(finding: Finding, index: int, total: int) -> ReviewDecision:
    return ReviewDecision.APPROVE
