"""LLM Guardian: catch LLM mistakes before they reach prod."""

from llmguardian._version import __version__
from llmguardian.core.models import Finding, FixCandidate, FixKind, PatchResult, Severity

__all__ = [
    "__version__",
    "Finding",
    "FixCandidate",
    "FixKind",
    "PatchResult",
    "Severity",
]
