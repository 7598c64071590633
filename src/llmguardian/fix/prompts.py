"""Prompt construction for suggestion engines."""

from __future__ import annotations

import re

from llmguardian.core.models import Finding
from llmguardian.fix.models import SuggestionContext, SurroundingLines

_GENERAL_TEMPLATE = """You are a code fix assistant.

Your task: Generate a precise code fix for the issue below.

RULES:
- Provide ONLY the exact code change needed
- Preserve existing functionality
- Output in the structured format specified"""

CATEGORY_TEMPLATES = {
    "hallucination": """You are a code fix assistant specializing in correcting LLM-generated code mistakes.

Your task: Generate a precise code fix for the issue below.

RULES:
- Provide ONLY the exact code change needed (no explanations unless asked)
- Preserve existing code style and formatting
- Fix only the specific issue (don't refactor unrelated code)
- Ensure the fix is backwards compatible
- Output in the structured format specified""",
    "code-quality": """You are a code quality improvement assistant.

Your task: Generate a code fix that improves code quality while maintaining functionality.

RULES:
- Provide ONLY the exact code change needed
- Preserve existing logic and behavior
- Improve quality without breaking changes
- Follow the idioms of the surrounding code
- Output in the structured format specified""",
}

OUTPUT_FORMAT = """OUTPUT FORMAT:
Provide your fix in this exact format:

SEARCH:
```
[exact code to find and replace]
```

REPLACE:
```
[replacement code]
```

EXPLANATION:
[One sentence explaining why this fixes the issue]

CONFIDENCE:
[0.0-1.0 score indicating confidence this fix is correct]

IMPORTANT:
- SEARCH block must match existing code exactly (including whitespace)
- REPLACE block should maintain formatting style
- If you cannot provide a fix, explain why in EXPLANATION
- Confidence should be 0.0 if no fix possible"""


def build_prompt(finding: Finding, context: SuggestionContext) -> str:
    """Build the full prompt for a single finding."""
    system = CATEGORY_TEMPLATES.get(finding.category, _GENERAL_TEMPLATE)
    return f"{system}\n\n{_context_section(finding, context)}\n\n{OUTPUT_FORMAT}"


def _context_section(finding: Finding, context: SuggestionContext) -> str:
    lang = context.file_extension.lstrip(".")
    location = f"{finding.line}:{finding.column}" if finding.column is not None else str(finding.line)

    issue = [
        "ISSUE DETAILS:",
        f"Category: {finding.category}",
        f"Severity: {finding.severity.value}",
        f"Message: {finding.message}",
    ]
    if finding.suggestion:
        issue.append(f"Suggestion: {finding.suggestion}")

    sections = [
        "\n".join(issue),
        f"FILE CONTEXT:\nPath: {context.file_path}\nExtension: {context.file_extension}\nLine: {location}",
    ]

    if finding.evidence:
        sections.append(f"PROBLEMATIC CODE:\n```{lang}\n{finding.evidence}\n```")

    surrounding = context.surrounding_lines
    if surrounding is not None:
        body = [f"  {line}" for line in surrounding.before]
        body.append(f"> {surrounding.line}  <- ISSUE LINE")
        body.extend(f"  {line}" for line in surrounding.after)
        sections.append("SURROUNDING CODE (for context):\n```" + lang + "\n" + "\n".join(body) + "\n```")

    if context.related_findings:
        related = "\n".join(f"- Line {f.line}: {f.message}" for f in context.related_findings)
        sections.append(f"RELATED ISSUES IN FILE:\n{related}")

    return "\n\n".join(sections)


def extract_surrounding_lines(content: str, line: int, radius: int = 3) -> SurroundingLines | None:
    """Return ``radius`` lines either side of ``line`` (1-based), or None if out of range."""
    lines = content.split("\n")
    if line < 1 or line > len(lines):
        return None
    index = line - 1
    return SurroundingLines(
        before=lines[max(0, index - radius):index],
        line=lines[index],
        after=lines[index + 1:index + 1 + radius],
    )


def stated_confidence(text: str) -> float | None:
    match = re.search(r"CONFIDENCE:\s*([\d.]+)", text, re.IGNORECASE)
    if match:
        try:
            value = float(match.group(1))
        except ValueError:
            value = -1.0
        if 0.0 <= value <= 1.0:
            return value

    match = re.search(r"(\d+)%\s*confident", text, re.IGNORECASE)
    if match:
        percent = int(match.group(1))
        if 0 <= percent <= 100:
            return percent / 100

    return None
