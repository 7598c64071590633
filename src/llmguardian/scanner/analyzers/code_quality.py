"""Code quality analyzer: oversized files and functions, `any`, unhandled async, debug output."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any

from llmguardian.core.models import AnalysisFile, Finding, FixCandidate, FixKind, Severity
from llmguardian.scanner.analyzers.base import BaseAnalyzer, is_comment

ANY_TYPE_PATTERN = re.compile(r":\s*any\b|<any>|as\s+any\b|any\[\]|Array<any>|Record<[^,]+,\s*any>")
CONSOLE_PATTERN = re.compile(r"console\.(log|warn|error|debug|info|table|trace)\(")
FUNCTION_PATTERNS = [
    re.compile(r"(?:async\s+)?function\s*\*?\s*(\w+)\s*\("),
    re.compile(r"(?:const|let|var)\s+(\w+)\s*=\s*(?:async\s*)?(?:\([^)]*\)|\w+)\s*=>"),
    re.compile(r"^\s*(?:public\s+|private\s+|protected\s+|static\s+|async\s+)*(\w+)\s*\([^)]*\)\s*(?::\s*[^{]+)?\{"),
]
CONTROL_KEYWORDS = {"if", "for", "while", "switch", "catch", "return", "function"}


@dataclass
class _OpenFunction:
    name: str
    start_line: int
    depth: int = 0
    opened: bool = False


class CodeQualityAnalyzer(BaseAnalyzer):
    """Flags maintainability smells common in generated code."""

    name = "code-quality"
    category = "code-quality"

    def __init__(
        self,
        max_file_lines: int = 600,
        max_function_lines: int = 150,
        warn_any_count: int = 3,
    ):
        self.max_file_lines = max_file_lines
        self.max_function_lines = max_function_lines
        self.warn_any_count = warn_any_count

    def analyze(self, files: list[AnalysisFile]) -> list[Finding]:
        findings: list[Finding] = []
        for file in files:
            lines = file.content.split("\n")

            if len(lines) > self.max_file_lines:
                findings.append(self._make_finding(
                    "file-too-large",
                    f"File has {len(lines)} lines (maximum recommended: {self.max_file_lines})",
                    file,
                    line=1,
                    severity=Severity.HIGH,
                    suggestion="Split into smaller modules. Each file should have a single responsibility.",
                    evidence=f"Total lines: {len(lines)}",
                    metadata={"line_count": len(lines), "max_lines": self.max_file_lines},
                ))

            if file.extension in (".ts", ".tsx"):
                findings.extend(self._any_types(file, lines))
            findings.extend(self._large_functions(file, lines))
            findings.extend(self._missing_error_handling(file, lines))
            findings.extend(self._console_statements(file, lines))
        return findings

    def summarize(self, findings: list[Finding]) -> dict[str, Any]:
        counts: dict[str, int] = {}
        for f in findings:
            counts[f.id] = counts.get(f.id, 0) + 1
        return {"counts": counts}

    def _any_types(self, file: AnalysisFile, lines: list[str]) -> list[Finding]:
        findings = []
        total = 0
        for index, line in enumerate(lines):
            if not line or is_comment(line):
                continue
            matches = ANY_TYPE_PATTERN.findall(line)
            if not matches:
                continue
            total += len(matches)
            findings.append(self._make_finding(
                "any-type-usage",
                "Use of 'any' type defeats TypeScript's type safety",
                file,
                line=index + 1,
                severity=Severity.MEDIUM,
                suggestion="Replace 'any' with a specific type or 'unknown'",
                evidence=line.strip(),
                metadata={"pattern": matches[0]},
            ))

        if total >= self.warn_any_count:
            findings.append(self._make_finding(
                "excessive-any-types",
                f"File contains {total} instances of 'any' type (threshold: {self.warn_any_count})",
                file,
                line=1,
                severity=Severity.HIGH,
                suggestion="Refactor to use specific types. Consider 'unknown' for truly dynamic data.",
                evidence=f"Total 'any' types: {total}",
                metadata={"count": total, "threshold": self.warn_any_count},
            ))
        return findings

    def _large_functions(self, file: AnalysisFile, lines: list[str]) -> list[Finding]:
        """Measure functions by counting braces from the declaration line."""
        findings = []
        current: _OpenFunction | None = None

        for index, line in enumerate(lines):
            if not line or is_comment(line):
                continue

            if current is None:
                name = _function_name(line)
                if name:
                    current = _OpenFunction(name=name, start_line=index + 1)

            if current is None:
                continue

            opens = line.count("{")
            closes = line.count("}")
            if opens:
                current.opened = True
            current.depth += opens - closes

            if current.opened and current.depth <= 0:
                length = index + 1 - current.start_line + 1
                if length > self.max_function_lines:
                    findings.append(self._make_finding(
                        "function-too-large",
                        f"Function '{current.name}' has {length} lines (maximum: {self.max_function_lines})",
                        file,
                        line=current.start_line,
                        severity=Severity.HIGH,
                        suggestion="Break down into smaller functions.",
                        evidence=f"Function spans lines {current.start_line}-{index + 1}",
                        metadata={
                            "function_name": current.name,
                            "line_count": length,
                            "max_lines": self.max_function_lines,
                        },
                    ))
                current = None
        return findings

    def _missing_error_handling(self, file: AnalysisFile, lines: list[str]) -> list[Finding]:
        findings = []
        try_depth = 0
        for index, line in enumerate(lines):
            if not line or is_comment(line):
                continue
            if re.search(r"\btry\b", line):
                try_depth += 1
            if re.search(r"\bcatch\b", line) and not line.strip().startswith("."):
                try_depth = max(0, try_depth - 1)

            if re.search(r"\bawait\b", line) and try_depth == 0 and ".catch(" not in line:
                findings.append(self._make_finding(
                    "missing-error-handling",
                    "Async operation without error handling",
                    file,
                    line=index + 1,
                    severity=Severity.HIGH,
                    suggestion="Wrap in try/catch block to handle potential errors",
                    evidence=line.strip(),
                    metadata={"pattern": "await without try/catch"},
                ))

            if ".then(" in line and not any(".catch(" in later for later in lines[index:index + 5]):
                findings.append(self._make_finding(
                    "missing-error-handling",
                    "Promise chain without .catch()",
                    file,
                    line=index + 1,
                    severity=Severity.MEDIUM,
                    suggestion="Add .catch() to handle rejection",
                    evidence=line.strip(),
                    metadata={"pattern": ".then() without .catch()"},
                ))
        return findings

    def _console_statements(self, file: AnalysisFile, lines: list[str]) -> list[Finding]:
        findings = []
        for index, line in enumerate(lines):
            if not line or is_comment(line):
                continue
            match = CONSOLE_PATTERN.search(line)
            if not match:
                continue
            statement = line.strip()
            findings.append(self._make_finding(
                "console-statement",
                f"console.{match.group(1)}() statement found",
                file,
                line=index + 1,
                column=match.start(),
                severity=Severity.LOW,
                suggestion="Remove debug statements or use a logging library",
                evidence=statement,
                fix=FixCandidate(
                    kind=FixKind.LITERAL_REPLACE,
                    search=statement,
                    replace=f"// {statement}",
                    confidence=0.9,
                    explanation="Comment out console statement",
                ),
                metadata={"method": match.group(1)},
            ))
        return findings


def _function_name(line: str) -> str | None:
    for pattern in FUNCTION_PATTERNS:
        match = pattern.search(line)
        if match and match.group(1) not in CONTROL_KEYWORDS:
            return match.group(1)
    return None
