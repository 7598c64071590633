"""Performance analyzer: loop complexity, leaks, re-renders, blocking I/O."""

from __future__ import annotations

import re

from llmguardian.core.models import AnalysisFile, Finding, Severity
from llmguardian.scanner.analyzers.base import BaseAnalyzer, is_comment

LOOP_PATTERN = re.compile(r"for\s*\(|\.forEach\(|\.map\(|while\s*\(")
ITERATION_PATTERN = re.compile(r"for\s*\(|\.forEach\(")
LOOKAHEAD = 10
CLEANUP_LOOKAHEAD = 20
EVIDENCE_LIMIT = 100


class PerformanceAnalyzer(BaseAnalyzer):
    """Flags common performance anti-patterns."""

    name = "performance"
    category = "performance"

    def analyze(self, files: list[AnalysisFile]) -> list[Finding]:
        findings: list[Finding] = []
        for file in files:
            lines = file.content.split("\n")
            findings.extend(self._loops(file, lines))
            findings.extend(self._leaks(file, lines))
            findings.extend(self._rerenders(file, lines))
            findings.extend(self._blocking(file, lines))
            findings.extend(self._large_imports(file, lines))
        return findings

    def _finding(self, finding_id, message, file, index, line, severity, suggestion) -> Finding:
        return self._make_finding(
            finding_id,
            message,
            file,
            line=index + 1,
            severity=severity,
            suggestion=suggestion,
            evidence=line.strip()[:EVIDENCE_LIMIT],
        )

    def _loops(self, file: AnalysisFile, lines: list[str]) -> list[Finding]:
        findings = []
        depth = 0
        for index, line in enumerate(lines):
            if is_comment(line):
                continue
            if LOOP_PATTERN.search(line):
                depth += 1
                if depth >= 2:
                    findings.append(self._finding(
                        "nested-loop",
                        "Nested loop detected, O(n^2) complexity",
                        file, index, line, Severity.MEDIUM,
                        "Consider using a Map/Set for lookups or optimizing the algorithm",
                    ))
            if "}" in line:
                depth = max(0, depth - 1)

        for index, line in enumerate(lines):
            if is_comment(line) or not ITERATION_PATTERN.search(line):
                continue
            window = "\n".join(lines[index:index + LOOKAHEAD])
            if ".push(" in window or ".concat(" in window:
                findings.append(self._finding(
                    "array-operation-loop",
                    "Array push/concat in loop, consider using map/filter",
                    file, index, line, Severity.LOW,
                    "Use map/filter/reduce for array transformations",
                ))
        return findings

    def _leaks(self, file: AnalysisFile, lines: list[str]) -> list[Finding]:
        findings = []
        for index, line in enumerate(lines):
            if is_comment(line):
                continue
            window = "\n".join(lines[index:index + CLEANUP_LOOKAHEAD])
            if "addEventListener(" in line and "removeEventListener" not in window and "cleanup" not in window:
                findings.append(self._finding(
                    "event-listener-leak",
                    "addEventListener without removeEventListener, potential memory leak",
                    file, index, line, Severity.MEDIUM,
                    "Remove the event listener in cleanup/unmount",
                ))
            if re.search(r"setInterval\(|setTimeout\(", line) and not (
                "clearInterval" in window or "clearTimeout" in window
            ):
                findings.append(self._finding(
                    "timer-leak",
                    "Timer without cleanup, potential memory leak",
                    file, index, line, Severity.MEDIUM,
                    "Clear the timer in cleanup/unmount",
                ))
        return findings

    def _rerenders(self, file: AnalysisFile, lines: list[str]) -> list[Finding]:
        findings = []
        for index, line in enumerate(lines):
            if is_comment(line):
                continue
            if "style={{" in line:
                findings.append(self._finding(
                    "inline-style-object",
                    "Inline style object causes re-render on every render",
                    file, index, line, Severity.LOW,
                    "Extract the style object outside the component",
                ))
            if re.search(r"on(Click|Change)=\{.*=>", line):
                findings.append(self._finding(
                    "inline-function",
                    "Inline function in JSX causes re-render",
                    file, index, line, Severity.LOW,
                    "Use useCallback or extract the function outside the component",
                ))
        return findings

    def _blocking(self, file: AnalysisFile, lines: list[str]) -> list[Finding]:
        findings = []
        for index, line in enumerate(lines):
            if is_comment(line):
                continue
            if re.search(r"readFileSync|writeFileSync", line):
                findings.append(self._finding(
                    "sync-file-operation",
                    "Synchronous file operation blocks the event loop",
                    file, index, line, Severity.MEDIUM,
                    "Use async readFile/writeFile instead",
                ))
            previous = lines[index - 1] if index > 0 else ""
            if "JSON.parse(" in line and re.search(r"for\s*\(|\.map\(", previous):
                findings.append(self._finding(
                    "json-parse-loop",
                    "JSON.parse in loop is expensive",
                    file, index, line, Severity.LOW,
                    "Parse once outside the loop if possible",
                ))
        return findings

    def _large_imports(self, file: AnalysisFile, lines: list[str]) -> list[Finding]:
        findings = []
        for index, line in enumerate(lines):
            if re.search(r"""import\s+_\s+from\s+['"]lodash['"]""", line):
                findings.append(self._finding(
                    "large-import-lodash",
                    "Importing entire lodash increases bundle size",
                    file, index, line, Severity.LOW,
                    'Import specific functions: import { map } from "lodash"',
                ))
            if re.search(r"import\s+\*\s+as", line):
                findings.append(self._finding(
                    "large-import",
                    "Wildcard import may increase bundle size",
                    file, index, line, Severity.LOW,
                    "Import only needed exports",
                ))
        return findings
