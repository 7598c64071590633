"""Security analyzer: secrets, injection, XSS, weak crypto, path traversal."""

from __future__ import annotations

import re
from typing import Any

from llmguardian.core.models import AnalysisFile, Finding, Severity
from llmguardian.scanner.analyzers.base import JS_EXTENSIONS, BaseAnalyzer, is_comment

EVIDENCE_LIMIT = 100

# (pattern, secret kind)
SECRET_PATTERNS = [
    (re.compile(r"""['"]([A-Za-z0-9]{32,})['"]"""), "API Key"),
    (re.compile(r"AKIA[0-9A-Z]{16}"), "AWS Access Key"),
    (re.compile(r"""['"]([0-9a-zA-Z\-_]{43})['"]"""), "AWS Secret Key"),
    (re.compile(r"sk-[a-zA-Z0-9\-_]{20,}"), "OpenAI API Key"),
    (re.compile(r"xox[baprs]-[0-9]{10,13}-[0-9]{10,13}-[a-zA-Z0-9]{24,}"), "Slack Token"),
    (re.compile(r"ghp_[a-zA-Z0-9]{20,}"), "GitHub Token"),
    (re.compile(r"""(password|passwd|pwd)\s*[:=]\s*['"][^'"]{8,}['"]""", re.IGNORECASE), "Hardcoded Password"),
    (re.compile(r"Bearer\s+[A-Za-z0-9\-_]+\.[A-Za-z0-9\-_]+\.[A-Za-z0-9\-_]+"), "JWT Token"),
]

# Reading from the environment is the recommended alternative, not a leak.
ENV_MARKERS = ("process.env.", "import.meta.env.", "os.environ", "os.getenv(")

SQL_INJECTION_PATTERNS = [
    re.compile(r"query\s*\(\s*[`'\"]\s*(SELECT|INSERT|UPDATE|DELETE).*\$\{.*\}", re.IGNORECASE),
    re.compile(r"execute\s*\(\s*[`'\"f].*\+.*\)", re.IGNORECASE),
    re.compile(r"execute\s*\(\s*f['\"]\s*(SELECT|INSERT|UPDATE|DELETE).*\{", re.IGNORECASE),
    re.compile(r"\.raw\s*\(\s*[`'\"].*\$\{.*\}", re.IGNORECASE),
]

XSS_PATTERNS = [
    re.compile(r"dangerouslySetInnerHTML"),
    re.compile(r"\.innerHTML\s*="),
    re.compile(r"document\.write\s*\("),
    re.compile(r"\beval\s*\("),
    re.compile(r"new\s+Function\s*\("),
]

COMMAND_INJECTION_PATTERNS = [
    re.compile(r"\b(exec|spawn|execSync)\s*\(\s*[`'\"].*\$\{.*\}"),
    re.compile(r"child_process\.exec.*\+"),
    re.compile(r"\b(exec|spawn|execSync)\s*\(.*\+"),
    re.compile(r"os\.system\s*\(\s*f?['\"].*(\{|\+)"),
    re.compile(r"subprocess\.\w+\(.*shell\s*=\s*True"),
]

INSECURE_CRYPTO_PATTERNS = [
    (re.compile(r"createCipher\("), "Use createCipheriv instead (createCipher uses weak IV)"),
    (re.compile(r"\b(MD5|SHA1)\b", re.IGNORECASE), "MD5 and SHA1 are cryptographically broken, use SHA256+"),
    (re.compile(r"Math\.random\(\)"), "Math.random() is not cryptographically secure, use crypto.randomBytes()"),
]

PATH_TRAVERSAL_PATTERNS = [
    re.compile(r"readFileSync\s*\(.*\+"),
    re.compile(r"writeFileSync\s*\(.*\+"),
    re.compile(r"\.\./\.\./"),
]


class SecurityAnalyzer(BaseAnalyzer):
    """Flags common insecure patterns in generated code."""

    name = "security"
    category = "security"
    supported_extensions = JS_EXTENSIONS + (".py",)

    def analyze(self, files: list[AnalysisFile]) -> list[Finding]:
        findings: list[Finding] = []
        for file in files:
            for index, line in enumerate(file.content.split("\n")):
                if not line or is_comment(line):
                    continue
                findings.extend(self._check_line(file, index + 1, line))
        return findings

    def summarize(self, findings: list[Finding]) -> dict[str, Any]:
        return {
            "critical_issues": sum(1 for f in findings if f.severity == Severity.CRITICAL),
            "high_issues": sum(1 for f in findings if f.severity == Severity.HIGH),
        }

    def _check_line(self, file: AnalysisFile, line_no: int, line: str) -> list[Finding]:
        findings = []
        evidence = line.strip()[:EVIDENCE_LIMIT]

        def add(finding_id, message, severity, suggestion, **metadata):
            findings.append(self._make_finding(
                finding_id, message, file,
                line=line_no,
                severity=severity,
                suggestion=suggestion,
                evidence=evidence,
                metadata=metadata,
            ))

        if not any(marker in line for marker in ENV_MARKERS):
            for pattern, kind in SECRET_PATTERNS:
                if pattern.search(line):
                    add(
                        "hardcoded-secret",
                        f"Hardcoded {kind} detected, use environment variables instead",
                        Severity.CRITICAL,
                        "Store secrets in environment variables or use a secrets manager",
                        secret_type=kind,
                    )

        if any(p.search(line) for p in SQL_INJECTION_PATTERNS):
            add(
                "sql-injection",
                "Potential SQL injection, use parameterized queries",
                Severity.CRITICAL,
                "Use parameterized queries or an ORM with bound parameters",
            )

        for pattern in XSS_PATTERNS:
            if pattern.search(line):
                add(
                    "xss",
                    "Potential XSS vulnerability, avoid unsafe HTML injection",
                    Severity.HIGH,
                    "Sanitize user input or use safe DOM APIs (textContent, not innerHTML)",
                    pattern=pattern.pattern,
                )
                break

        if any(p.search(line) for p in COMMAND_INJECTION_PATTERNS):
            add(
                "command-injection",
                "Potential command injection, avoid shell execution with user input",
                Severity.CRITICAL,
                "Pass arguments as a list (execFile, subprocess.run([...])) and validate input",
            )

        for pattern, message in INSECURE_CRYPTO_PATTERNS:
            if pattern.search(line):
                add("insecure-crypto", message, Severity.HIGH, "Use modern cryptographic functions")

        if "path.join" not in line and "os.path.join" not in line and any(
            p.search(line) for p in PATH_TRAVERSAL_PATTERNS
        ):
            add(
                "path-traversal",
                "Potential path traversal, validate and sanitize file paths",
                Severity.HIGH,
                "Resolve paths against a base directory and reject '..' segments",
            )

        return findings
