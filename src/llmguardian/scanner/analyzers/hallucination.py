"""Hallucination analyzer: nonexistent packages and deprecated APIs."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Protocol

from llmguardian.core.models import AnalysisFile, Finding, FixCandidate, FixKind, Severity
from llmguardian.scanner.analyzers.base import JS_EXTENSIONS, BaseAnalyzer, is_comment
from llmguardian.scanner.deprecated_apis import find_deprecated_apis
from llmguardian.scanner.registry import PackageInfo

IMPORT_PATTERNS = [
    re.compile(r"""import\s+(?:type\s+)?(?:\{[^}]*\}|\*\s+as\s+\w+|\w+(?:\s*,\s*\{[^}]*\})?)\s+from\s+['"]([^'"]+)['"]"""),
    re.compile(r"""import\s*\(\s*['"]([^'"]+)['"]\s*\)"""),
    re.compile(r"""require\s*\(\s*['"]([^'"]+)['"]\s*\)"""),
    re.compile(r"""^\s*import\s+['"]([^'"]+)['"]"""),
]

NODE_BUILTINS = {
    "assert", "buffer", "child_process", "cluster", "crypto", "dgram", "dns",
    "events", "fs", "http", "http2", "https", "net", "os", "path", "perf_hooks",
    "process", "querystring", "readline", "stream", "string_decoder", "timers",
    "tls", "tty", "url", "util", "v8", "vm", "worker_threads", "zlib",
}

# Common LLM misspellings with a known real package.
KNOWN_CORRECTIONS = {
    "stripe-pro": "stripe",
    "openai-api": "openai",
    "anthropic-sdk": "@anthropic-ai/sdk",
    "react-dom-client": "react-dom",
}

DEPRECATED_REPLACEMENTS = {
    "moment": "Use date-fns or dayjs",
    "request": "Use native fetch() or axios",
    "node-uuid": "Use crypto.randomUUID()",
}


class RegistryLike(Protocol):
    def lookup_many(self, names: list[str]) -> dict[str, PackageInfo]: ...


@dataclass(frozen=True)
class ImportStatement:
    package_name: str
    kind: str  # "es6", "commonjs", "dynamic"
    line: int
    column: int
    raw: str


def package_name_from_path(path: str) -> str | None:
    """Reduce an import specifier to its package name.

    ``lodash/debounce`` -> ``lodash``; ``@stripe/stripe-js/pure`` -> ``@stripe/stripe-js``.
    """
    if not path or path.startswith((".", "/")):
        return None
    parts = path.split("/")
    if path.startswith("@"):
        return "/".join(parts[:2]) if len(parts) >= 2 else None
    return parts[0] or None


def extract_imports(content: str) -> list[ImportStatement]:
    imports: list[ImportStatement] = []
    for index, line in enumerate(content.splitlines()):
        if not line or is_comment(line):
            continue
        seen: set[str] = set()
        for pattern in IMPORT_PATTERNS:
            for match in pattern.finditer(line):
                specifier = match.group(1)
                if specifier.startswith("node:"):
                    continue
                name = package_name_from_path(specifier)
                if not name or name in NODE_BUILTINS or name in seen:
                    continue
                seen.add(name)
                text = match.group(0).lstrip()
                kind = "dynamic" if text.startswith("import(") or text.startswith("import (") else (
                    "commonjs" if text.startswith("require") else "es6"
                )
                imports.append(
                    ImportStatement(
                        package_name=name,
                        kind=kind,
                        line=index + 1,
                        column=match.start(1),
                        raw=line.strip(),
                    )
                )
    return imports


class HallucinationAnalyzer(BaseAnalyzer):
    """Detects hallucinated packages and deprecated API usage."""

    name = "hallucination"
    category = "hallucination"
    supported_extensions = JS_EXTENSIONS + (".py",)

    def __init__(self, registry: RegistryLike):
        self.registry = registry

    def analyze(self, files: list[AnalysisFile]) -> list[Finding]:
        findings: list[Finding] = []

        file_imports = [
            (f, extract_imports(f.content) if f.extension in JS_EXTENSIONS else [])
            for f in files
        ]
        names = [imp.package_name for _, imports in file_imports for imp in imports]
        packages = self.registry.lookup_many(names) if names else {}

        for file, imports in file_imports:
            for imp in imports:
                info = packages.get(imp.package_name)
                if info is None:
                    continue
                if not info.exists:
                    findings.append(self._fake_package(file, imp))
                elif info.deprecated:
                    findings.append(self._make_finding(
                        f"deprecated-package-{imp.package_name}",
                        f"Package '{imp.package_name}' is deprecated: {info.deprecated}",
                        file,
                        line=imp.line,
                        column=imp.column,
                        severity=Severity.HIGH,
                        suggestion=DEPRECATED_REPLACEMENTS.get(
                            imp.package_name, "Check package documentation for alternatives"
                        ),
                        evidence=imp.raw,
                        metadata={"package_name": imp.package_name, "deprecation_reason": info.deprecated},
                    ))

            findings.extend(self._deprecated_api_findings(file))

        return findings

    def summarize(self, findings: list[Finding]) -> dict[str, Any]:
        return {
            "fake_packages_found": sum(1 for f in findings if f.id.startswith("fake-package")),
            "deprecated_apis_found": sum(1 for f in findings if f.id.startswith("deprecated-api")),
        }

    def _fake_package(self, file: AnalysisFile, imp: ImportStatement) -> Finding:
        correction = KNOWN_CORRECTIONS.get(imp.package_name)
        fix = None
        if correction:
            suggestion = f"Did you mean '{correction}'?"
            quote = "'" if f"'{imp.package_name}" in imp.raw else '"'
            fix = FixCandidate(
                kind=FixKind.LITERAL_REPLACE,
                search=f"{quote}{imp.package_name}{quote}",
                replace=f"{quote}{correction}{quote}",
                confidence=0.8,
                explanation=f"Replace fake package '{imp.package_name}' with '{correction}'",
            )
        else:
            suggestion = f"Verify package name at https://www.npmjs.com/package/{imp.package_name}"

        return self._make_finding(
            f"fake-package-{imp.package_name}",
            f"Package '{imp.package_name}' does not exist in the package registry",
            file,
            line=imp.line,
            column=imp.column,
            severity=Severity.CRITICAL,
            suggestion=suggestion,
            evidence=imp.raw,
            fix=fix,
            metadata={"package_name": imp.package_name, "import_type": imp.kind},
        )

    def _deprecated_api_findings(self, file: AnalysisFile) -> list[Finding]:
        findings = []
        apis = find_deprecated_apis(file.content)
        if not apis:
            return findings

        lines = file.content.splitlines()
        for api in apis:
            for index, line in enumerate(lines):
                if api.pattern.search(line):
                    findings.append(self._make_finding(
                        f"deprecated-api-{api.package}",
                        f"Deprecated API in '{api.package}': {api.reason}",
                        file,
                        line=index + 1,
                        severity=Severity.HIGH,
                        suggestion=f"Use {api.replacement}",
                        evidence=line.strip(),
                        metadata={
                            "package": api.package,
                            "deprecated_since": api.deprecated_since,
                            "migration_guide": api.migration_guide,
                        },
                    ))
        return findings
