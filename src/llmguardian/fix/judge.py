"""Validator: runs the project's own checks after fixes are applied."""

from __future__ import annotations

import asyncio
import json
import logging
import os
import sys
import time
from dataclasses import dataclass
from pathlib import Path

from llmguardian.core.config import tomllib
from llmguardian.core.models import PatchResult, ValidationOutcome, ValidationReport

logger = logging.getLogger("llmguardian.judge")

TYPE_CHECK = "type-check"
TESTS = "test"
LINT = "lint"
OUTPUT_LIMIT = 4000


@dataclass(frozen=True)
class ValidationProcedure:
    name: str
    command: list[str]
    timeout: float = 30.0


class Judge:
    """Runs type-check, test and lint procedures and reports a verdict.

    The judge never rolls anything back; what to do with a failing
    verdict is up to the caller.
    """

    def __init__(
        self,
        project_path: Path,
        procedures: list[ValidationProcedure] | None = None,
        run_type_check: bool = True,
        run_tests: bool = True,
        run_lint: bool = False,
        timeout: float = 30.0,
        commands: dict[str, list[str]] | None = None,
    ):
        self.project_path = Path(project_path)
        self.procedures = procedures
        self.run_type_check = run_type_check
        self.run_tests = run_tests
        self.run_lint = run_lint
        self.timeout = timeout
        self.commands = commands or {}

    def plan(self) -> tuple[list[ValidationProcedure], list[str]]:
        """Return the procedures to run and the names of those skipped."""
        if self.procedures is not None:
            return list(self.procedures), []

        wanted = [
            (TYPE_CHECK, self.run_type_check),
            (TESTS, self.run_tests),
            (LINT, self.run_lint),
        ]
        detected = detect_commands(self.project_path)
        planned: list[ValidationProcedure] = []
        skipped: list[str] = []
        for name, enabled in wanted:
            if not enabled:
                continue
            command = self.commands.get(name) or detected.get(name)
            if command:
                planned.append(ValidationProcedure(name, list(command), self.timeout))
            else:
                skipped.append(name)
        # Explicit extra commands beyond the three standard procedures.
        for name, command in self.commands.items():
            if name not in (TYPE_CHECK, TESTS, LINT) and command:
                planned.append(ValidationProcedure(name, list(command), self.timeout))
        return planned, skipped

    async def validate(self, patch_results: list[PatchResult]) -> ValidationReport:
        successful = [r for r in patch_results if r.success]
        if not successful:
            return ValidationReport()

        procedures, skipped = self.plan()
        files = {r.file_path for r in successful}
        logger.info(
            "Validating %d fix(es) across %d file(s) with %s",
            len(successful), len(files), ", ".join(p.name for p in procedures) or "no procedures",
        )
        for name in skipped:
            logger.debug("Skipping %s: not defined for this project", name)

        outcomes = await asyncio.gather(*(self.run_procedure(p) for p in procedures))
        return ValidationReport(outcomes=list(outcomes), skipped=skipped, files_validated=len(files))

    def validate_sync(self, patch_results: list[PatchResult]) -> ValidationReport:
        return asyncio.run(self.validate(patch_results))

    async def run_procedure(self, procedure: ValidationProcedure) -> ValidationOutcome:
        start = time.monotonic()

        def outcome(passed: bool, output: str = "", error: str | None = None) -> ValidationOutcome:
            return ValidationOutcome(
                procedure_name=procedure.name,
                passed=passed,
                output=output[-OUTPUT_LIMIT:],
                error=error,
                duration_ms=int((time.monotonic() - start) * 1000),
            )

        try:
            proc = await asyncio.create_subprocess_exec(
                *procedure.command,
                cwd=str(self.project_path),
                env={**os.environ, "CI": "true"},
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.STDOUT,
            )
        except OSError as e:
            return outcome(False, error=f"Could not start {procedure.command[0]}: {e}")

        try:
            stdout, _ = await asyncio.wait_for(proc.communicate(), timeout=procedure.timeout)
        except asyncio.TimeoutError:
            proc.kill()
            await proc.wait()
            return outcome(False, error=f"Timed out after {procedure.timeout:g}s")

        output = stdout.decode(errors="replace") if stdout else ""
        if proc.returncode != 0:
            return outcome(False, output, f"Exited with code {proc.returncode}")
        return outcome(True, output)


def detect_commands(project_path: Path) -> dict[str, list[str]]:
    """Work out which validation commands the project defines."""
    pyproject = _read_pyproject(project_path)
    tool = pyproject.get("tool", {})
    scripts = _package_scripts(project_path)
    commands: dict[str, list[str]] = {}

    setup_cfg = project_path / "setup.cfg"
    setup_cfg_text = setup_cfg.read_text(errors="ignore") if setup_cfg.is_file() else ""

    if "mypy" in tool or (project_path / "mypy.ini").is_file() or "[mypy]" in setup_cfg_text:
        commands[TYPE_CHECK] = [sys.executable, "-m", "mypy", "."]
    elif "type-check" in scripts:
        commands[TYPE_CHECK] = ["npm", "run", "type-check"]
    elif (project_path / "tsconfig.json").is_file():
        commands[TYPE_CHECK] = ["npx", "tsc", "--noEmit"]

    pytest_configured = (
        "pytest" in tool
        or (project_path / "pytest.ini").is_file()
        or (project_path / "conftest.py").is_file()
    )
    # A bare tests/ directory only means pytest when package.json has no test script.
    if pytest_configured:
        commands[TESTS] = [sys.executable, "-m", "pytest", "-q"]
    elif "test" in scripts:
        commands[TESTS] = ["npm", "test"]
    elif (project_path / "tests").is_dir():
        commands[TESTS] = [sys.executable, "-m", "pytest", "-q"]

    if "ruff" in tool or (project_path / "ruff.toml").is_file() or (project_path / ".ruff.toml").is_file():
        commands[LINT] = ["ruff", "check", "."]
    elif "lint" in scripts:
        commands[LINT] = ["npm", "run", "lint"]

    return commands


def _read_pyproject(project_path: Path) -> dict:
    path = project_path / "pyproject.toml"
    if not path.is_file():
        return {}
    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as e:
        logger.warning("Could not read %s: %s", path, e)
        return {}


def _package_scripts(project_path: Path) -> dict[str, str]:
    path = project_path / "package.json"
    if not path.is_file():
        return {}
    try:
        data = json.loads(path.read_text())
    except (OSError, ValueError) as e:
        logger.warning("Could not read %s: %s", path, e)
        return {}
    scripts = data.get("scripts") if isinstance(data, dict) else None
    return scripts if isinstance(scripts, dict) else {}
