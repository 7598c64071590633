"""Collects the files to analyze from git (staged or tracked)."""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path

from llmguardian.core.models import AnalysisFile

logger = logging.getLogger("llmguardian.files")


class GitError(RuntimeError):
    """Raised when git cannot list files for the project."""


class FileProvider:
    """Supplies the initial file set for a check run."""

    def __init__(
        self,
        project_path: Path | None = None,
        extensions: list[str] | None = None,
        exclude: list[str] | None = None,
    ):
        self.project_path = (project_path or Path.cwd()).resolve()
        self.extensions = set(extensions or [])
        self.exclude = exclude or []

    def staged_files(self) -> list[AnalysisFile]:
        """Files added, copied or modified in the git index."""
        return self._load(self._git("diff", "--cached", "--name-only", "--diff-filter=ACM"))

    def tracked_files(self) -> list[AnalysisFile]:
        """Every file git tracks in the project."""
        return self._load(self._git("ls-files"))

    def _git(self, *args: str) -> list[str]:
        try:
            result = subprocess.run(
                ["git", *args],
                cwd=self.project_path,
                capture_output=True,
                text=True,
                check=False,
            )
        except FileNotFoundError as e:
            raise GitError("git executable not found on PATH") from e

        if result.returncode != 0:
            if "not a git repository" in result.stderr.lower():
                raise GitError("Not a git repository. LLM Guardian requires git for file tracking.")
            raise GitError(f"git {' '.join(args)} failed: {result.stderr.strip()}")

        return [line.strip() for line in result.stdout.splitlines() if line.strip()]

    def _load(self, rel_paths: list[str]) -> list[AnalysisFile]:
        files: list[AnalysisFile] = []
        for rel in rel_paths:
            path = Path(rel)
            if self.extensions and path.suffix not in self.extensions:
                continue
            if any(excl.rstrip("/") in rel for excl in self.exclude):
                continue

            full_path = self.project_path / path
            if not full_path.exists():
                # Deleted after staging
                continue
            try:
                content = full_path.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError):
                logger.warning("Could not read file %s", rel)
                continue
            files.append(AnalysisFile(path=str(full_path), content=content, extension=path.suffix))
        return files


def is_git_repository(path: Path | None = None) -> bool:
    try:
        result = subprocess.run(
            ["git", "rev-parse", "--git-dir"],
            cwd=path or Path.cwd(),
            capture_output=True,
            text=True,
            check=False,
        )
    except FileNotFoundError:
        return False
    return result.returncode == 0
