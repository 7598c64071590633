"""Tests for the git-backed file provider."""

from __future__ import annotations

import subprocess
from pathlib import Path
from unittest.mock import patch

import pytest

from llmguardian.core.files import FileProvider, GitError, is_git_repository


def _completed(stdout: str = "", returncode: int = 0, stderr: str = "") -> subprocess.CompletedProcess:
    return subprocess.CompletedProcess(args=["git"], returncode=returncode, stdout=stdout, stderr=stderr)


@pytest.fixture
def project(tmp_path: Path) -> Path:
    (tmp_path / "src").mkdir()
    (tmp_path / "src" / "app.ts").write_text("console.log('hi')\n")
    (tmp_path / "src" / "util.py").write_text("x = 1\n")
    (tmp_path / "README.md").write_text("# readme\n")
    (tmp_path / "node_modules").mkdir()
    (tmp_path / "node_modules" / "dep.js").write_text("module.exports = 1\n")
    return tmp_path


class TestFileProvider:
    def test_staged_files_filters_by_extension(self, project: Path):
        provider = FileProvider(project, extensions=[".ts", ".py"])
        with patch("subprocess.run", return_value=_completed("src/app.ts\nREADME.md\nsrc/util.py\n")) as run:
            files = provider.staged_files()

        assert [Path(f.path).name for f in files] == ["app.ts", "util.py"]
        args = run.call_args[0][0]
        assert args == ["git", "diff", "--cached", "--name-only", "--diff-filter=ACM"]

    def test_tracked_files_respects_exclude(self, project: Path):
        provider = FileProvider(project, extensions=[".js", ".ts"], exclude=["node_modules/"])
        with patch("subprocess.run", return_value=_completed("node_modules/dep.js\nsrc/app.ts\n")):
            files = provider.tracked_files()

        assert len(files) == 1
        assert files[0].content == "console.log('hi')\n"
        assert files[0].extension == ".ts"
        assert Path(files[0].path).is_absolute()

    def test_missing_files_are_skipped(self, project: Path):
        provider = FileProvider(project, extensions=[".ts"])
        with patch("subprocess.run", return_value=_completed("src/deleted.ts\nsrc/app.ts\n")):
            files = provider.staged_files()

        assert [Path(f.path).name for f in files] == ["app.ts"]

    def test_not_a_repository_raises(self, project: Path):
        provider = FileProvider(project)
        failure = _completed(returncode=128, stderr="fatal: not a git repository")
        with patch("subprocess.run", return_value=failure):
            with pytest.raises(GitError, match="Not a git repository"):
                provider.staged_files()

    def test_missing_git_raises(self, project: Path):
        provider = FileProvider(project)
        with patch("subprocess.run", side_effect=FileNotFoundError("git")):
            with pytest.raises(GitError):
                provider.tracked_files()


class TestIsGitRepository:
    def test_true_on_success(self, tmp_path: Path):
        with patch("subprocess.run", return_value=_completed(".git")):
            assert is_git_repository(tmp_path)

    def test_false_without_git(self, tmp_path: Path):
        with patch("subprocess.run", side_effect=FileNotFoundError("git")):
            assert not is_git_repository(tmp_path)
