"""Tests for cranelift_bump.vcs."""

from __future__ import annotations

import shutil
import subprocess
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from cranelift_bump.errors import PreconditionError, ProcessError, UsageError
from cranelift_bump.vcs import Git, Mercurial, detect_repository


def _done(returncode: int = 0, stdout: str = "", stderr: str = ""):
    return subprocess.CompletedProcess(
        [], returncode, stdout=stdout.encode(), stderr=stderr.encode()
    )


class TestIsRepo:
    def test_git_marker(self, tmp_path: Path) -> None:
        (tmp_path / ".git").mkdir()
        assert Git.is_repo(tmp_path)
        assert not Mercurial.is_repo(tmp_path)

    def test_hg_marker(self, tmp_path: Path) -> None:
        (tmp_path / ".hg").mkdir()
        assert Mercurial.is_repo(tmp_path)
        assert not Git.is_repo(tmp_path)

    def test_marker_must_be_a_directory(self, tmp_path: Path) -> None:
        """A .git file (as in worktrees) is not enough."""
        (tmp_path / ".git").write_text("gitdir: /elsewhere\n")
        assert not Git.is_repo(tmp_path)

    def test_marker_must_be_direct_child(self, tmp_path: Path) -> None:
        (tmp_path / ".hg").mkdir()
        assert not Mercurial.is_repo(tmp_path / "js")


class TestDetectRepository:
    def test_detects_git(self, tmp_path: Path) -> None:
        (tmp_path / ".git").mkdir()
        repo = detect_repository(tmp_path)
        assert isinstance(repo, Git)
        assert repo.root == tmp_path

    def test_detects_hg(self, tmp_path: Path) -> None:
        (tmp_path / ".hg").mkdir()
        assert isinstance(detect_repository(tmp_path), Mercurial)

    def test_both_markers_default_prefers_hg(self, tmp_path: Path) -> None:
        """With both markers the first backend in precedence order wins."""
        (tmp_path / ".git").mkdir()
        (tmp_path / ".hg").mkdir()
        for _ in range(3):
            assert isinstance(detect_repository(tmp_path), Mercurial)

    def test_both_markers_git_first(self, tmp_path: Path) -> None:
        (tmp_path / ".git").mkdir()
        (tmp_path / ".hg").mkdir()
        assert isinstance(detect_repository(tmp_path, ("git", "hg")), Git)

    def test_not_a_repository(self, tmp_path: Path) -> None:
        with pytest.raises(PreconditionError, match="Not a git or Mercurial"):
            detect_repository(tmp_path)

    def test_precedence_limits_backends(self, tmp_path: Path) -> None:
        (tmp_path / ".git").mkdir()
        with pytest.raises(PreconditionError):
            detect_repository(tmp_path, ("hg",))

    def test_unknown_backend(self, tmp_path: Path) -> None:
        with pytest.raises(UsageError, match="svn"):
            detect_repository(tmp_path, ("svn", "git"))


class TestHasDiff:
    @patch("cranelift_bump.vcs.capture")
    def test_output_means_dirty(self, mock_capture: MagicMock, tmp_path: Path) -> None:
        mock_capture.return_value = _done(stdout="diff --git a/x b/x\n")

        assert Git(tmp_path).has_diff() is True
        mock_capture.assert_called_once_with("git", "diff", cwd=tmp_path)

    @patch("cranelift_bump.vcs.capture")
    def test_no_output_means_clean(
        self, mock_capture: MagicMock, tmp_path: Path
    ) -> None:
        mock_capture.return_value = _done()

        assert Mercurial(tmp_path).has_diff() is False
        mock_capture.assert_called_once_with("hg", "diff", cwd=tmp_path)

    @patch("cranelift_bump.vcs.capture")
    def test_start_failure_propagates(
        self, mock_capture: MagicMock, tmp_path: Path
    ) -> None:
        mock_capture.side_effect = ProcessError("couldn't run hg")

        with pytest.raises(ProcessError):
            Mercurial(tmp_path).has_diff()


class TestCommit:
    @patch("cranelift_bump.vcs.capture")
    def test_git_commits_all_tracked(
        self, mock_capture: MagicMock, tmp_path: Path
    ) -> None:
        mock_capture.return_value = _done()

        Git(tmp_path).commit("Bump")

        mock_capture.assert_called_once_with(
            "git", "commit", "-a", "-m", "Bump", cwd=tmp_path
        )

    @patch("cranelift_bump.vcs.capture")
    def test_hg_commit(self, mock_capture: MagicMock, tmp_path: Path) -> None:
        mock_capture.return_value = _done()

        Mercurial(tmp_path).commit("Bump")

        mock_capture.assert_called_once_with("hg", "commit", "-m", "Bump", cwd=tmp_path)

    @patch("cranelift_bump.vcs.capture")
    def test_git_is_idempotent(self, mock_capture: MagicMock, tmp_path: Path) -> None:
        """A second commit with nothing new is a no-op, not an error."""
        mock_capture.side_effect = [
            _done(),
            _done(1, stdout="On branch main\nnothing to commit, working tree clean\n"),
        ]

        repo = Git(tmp_path)
        repo.commit("Bump")
        repo.commit("Bump")

        assert mock_capture.call_count == 2

    @patch("cranelift_bump.vcs.capture")
    def test_git_untracked_files_are_a_noop(
        self, mock_capture: MagicMock, tmp_path: Path
    ) -> None:
        mock_capture.return_value = _done(
            1,
            stdout="Untracked files:\n\tmozconfig\n\n"
            "nothing added to commit but untracked files present\n",
        )

        Git(tmp_path).commit("Bump")

    @patch("cranelift_bump.vcs.capture")
    def test_undecodable_error_output(
        self, mock_capture: MagicMock, tmp_path: Path
    ) -> None:
        mock_capture.return_value = subprocess.CompletedProcess(
            [], 255, stdout=b"caf\xe9\n", stderr=b"abort: bad name \xff\n"
        )

        with pytest.raises(ProcessError, match="abort: bad name"):
            Mercurial(tmp_path).commit("Bump")

    @patch("cranelift_bump.vcs.capture")
    def test_hg_is_idempotent(self, mock_capture: MagicMock, tmp_path: Path) -> None:
        mock_capture.side_effect = [_done(), _done(1, stdout="nothing changed\n")]

        repo = Mercurial(tmp_path)
        repo.commit("Bump")
        repo.commit("Bump")

    @patch("cranelift_bump.vcs.capture")
    def test_sentinel_is_backend_specific(
        self, mock_capture: MagicMock, tmp_path: Path
    ) -> None:
        mock_capture.return_value = _done(1, stdout="nothing changed\n")

        with pytest.raises(ProcessError):
            Git(tmp_path).commit("Bump")

    @patch("cranelift_bump.vcs.capture")
    def test_failure_includes_both_streams(
        self, mock_capture: MagicMock, tmp_path: Path
    ) -> None:
        mock_capture.return_value = _done(
            1, stdout="some stdout", stderr="abort: no username supplied"
        )

        with pytest.raises(ProcessError) as excinfo:
            Mercurial(tmp_path).commit("Bump")

        assert "some stdout" in str(excinfo.value)
        assert "no username supplied" in str(excinfo.value)


@pytest.mark.skipif(shutil.which("git") is None, reason="git not installed")
class TestGitIntegration:
    @pytest.fixture
    def repo(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
        """Create a real git repository with one committed file."""
        monkeypatch.setenv("GIT_CONFIG_GLOBAL", str(tmp_path / "gitconfig"))
        monkeypatch.setenv("GIT_CONFIG_NOSYSTEM", "1")
        for var in ("GIT_AUTHOR", "GIT_COMMITTER"):
            monkeypatch.setenv(f"{var}_NAME", "Test")
            monkeypatch.setenv(f"{var}_EMAIL", "test@example.com")

        root = tmp_path / "repo"
        root.mkdir()
        subprocess.run(["git", "init", "-q"], cwd=root, check=True)
        (root / "Cargo.toml").write_text("[workspace]\n")
        subprocess.run(["git", "add", "Cargo.toml"], cwd=root, check=True)
        subprocess.run(["git", "commit", "-q", "-m", "init"], cwd=root, check=True)
        return root

    def test_clean_then_dirty(self, repo: Path) -> None:
        git = detect_repository(repo)
        assert git.has_diff() is False

        (repo / "Cargo.toml").write_text("[workspace]\nmembers = []\n")

        assert git.has_diff() is True

    def test_commit_twice(self, repo: Path) -> None:
        git = detect_repository(repo)
        (repo / "Cargo.toml").write_text("[workspace]\nmembers = []\n")

        git.commit("Bump")
        git.commit("Bump")

        assert git.has_diff() is False
        log = subprocess.run(
            ["git", "log", "--format=%s"],
            cwd=repo,
            capture_output=True,
            text=True,
            check=True,
        )
        assert log.stdout.splitlines() == ["Bump", "init"]

    def test_commit_twice_with_untracked_file(self, repo: Path) -> None:
        git = detect_repository(repo)
        (repo / "mozconfig").write_text("ac_add_options --enable-debug\n")
        (repo / "Cargo.toml").write_text("[workspace]\nmembers = []\n")

        git.commit("Bump")
        git.commit("Bump")

        assert git.has_diff() is False
        assert (repo / "mozconfig").exists()

    def test_diff_of_non_utf8_file(self, repo: Path) -> None:
        git = detect_repository(repo)
        (repo / "latin1.txt").write_bytes(b"caf\xe9\n")
        subprocess.run(["git", "add", "latin1.txt"], cwd=repo, check=True)
        subprocess.run(["git", "commit", "-q", "-m", "latin1"], cwd=repo, check=True)
        assert git.has_diff() is False

        (repo / "latin1.txt").write_bytes(b"na\xefve\n")

        assert git.has_diff() is True
        git.commit("Bump")
        assert git.has_diff() is False
