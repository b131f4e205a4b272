"""Tests for vcsflow.git module."""

import subprocess
from pathlib import Path
from unittest.mock import patch, MagicMock

import pytest
from pydantic import SecretStr

from vcsflow.git.runner import run_git, GitResult
from vcsflow.git.status import categorize, parse_porcelain_z, get_binary_paths
from vcsflow.git.branch import get_commit_sha, get_current_branch
from vcsflow.git.commit import checkout, ignore
from vcsflow.git.content import read_content
from vcsflow.git.remote import PASSWORD_VAR, USERNAME_VAR, credential_options, push
from vcsflow.git.client import GitClient
from vcsflow.lib.errors import GitCommandError
from vcsflow.lib.types import Credential, StatusCategory


class TestGitResult:
    """Test GitResult dataclass."""

    def test_success_when_returncode_zero(self):
        result = GitResult(returncode=0, stdout="ok", stderr="")
        assert result.success is True

    def test_failure_when_returncode_nonzero(self):
        result = GitResult(returncode=1, stdout="", stderr="error")
        assert result.success is False

    def test_failure_when_timed_out(self):
        result = GitResult(returncode=0, stdout="ok", stderr="", timed_out=True)
        assert result.success is False

    def test_message_prefers_stderr(self):
        assert GitResult(1, "out\n", "err\n").message == "err"
        assert GitResult(0, "out\n", "").message == "out"


class TestRunGit:
    """Test run_git function."""

    @patch("vcsflow.git.runner.subprocess.run")
    def test_returns_result_on_success(self, mock_run):
        mock_run.return_value = MagicMock(returncode=0, stdout="output", stderr="")
        result = run_git(["status"], Path("/tmp"))
        assert result.success
        assert result.stdout == "output"
        mock_run.assert_called_once()

    @patch("vcsflow.git.runner.subprocess.run")
    def test_missing_git(self, mock_run):
        mock_run.side_effect = FileNotFoundError("git")
        result = run_git(["status"], Path("/tmp"))
        assert result.returncode == 127
        assert not result.timed_out

    @patch("vcsflow.git.runner.subprocess.run")
    def test_handles_timeout(self, mock_run):
        mock_run.side_effect = subprocess.TimeoutExpired(cmd="git", timeout=30)
        result = run_git(["status"], Path("/tmp"))
        assert not result.success
        assert result.timed_out
        assert "timed out" in result.stderr

    @patch("vcsflow.git.runner.subprocess.run")
    def test_passes_cwd_with_C_flag(self, mock_run):
        mock_run.return_value = MagicMock(returncode=0, stdout="", stderr="")
        run_git(["status", "--porcelain"], Path("/my/repo"))
        call_args = mock_run.call_args[0][0]
        assert call_args == ["git", "-C", "/my/repo", "status", "--porcelain"]
        assert mock_run.call_args.kwargs["env"] is None

    @patch("vcsflow.git.runner.subprocess.run")
    def test_config_and_env(self, mock_run):
        mock_run.return_value = MagicMock(returncode=0, stdout="", stderr="")
        run_git(["push"], Path("/r"), env={"GIT_TERMINAL_PROMPT": "0"}, config=["a.b=c"])
        assert mock_run.call_args[0][0] == ["git", "-C", "/r", "-c", "a.b=c", "push"]
        env = mock_run.call_args.kwargs["env"]
        assert env["GIT_TERMINAL_PROMPT"] == "0"
        assert "PATH" in env


class TestCategorize:
    """Porcelain XY codes to categories."""

    def test_categories(self):
        assert categorize("?", "?") == StatusCategory.UNTRACKED
        assert categorize(" ", "M") == StatusCategory.UNSTAGED
        assert categorize(" ", "D") == StatusCategory.UNSTAGED
        assert categorize("M", " ") == StatusCategory.STAGED
        assert categorize("A", " ") == StatusCategory.STAGED
        assert categorize("M", "M") == StatusCategory.PARTIALLY_STAGED
        assert categorize("A", "M") == StatusCategory.PARTIALLY_STAGED


class TestParsePorcelainZ:
    """Test -z status parsing."""

    def test_basic_entries(self):
        files = parse_porcelain_z(" M a.py\0?? new file.txt\0A  b.py\0")
        assert [(f.path, f.category) for f in files] == [
            ("a.py", StatusCategory.UNSTAGED),
            ("new file.txt", StatusCategory.UNTRACKED),
            ("b.py", StatusCategory.STAGED),
        ]

    def test_rename_consumes_original_path(self):
        files = parse_porcelain_z("R  new.py\0old.py\0 M other.py\0")
        assert len(files) == 2
        assert files[0].path == "new.py"
        assert files[0].renamed_from == "old.py"
        assert files[1].path == "other.py"

    def test_ignored_entries_skipped(self):
        assert parse_porcelain_z("!! build/\0") == []

    def test_binary_paths(self):
        files = parse_porcelain_z(" M img.png\0 M a.py\0", frozenset({"img.png"}))
        assert files[0].is_binary
        assert not files[1].is_binary

    def test_empty(self):
        assert parse_porcelain_z("") == []

    @patch("vcsflow.git.status.run_git")
    def test_binary_paths_from_numstat(self, mock_run):
        mock_run.side_effect = [
            GitResult(0, "-\t-\timg.png\n3\t1\ta.py\n", ""),
            GitResult(0, "-\t-\tdata.bin\n", ""),
        ]
        assert get_binary_paths(Path("/r")) == frozenset({"img.png", "data.bin"})


class TestBranch:
    """HEAD lookups."""

    @patch("vcsflow.git.branch.run_git")
    def test_branch_name(self, mock_run):
        mock_run.return_value = GitResult(0, "main\n", "")
        assert get_current_branch(Path("/r")) == "main"
        assert mock_run.call_args[0][0] == ["symbolic-ref", "--quiet", "--short", "HEAD"]

    @patch("vcsflow.git.branch.run_git")
    def test_detached(self, mock_run):
        mock_run.return_value = GitResult(1, "", "")
        assert get_current_branch(Path("/r")) is None

    @patch("vcsflow.git.branch.run_git")
    def test_sha_before_first_commit(self, mock_run):
        mock_run.return_value = GitResult(1, "", "")
        assert get_commit_sha(Path("/r")) is None
        assert mock_run.call_args[0][0][-1] == "HEAD^{commit}"


class TestCheckout:
    """Argument shapes for the three checkout modes."""

    @patch("vcsflow.git.commit.run_git")
    def test_file(self, mock_run):
        checkout(Path("/r"), path="a.py")
        assert mock_run.call_args[0][0] == ["checkout", "--", "a.py"]

    @patch("vcsflow.git.commit.run_git")
    def test_new_branch_ignores_path(self, mock_run):
        checkout(Path("/r"), path="a.py", branch="feature", new_branch=True)
        assert mock_run.call_args[0][0] == ["checkout", "-b", "feature"]

    @patch("vcsflow.git.commit.run_git")
    def test_new_branch_from_start_point(self, mock_run):
        checkout(Path("/r"), branch="feature", new_branch=True, start_point="origin/main")
        assert mock_run.call_args[0][0] == ["checkout", "-b", "feature", "origin/main"]

    @patch("vcsflow.git.commit.run_git")
    def test_nothing(self, mock_run):
        result = checkout(Path("/r"))
        assert not result.success
        mock_run.assert_not_called()


class TestIgnore:
    """Appending to .gitignore."""

    def test_path(self, tmp_path):
        assert ignore(tmp_path, "build/out.txt") == "/build/out.txt"
        assert (tmp_path / ".gitignore").read_text() == "/build/out.txt\n"

    def test_extension(self, tmp_path):
        assert ignore(tmp_path, "logs/run.log", use_extension=True) == "*.log"

    def test_extensionless_falls_back_to_path(self, tmp_path):
        assert ignore(tmp_path, "Makefile", use_extension=True) == "Makefile"

    def test_no_duplicates_and_newline_fix(self, tmp_path):
        (tmp_path / ".gitignore").write_text("*.pyc")
        ignore(tmp_path, "a.log", use_extension=True)
        ignore(tmp_path, "b.log", use_extension=True)
        assert (tmp_path / ".gitignore").read_text() == "*.pyc\n*.log\n"


class TestReadContent:
    """Content at WORKING, INDEX and refs."""

    def test_working(self, tmp_path):
        (tmp_path / "a.txt").write_text("hello\n")
        assert read_content(tmp_path, "a.txt", "WORKING").stdout == "hello\n"

    def test_working_missing_is_empty(self, tmp_path):
        result = read_content(tmp_path, "gone.txt", "WORKING")
        assert result.success
        assert result.stdout == ""

    @patch("vcsflow.git.content.run_git")
    def test_index_and_ref_specs(self, mock_run):
        mock_run.return_value = GitResult(0, "x", "")
        read_content(Path("/r"), "a.py", "INDEX")
        assert mock_run.call_args[0][0] == ["show", ":a.py"]
        read_content(Path("/r"), "a.py", "HEAD")
        assert mock_run.call_args[0][0] == ["show", "HEAD:a.py"]

    @patch("vcsflow.git.content.run_git")
    def test_missing_at_ref_is_empty(self, mock_run):
        mock_run.return_value = GitResult(128, "", "fatal: path 'n.py' does not exist in 'HEAD'")
        result = read_content(Path("/r"), "n.py", "HEAD")
        assert result.success
        assert result.stdout == ""

    @patch("vcsflow.git.content.run_git")
    def test_bad_revision_fails(self, mock_run):
        mock_run.return_value = GitResult(128, "", "fatal: invalid object name 'nope'")
        assert not read_content(Path("/r"), "a.py", "nope").success


class TestCredentialOptions:
    """Credentials travel through the environment."""

    def test_without_credentials(self):
        env, config = credential_options(None)
        assert env == {"GIT_TERMINAL_PROMPT": "0"}
        assert config == []

    def test_with_credentials(self):
        env, config = credential_options(Credential(username="alice", password=SecretStr("s3cret")))
        assert env[USERNAME_VAR] == "alice"
        assert env[PASSWORD_VAR] == "s3cret"
        assert config[0] == "credential.helper="
        assert not any("s3cret" in item for item in config)

    @patch("vcsflow.git.remote.run_git")
    def test_push_sets_upstream(self, mock_run):
        push(Path("/r"), remote="origin", branch="main")
        assert mock_run.call_args[0][0] == ["push", "-u", "origin", "main"]


class TestGitClient:
    """Async wrapper raises GitCommandError on failure."""

    @pytest.mark.asyncio
    @patch("vcsflow.git.client.stage_file")
    async def test_failure_raises_with_git_message(self, mock_stage):
        mock_stage.return_value = GitResult(128, "", "fatal: pathspec 'x' did not match any files")
        with pytest.raises(GitCommandError) as exc:
            await GitClient(Path("/r")).add("x")
        assert "did not match" in exc.value.message
        assert exc.value.code == 128

    @pytest.mark.asyncio
    @patch("vcsflow.git.client.commit")
    async def test_success_result(self, mock_commit):
        mock_commit.return_value = GitResult(0, "[main abc123] msg\n", "")
        result = await GitClient(Path("/r")).commit("msg")
        assert result.success
        assert result.message == "[main abc123] msg"

    @pytest.mark.asyncio
    @patch("vcsflow.git.client.push")
    @patch("vcsflow.git.client.get_current_branch", return_value="feature")
    @patch("vcsflow.git.client.get_upstream", return_value=None)
    async def test_push_without_upstream_targets_default_remote(self, _upstream, _branch, mock_push):
        mock_push.return_value = GitResult(0, "", "")
        await GitClient(Path("/r")).push()
        args = mock_push.call_args[0]
        assert args[2:4] == ("origin", "feature")

    @pytest.mark.asyncio
    @patch("vcsflow.git.client.push")
    @patch("vcsflow.git.client.get_upstream", return_value="origin/main")
    async def test_push_with_upstream(self, _upstream, mock_push):
        mock_push.return_value = GitResult(0, "", "")
        await GitClient(Path("/r")).push()
        args = mock_push.call_args[0]
        assert args[2:4] == (None, None)

    @pytest.mark.asyncio
    async def test_fetch_working_content(self, tmp_path):
        (tmp_path / "a.txt").write_text("hi")
        assert await GitClient(tmp_path).fetch_content("a.txt", "WORKING", str(tmp_path)) == "hi"
