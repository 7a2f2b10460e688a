"""Tests for the git command executor and root resolver"""
import os
import subprocess
import sys
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from unittest.mock import patch

import git
import pytest

from ticketflow.exceptions import (
    ErrorKind,
    GitOperationError,
    GitTimeoutError,
    NotGitRepoError,
    OperationCancelledError,
    find_cause,
    is_cancellation,
)
from ticketflow.services.git import executor as executor_module
from ticketflow.services.git.executor import GitExecutor, find_project_root, is_git_repo
from ticketflow.utils.context import Cancelled, Context, DeadlineExceeded


class TestPreflightCancellation:
    """A context that is already done never spawns git."""

    def test_cancelled_context_fails_without_spawning(self, git_repo):
        """A cancelled context raises before any process starts."""
        executor = GitExecutor(git_repo.working_dir)
        ctx = Context.background().with_cancel()
        ctx.cancel()

        with patch("git.Git.execute") as mock_execute:
            with pytest.raises(OperationCancelledError) as exc_info:
                executor.execute(ctx, "status")

        mock_execute.assert_not_called()
        assert isinstance(exc_info.value.cause, Cancelled)
        assert exc_info.value.kind == ErrorKind.CANCELLED
        assert is_cancellation(exc_info.value)

    def test_expired_context_fails_without_spawning(self, git_repo):
        """An expired deadline is reported as a cancellation wrapping DeadlineExceeded."""
        executor = GitExecutor(git_repo.working_dir)
        ctx = Context.background().with_timeout(0)

        with patch("git.Git.execute") as mock_execute:
            with pytest.raises(OperationCancelledError) as exc_info:
                executor.execute(ctx, "status")

        mock_execute.assert_not_called()
        assert isinstance(exc_info.value.cause, DeadlineExceeded)


class TestTimeouts:
    """Test deadline enforcement on running processes."""

    def test_handle_timeout_kills_process(self, git_repo, sleeping_handle):
        """The handle timeout applies when the caller has no deadline."""
        executor = GitExecutor(git_repo.working_dir, timeout=0.2)
        handle = sleeping_handle()

        with patch("git.Git.execute", return_value=handle):
            start = time.monotonic()
            with pytest.raises(GitTimeoutError) as exc_info:
                executor.execute(None, "fetch", "origin")
            elapsed = time.monotonic() - start

        assert elapsed < 5
        assert handle.proc.returncode is not None  # Killed and reaped
        error = exc_info.value
        assert isinstance(error, GitOperationError)
        assert error.operation == "fetch"
        assert error.timeout == 0.2
        assert isinstance(error.cause, DeadlineExceeded)
        assert "timed out" in str(error)
        assert is_cancellation(error)

    def test_caller_deadline_takes_precedence(self, git_repo, sleeping_handle):
        """A caller deadline is used instead of the handle timeout."""
        executor = GitExecutor(git_repo.working_dir, timeout=60)
        handle = sleeping_handle()
        ctx = Context.background().with_timeout(0.2)

        with patch("git.Git.execute", return_value=handle):
            start = time.monotonic()
            with pytest.raises(GitTimeoutError) as exc_info:
                executor.execute(ctx, "pull", "origin", "main")
            elapsed = time.monotonic() - start

        assert elapsed < 5
        assert exc_info.value.timeout is None
        assert exc_info.value.branch == "main"

    def test_cancel_during_execution(self, git_repo, sleeping_handle):
        """Cancelling mid-flight kills git and raises a cancellation error."""
        executor = GitExecutor(git_repo.working_dir, timeout=60)
        handle = sleeping_handle()
        ctx = Context.background().with_cancel()
        timer = threading.Timer(0.2, ctx.cancel)

        with patch("git.Git.execute", return_value=handle):
            timer.start()
            try:
                with pytest.raises(OperationCancelledError) as exc_info:
                    executor.execute(ctx, "status")
            finally:
                timer.cancel()

        assert handle.proc.returncode is not None
        assert isinstance(exc_info.value.cause, Cancelled)
        assert not isinstance(exc_info.value, GitOperationError)

    def test_kill_after_exit_is_harmless(self):
        """Killing an already reaped process does nothing."""
        proc = subprocess.Popen([sys.executable, "-c", "pass"])
        proc.wait()

        executor_module._kill(proc)
        executor_module._kill(proc)

        assert proc.returncode == 0

    def test_zero_timeout_disables_limit(self, git_repo):
        """A non-positive handle timeout leaves the context without deadline."""
        executor = GitExecutor(git_repo.working_dir, timeout=0)
        assert executor.execute(None, "rev-parse", "--is-inside-work-tree") == "true"


class TestExecution:
    """Test output capture and failure classification."""

    def test_stdout_is_trimmed(self, git_repo):
        """Trailing whitespace is removed from stdout."""
        executor = GitExecutor(git_repo.working_dir)
        output = executor.execute(Context.background(), "log", "-1", "--format=%s%n%n")
        assert output == "Initial commit"

    def test_runs_in_bound_directory(self, git_repo):
        """Git runs inside the executor's working directory."""
        executor = GitExecutor(git_repo.working_dir)
        top = executor.execute(None, "rev-parse", "--show-toplevel")
        assert os.path.realpath(top) == os.path.realpath(git_repo.working_dir)

    def test_failure_carries_branch_for_checkout(self, git_repo):
        """A failed checkout reports the subcommand, branch and stderr."""
        executor = GitExecutor(git_repo.working_dir)

        with pytest.raises(GitOperationError) as exc_info:
            executor.execute(None, "checkout", "does-not-exist")

        error = exc_info.value
        assert not isinstance(error, GitTimeoutError)
        assert error.kind == ErrorKind.GIT
        assert error.operation == "checkout"
        assert error.branch == "does-not-exist"
        assert error.status not in (None, 0)
        assert "does-not-exist" in error.stderr
        assert isinstance(error.cause, git.exc.GitCommandError)
        assert error.cause.status == error.status

    def test_failure_without_branch_operand(self, git_repo):
        """Only checkout/push/pull/merge report a branch operand."""
        executor = GitExecutor(git_repo.working_dir)

        with pytest.raises(GitOperationError) as exc_info:
            executor.execute(None, "rev-parse", "--verify", "nope")

        assert exc_info.value.operation == "rev-parse"
        assert exc_info.value.branch is None

    def test_missing_working_directory(self, temp_dir):
        """A missing directory fails instead of running git elsewhere."""
        executor = GitExecutor(str(temp_dir / "missing"))

        with pytest.raises(GitOperationError) as exc_info:
            executor.execute(None, "status")

        assert find_cause(exc_info.value, FileNotFoundError) is not None
        assert "does not exist" in str(exc_info.value)

    def test_for_path_keeps_timeout(self, git_repo):
        """Derived executors share the timeout but not the directory."""
        executor = GitExecutor(git_repo.working_dir, timeout=12)
        other = executor.for_path("/somewhere/else")
        assert other.timeout == 12
        assert other.repo_path == "/somewhere/else"


class TestRootPath:
    """Test lazy, one-shot root resolution."""

    def test_resolves_top_level(self, git_repo):
        """root_path() returns the repository top-level directory."""
        subdir = os.path.join(git_repo.working_dir, "nested", "dir")
        os.makedirs(subdir)
        executor = GitExecutor(subdir)
        assert os.path.realpath(executor.root_path()) == os.path.realpath(git_repo.working_dir)

    def test_result_is_cached(self, git_repo):
        """The second call does not run git again."""
        executor = GitExecutor(git_repo.working_dir)
        first = executor.root_path()

        with patch.object(executor_module, "find_project_root") as mock_find:
            assert executor.root_path() == first
        mock_find.assert_not_called()

    def test_concurrent_callers_resolve_once(self, git_repo):
        """N threads racing on first access trigger a single resolution."""
        calls = []
        barrier = threading.Barrier(16)

        def slow_find(ctx, start_path, timeout):
            calls.append(start_path)
            time.sleep(0.1)
            return "/resolved/root"

        executor = GitExecutor(git_repo.working_dir)

        def worker():
            barrier.wait()
            return executor.root_path()

        with patch.object(executor_module, "find_project_root", side_effect=slow_find):
            with ThreadPoolExecutor(max_workers=16) as pool:
                results = list(pool.map(lambda _: worker(), range(16)))

        assert len(calls) == 1
        assert results == ["/resolved/root"] * 16

    def test_failure_is_cached(self, git_repo):
        """A failed resolution is returned to every later caller."""
        calls = []

        def failing_find(ctx, start_path, timeout):
            calls.append(start_path)
            raise NotGitRepoError(start_path)

        executor = GitExecutor(git_repo.working_dir)
        with patch.object(executor_module, "find_project_root", side_effect=failing_find):
            for _ in range(3):
                with pytest.raises(NotGitRepoError):
                    executor.root_path()

        assert len(calls) == 1

    def test_timeout_is_cached(self, git_repo):
        """A timed out resolution is not retried by later callers."""
        calls = []

        def timing_out_find(ctx, start_path, timeout):
            calls.append(start_path)
            try:
                raise DeadlineExceeded()
            except DeadlineExceeded as e:
                raise GitTimeoutError("rev-parse", timeout=timeout) from e

        executor = GitExecutor(git_repo.working_dir, timeout=5)
        with patch.object(executor_module, "find_project_root", side_effect=timing_out_find):
            for _ in range(3):
                with pytest.raises(GitTimeoutError) as exc_info:
                    executor.root_path()
                assert exc_info.value.timeout == 5
                assert is_cancellation(exc_info.value)

        assert len(calls) == 1

    def test_each_caller_gets_new_exception(self, git_repo):
        """Cached failures are re-raised as fresh exceptions chained to the original."""
        executor = GitExecutor(git_repo.working_dir)
        cached = NotGitRepoError(git_repo.working_dir)

        with patch.object(executor_module, "find_project_root", side_effect=cached):
            with pytest.raises(NotGitRepoError) as first:
                executor.root_path()
            with pytest.raises(NotGitRepoError) as second:
                executor.root_path()

        assert first.value is not second.value
        assert first.value.cause is cached
        assert second.value.cause is cached
        assert first.value.path == git_repo.working_dir

    def test_handles_do_not_share_roots(self, git_repo, temp_dir):
        """Each executor caches its own root."""
        other_path = temp_dir / "other_repo"
        git.Repo.init(other_path).close()

        first = GitExecutor(git_repo.working_dir)
        second = GitExecutor(str(other_path))

        assert os.path.realpath(first.root_path()) == os.path.realpath(git_repo.working_dir)
        assert os.path.realpath(second.root_path()) == os.path.realpath(str(other_path))


class TestRepositoryDetection:
    """Test module-level repository helpers."""

    def test_find_project_root_outside_repo(self, temp_dir, monkeypatch):
        """A plain directory is reported as not a git repository."""
        monkeypatch.setenv("GIT_CEILING_DIRECTORIES", os.path.realpath(temp_dir))
        plain = temp_dir / "plain"
        plain.mkdir()

        with pytest.raises(NotGitRepoError) as exc_info:
            find_project_root(None, str(plain))

        assert exc_info.value.path == str(plain)
        assert isinstance(exc_info.value.cause, GitOperationError)

    def test_is_git_repo(self, git_repo, temp_dir, monkeypatch):
        """is_git_repo distinguishes repositories from plain directories."""
        monkeypatch.setenv("GIT_CEILING_DIRECTORIES", os.path.realpath(temp_dir))
        plain = temp_dir / "plain"
        plain.mkdir()

        assert is_git_repo(None, git_repo.working_dir) is True
        assert is_git_repo(None, str(plain)) is False
