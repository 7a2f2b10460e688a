"""Git command executor for ticketflow.

Every git invocation made by ticketflow goes through GitExecutor.execute(),
which binds the process to a working directory, enforces cancellation and
timeouts, and turns failures into typed errors.
"""

import errno
import os
import subprocess
from threading import Lock
from typing import List, Optional, Sequence, Tuple

import git

from ticketflow.constants import (
    BRANCH_SUBCOMMANDS,
    DEFAULT_GIT_TIMEOUT,
    FLAG_GIT_DIR,
    FLAG_SHOW_TOPLEVEL,
    GIT_CMD,
    PROCESS_POLL_INTERVAL,
    SUBCMD_REV_PARSE,
)
from ticketflow.exceptions import (
    GitOperationError,
    GitTimeoutError,
    NotGitRepoError,
    OperationCancelledError,
    TicketFlowError,
)
from ticketflow.utils.context import Context, ContextError, DeadlineExceeded
from ticketflow.utils.logging import get_logger

logger = get_logger(__name__)


def _describe(args: Sequence[str]) -> Tuple[str, Optional[str]]:
    """Return (subcommand, branch operand) for error reporting."""
    subcommand = args[0] if args else ""
    branch = None
    if len(args) > 1 and subcommand in BRANCH_SUBCOMMANDS:
        branch = args[-1]
    return subcommand, branch


def _kill(proc: subprocess.Popen) -> None:
    """Kill a process if it is still running."""
    # Popen.kill() is a no-op once the process has been reaped
    if proc.poll() is None:
        proc.kill()


class GitExecutor:
    """Runs the git binary inside one working directory."""

    def __init__(self, repo_path: str, timeout: float = DEFAULT_GIT_TIMEOUT):
        """Initialize the executor.

        Args:
            repo_path: Working directory for every git process
            timeout: Seconds allowed per command when the caller's context has
                no deadline; zero or negative disables the limit
        """
        self.repo_path = str(repo_path)
        self.timeout = timeout
        self._root_lock = Lock()  # Held while the root is being resolved
        self._root_result: Optional[Tuple[Optional[str], Optional[TicketFlowError]]] = None

    def __repr__(self) -> str:
        return f"GitExecutor({self.repo_path!r}, timeout={self.timeout!r})"

    def for_path(self, path: str) -> "GitExecutor":
        """Create an executor for another directory with the same timeout."""
        return GitExecutor(path, self.timeout)

    def execute(self, ctx: Optional[Context], *args: str) -> str:
        """Run `git <args>` and return its stdout without trailing whitespace.

        Args:
            ctx: Cancellation context (None means no cancellation)
            args: Arguments following the git executable

        Returns:
            Decoded stdout

        Raises:
            OperationCancelledError: ctx was done before or during the call
            GitTimeoutError: the effective deadline passed while git was running
            GitOperationError: git could not be started or exited non-zero
        """
        if ctx is None:
            ctx = Context.background()

        subcommand, branch = _describe(args)

        reason = ctx.err()
        if reason is not None:
            raise OperationCancelledError(subcommand, reason) from reason

        owned: Optional[Context] = None
        if ctx.deadline is None and self.timeout and self.timeout > 0:
            ctx = owned = ctx.with_timeout(self.timeout)

        try:
            return self._run(ctx, list(args), subcommand, branch, owned is not None)
        finally:
            if owned is not None:
                owned.cancel()

    def _run(
        self,
        ctx: Context,
        args: List[str],
        subcommand: str,
        branch: Optional[str],
        own_timeout: bool,
    ) -> str:
        command = [GIT_CMD] + args
        logger.debug(f"Running {' '.join(command)} in {self.repo_path}")

        # GitPython falls back to the process cwd for a missing directory
        if not os.path.isdir(self.repo_path):
            cause = FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), self.repo_path)
            raise GitOperationError(
                subcommand, branch, f"working directory does not exist: {self.repo_path}"
            ) from cause

        try:
            handle = git.Git(self.repo_path).execute(command, as_process=True)
        except (git.exc.GitError, OSError) as e:
            raise GitOperationError(subcommand, branch, f"failed to start git: {e}") from e

        proc = handle.proc
        try:
            stdout, stderr, reason = self._wait(ctx, proc)
        except BaseException:
            _kill(proc)
            proc.wait()
            raise

        stdout_text = (stdout or b"").decode("utf-8", errors="replace")
        stderr_text = (stderr or b"").decode("utf-8", errors="replace").strip()

        if reason is None and proc.returncode == 0:
            return stdout_text.rstrip()

        if reason is None:
            reason = ctx.err()

        if isinstance(reason, DeadlineExceeded):
            logger.debug(f"git {subcommand} timed out in {self.repo_path}")
            error = GitTimeoutError(subcommand, branch, self.timeout if own_timeout else None)
            error.stderr = stderr_text
            raise error from reason

        if reason is not None:
            logger.debug(f"git {subcommand} cancelled in {self.repo_path}")
            raise OperationCancelledError(subcommand, reason) from reason

        logger.debug(f"git {subcommand} exited with {proc.returncode}: {stderr_text}")
        cause = git.exc.GitCommandError(command, proc.returncode, stderr_text)
        raise GitOperationError(
            subcommand,
            branch,
            "command failed",
            stderr=stderr_text,
            status=proc.returncode,
        ) from cause

    @staticmethod
    def _wait(
        ctx: Context, proc: subprocess.Popen
    ) -> Tuple[bytes, bytes, Optional[ContextError]]:
        """Wait for proc, killing it if ctx finishes first.

        Returns:
            (stdout, stderr, reason) where reason is set when the process was
            killed because of the context
        """
        while True:
            interval = PROCESS_POLL_INTERVAL
            remaining = ctx.remaining()
            if remaining is not None:
                interval = min(interval, remaining)

            try:
                stdout, stderr = proc.communicate(timeout=interval)
                return stdout, stderr, None
            except subprocess.TimeoutExpired:
                reason = ctx.err()
                if reason is None:
                    continue
                _kill(proc)
                stdout, stderr = proc.communicate()
                return stdout, stderr, reason

    def root_path(self) -> str:
        """Return the repository top-level directory, resolving it once.

        Concurrent first callers block until the single resolution finishes;
        its outcome, including failure, is returned to every later caller.
        Each caller gets its own exception, chained from the cached one.

        Raises:
            NotGitRepoError: The path is not inside a git repository
            GitTimeoutError: The one resolution attempt timed out
        """
        with self._root_lock:
            if self._root_result is None:
                try:
                    root = find_project_root(Context.background(), self.repo_path, self.timeout)
                    self._root_result = (root, None)
                except TicketFlowError as e:
                    # Timeouts are cached too; resolution is never retried
                    self._root_result = (None, e)

        root, error = self._root_result
        if error is not None:
            raise _root_error(error, self.repo_path) from error
        return root


def _root_error(cached: TicketFlowError, path: str) -> TicketFlowError:
    """Build a new error for one caller from a cached root-resolution failure."""
    if isinstance(cached, GitTimeoutError):
        return GitTimeoutError(cached.operation, cached.branch, cached.timeout)
    if isinstance(cached, NotGitRepoError):
        return NotGitRepoError(cached.path)
    return NotGitRepoError(path)


def find_project_root(ctx: Optional[Context], start_path: str, timeout: float = DEFAULT_GIT_TIMEOUT) -> str:
    """Find the top-level directory of the repository containing start_path.

    Raises:
        NotGitRepoError: start_path is not inside a git repository
        OperationCancelledError: ctx was already done
    """
    try:
        return GitExecutor(start_path, timeout).execute(ctx, SUBCMD_REV_PARSE, FLAG_SHOW_TOPLEVEL)
    except GitTimeoutError:
        raise
    except GitOperationError as e:
        raise NotGitRepoError(start_path) from e


def is_git_repo(ctx: Optional[Context], path: str) -> bool:
    """Check whether path is inside a git repository."""
    try:
        GitExecutor(path).execute(ctx, SUBCMD_REV_PARSE, FLAG_GIT_DIR)
        return True
    except GitTimeoutError:
        raise
    except GitOperationError:
        return False
