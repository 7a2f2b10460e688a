"""Worktree operations service for ticketflow."""

import os
from typing import Dict, Iterable, List, Optional

from ticketflow.constants import (
    FLAG_BRANCH,
    FLAG_FORCE,
    FLAG_PORCELAIN,
    REFS_HEADS_PREFIX,
    SUBCMD_WORKTREE,
    WORKTREE_ADD,
    WORKTREE_LIST,
    WORKTREE_PRUNE,
    WORKTREE_REMOVE,
)
from ticketflow.exceptions import (
    GitOperationError,
    GitTimeoutError,
    OperationCancelledError,
    TicketFlowError,
    WorktreeError,
)
from ticketflow.models.worktree import CleanupResult, WorktreeInfo
from ticketflow.services.branch_validation_service import validate_branch_name
from ticketflow.services.git.executor import GitExecutor
from ticketflow.services.git.operations import GitOperations
from ticketflow.utils.context import Context
from ticketflow.utils.logging import get_logger

logger = get_logger(__name__)


def parse_worktree_list(output: str) -> List[WorktreeInfo]:
    """Parse `git worktree list --porcelain` output.

    Format:
        worktree /path/to/worktree
        HEAD commit_sha
        branch refs/heads/branch-name
        (blank line between worktrees)

    The branch line is missing for detached worktrees. Attribute lines this
    parser does not know (locked, prunable, bare, ...) are ignored.
    """
    worktrees: List[WorktreeInfo] = []
    current: Dict[str, str] = {}

    def flush():
        if current.get("worktree"):
            worktrees.append(
                WorktreeInfo(
                    path=current["worktree"],
                    branch=current.get("branch", ""),
                    head=current.get("HEAD", ""),
                )
            )
        current.clear()

    for line in output.split("\n"):
        line = line.rstrip("\r")

        if not line:
            # Empty line marks end of worktree entry
            flush()
            continue

        key, sep, value = line.partition(" ")
        if not sep:
            continue

        if key == "worktree":
            current["worktree"] = value
        elif key == "HEAD":
            current["HEAD"] = value
        elif key == "branch":
            if value.startswith(REFS_HEADS_PREFIX):
                value = value[len(REFS_HEADS_PREFIX):]
            current["branch"] = value

    # Handle last entry if no trailing blank line
    flush()
    return worktrees


class WorktreeService:
    """Service for managing git worktrees."""

    def __init__(self, executor: GitExecutor, operations: Optional[GitOperations] = None):
        """Initialize the worktree service.

        Args:
            executor: Executor bound to the main repository
            operations: Basic operations used for branch existence checks
        """
        self.executor = executor
        self.operations = operations or GitOperations(executor)

    def list_worktrees(self, ctx: Optional[Context]) -> List[WorktreeInfo]:
        """List all worktrees, the main working tree first."""
        output = self.executor.execute(ctx, SUBCMD_WORKTREE, WORKTREE_LIST, FLAG_PORCELAIN)
        worktrees = parse_worktree_list(output)
        logger.debug(f"Found {len(worktrees)} worktrees")
        return worktrees

    def add_worktree(self, ctx: Optional[Context], path: str, branch: str) -> None:
        """Create a worktree at path with branch checked out.

        An existing branch is attached to the new worktree; otherwise the
        branch is created from the current HEAD together with the worktree.

        Args:
            ctx: Cancellation context
            path: Worktree directory, relative paths are taken from the repository path
            branch: Branch to check out

        Raises:
            ValidationError: branch is not a valid branch name
            OperationCancelledError: ctx was done; nothing was created
            WorktreeError: the parent directory could not be created or the
                branch existence check failed
            GitTimeoutError: the branch check or git worktree add timed out
            GitOperationError: git worktree add failed
        """
        validate_branch_name(branch)

        # Nothing touches the filesystem once the context is done
        reason = ctx.err() if ctx is not None else None
        if reason is not None:
            raise OperationCancelledError(SUBCMD_WORKTREE, reason) from reason

        if not os.path.isabs(path):
            path = os.path.join(self.executor.repo_path, path)

        try:
            os.makedirs(os.path.dirname(path), exist_ok=True)
        except OSError as e:
            raise WorktreeError("create", path, f"failed to create worktree directory: {e}") from e

        try:
            branch_exists = self.operations.branch_exists(ctx, branch)
        except (OperationCancelledError, GitTimeoutError):
            raise
        except TicketFlowError as e:
            raise WorktreeError("create", path, f"failed to check if branch exists: {e}") from e

        if branch_exists:
            self.executor.execute(ctx, SUBCMD_WORKTREE, WORKTREE_ADD, path, branch)
        else:
            # git worktree add -b refuses an existing branch
            self.executor.execute(ctx, SUBCMD_WORKTREE, WORKTREE_ADD, path, FLAG_BRANCH, branch)

        logger.info(f"Created worktree at {path} for branch {branch}")

    def remove_worktree(self, ctx: Optional[Context], path: str) -> None:
        """Remove a worktree, discarding uncommitted and untracked files."""
        self.executor.execute(ctx, SUBCMD_WORKTREE, WORKTREE_REMOVE, path, FLAG_FORCE)
        logger.info(f"Removed worktree at {path}")

    def prune_worktrees(self, ctx: Optional[Context]) -> None:
        """Drop worktree metadata whose directories no longer exist."""
        self.executor.execute(ctx, SUBCMD_WORKTREE, WORKTREE_PRUNE)
        logger.info("Pruned orphaned worktree metadata")

    def find_worktree_by_branch(self, ctx: Optional[Context], branch: str) -> Optional[WorktreeInfo]:
        """Return the worktree with branch checked out, or None."""
        for worktree in self.list_worktrees(ctx):
            if worktree.branch == branch:
                return worktree
        return None

    def has_worktree(self, ctx: Optional[Context], branch: str) -> bool:
        """Check if a worktree exists for the given branch."""
        return self.find_worktree_by_branch(ctx, branch) is not None

    def run_in_worktree(self, ctx: Optional[Context], worktree_path: str, *args: str) -> str:
        """Run a git command with worktree_path as working directory."""
        return self.executor.for_path(worktree_path).execute(ctx, *args)

    def find_orphaned_worktrees(
        self,
        ctx: Optional[Context],
        active_branches: Iterable[str],
        default_branch: str,
    ) -> List[WorktreeInfo]:
        """List worktrees whose branch has no active ticket.

        The main working tree, detached worktrees and the default branch are
        never orphans.
        """
        active = set(active_branches)
        # First entry is always the main working tree
        return [
            wt
            for wt in self.list_worktrees(ctx)[1:]
            if wt.branch and wt.branch != default_branch and wt.branch not in active
        ]

    def clean_orphaned_worktrees(
        self,
        ctx: Optional[Context],
        active_branches: Iterable[str],
        default_branch: str,
        dry_run: bool = False,
    ) -> CleanupResult:
        """Prune worktree metadata and remove worktrees without an active ticket.

        A failed removal is recorded in the result and does not stop the pass.
        Cancellation and listing failures are raised.
        """
        result = CleanupResult(dry_run=dry_run)

        if not dry_run:
            self.prune_worktrees(ctx)

        for worktree in self.find_orphaned_worktrees(ctx, active_branches, default_branch):
            if dry_run:
                logger.info(f"Would remove orphaned worktree {worktree}")
                result.removed.append(worktree)
                continue

            try:
                self.remove_worktree(ctx, worktree.path)
            except OperationCancelledError:
                raise
            except GitOperationError as e:
                logger.warning(f"Failed to remove worktree {worktree.path}: {e}")
                result.errors.append(f"{worktree.path}: {e}")
            else:
                result.removed.append(worktree)

        logger.info(f"Cleaned {result.count} orphaned worktree(s)")
        return result
