"""Repository handle for ticketflow's git layer"""
from typing import TYPE_CHECKING, Iterable, List, Optional, Union

from ticketflow.constants import DEFAULT_GIT_TIMEOUT
from ticketflow.models.branch import BranchDivergence
from ticketflow.models.worktree import CleanupResult, WorktreeInfo
from ticketflow.services.git.branch_queries import BranchQueries
from ticketflow.services.git.executor import GitExecutor
from ticketflow.services.git.operations import GitOperations
from ticketflow.services.git.worktrees import WorktreeService
from ticketflow.utils.context import Context
from ticketflow.utils.logging import get_logger

if TYPE_CHECKING:
    from ticketflow.config import Config

logger = get_logger(__name__)


class GitService:
    """One repository handle: a path, a timeout and a lazily resolved root.

    All operations share a single executor, so the repository root is looked
    up at most once per GitService no matter how many threads use it.
    """

    def __init__(self, repo_path: str, timeout: float = DEFAULT_GIT_TIMEOUT):
        """Initialize the service.

        Args:
            repo_path: Path inside the git repository
            timeout: Per-command timeout in seconds when the caller's context
                has no deadline
        """
        self.executor = GitExecutor(repo_path, timeout)
        self.operations = GitOperations(self.executor)
        self.worktrees = WorktreeService(self.executor, self.operations)
        self.branches = BranchQueries(self.executor, self.operations)
        logger.debug(f"Git service initialized for {repo_path} (timeout {timeout}s)")

    @classmethod
    def from_config(cls, repo_path: str, config: Union["Config", dict]) -> "GitService":
        """Create a service using the timeout from a Config or config dict."""
        return cls(repo_path, timeout=config.get("timeout", DEFAULT_GIT_TIMEOUT))

    @property
    def repo_path(self) -> str:
        return self.executor.repo_path

    @property
    def timeout(self) -> float:
        return self.executor.timeout

    # Command execution

    def execute(self, ctx: Optional[Context], *args: str) -> str:
        return self.executor.execute(ctx, *args)

    def root_path(self) -> str:
        return self.executor.root_path()

    # Basic operations

    def current_branch(self, ctx: Optional[Context]) -> str:
        return self.operations.current_branch(ctx)

    def create_branch(self, ctx: Optional[Context], name: str) -> None:
        self.operations.create_branch(ctx, name)

    def has_uncommitted_changes(self, ctx: Optional[Context]) -> bool:
        return self.operations.has_uncommitted_changes(ctx)

    def add(self, ctx: Optional[Context], *files: str) -> None:
        self.operations.add(ctx, *files)

    def commit(self, ctx: Optional[Context], message: str) -> None:
        self.operations.commit(ctx, message)

    def checkout(self, ctx: Optional[Context], branch: str) -> None:
        self.operations.checkout(ctx, branch)

    def branch_exists(self, ctx: Optional[Context], branch: str) -> bool:
        return self.operations.branch_exists(ctx, branch)

    def merge_squash(self, ctx: Optional[Context], branch: str) -> None:
        self.operations.merge_squash(ctx, branch)

    def push(self, ctx: Optional[Context], remote: str, branch: str, set_upstream: bool = False) -> None:
        self.operations.push(ctx, remote, branch, set_upstream)

    # Worktrees

    def list_worktrees(self, ctx: Optional[Context]) -> List[WorktreeInfo]:
        return self.worktrees.list_worktrees(ctx)

    def add_worktree(self, ctx: Optional[Context], path: str, branch: str) -> None:
        self.worktrees.add_worktree(ctx, path, branch)

    def remove_worktree(self, ctx: Optional[Context], path: str) -> None:
        self.worktrees.remove_worktree(ctx, path)

    def prune_worktrees(self, ctx: Optional[Context]) -> None:
        self.worktrees.prune_worktrees(ctx)

    def find_worktree_by_branch(self, ctx: Optional[Context], branch: str) -> Optional[WorktreeInfo]:
        return self.worktrees.find_worktree_by_branch(ctx, branch)

    def has_worktree(self, ctx: Optional[Context], branch: str) -> bool:
        return self.worktrees.has_worktree(ctx, branch)

    def run_in_worktree(self, ctx: Optional[Context], worktree_path: str, *args: str) -> str:
        return self.worktrees.run_in_worktree(ctx, worktree_path, *args)

    def clean_orphaned_worktrees(
        self,
        ctx: Optional[Context],
        active_branches: Iterable[str],
        default_branch: str,
        dry_run: bool = False,
    ) -> CleanupResult:
        return self.worktrees.clean_orphaned_worktrees(ctx, active_branches, default_branch, dry_run)

    # Branch relationships

    def get_default_branch(self, ctx: Optional[Context]) -> str:
        return self.branches.get_default_branch(ctx)

    def get_branch_commit(self, ctx: Optional[Context], branch: str) -> str:
        return self.branches.get_branch_commit(ctx, branch)

    def branch_diverged_from(self, ctx: Optional[Context], branch: str, base: str) -> bool:
        return self.branches.branch_diverged_from(ctx, branch, base)

    def get_branch_divergence_info(self, ctx: Optional[Context], branch: str, base: str) -> BranchDivergence:
        return self.branches.get_branch_divergence_info(ctx, branch, base)

    def is_branch_merged(self, ctx: Optional[Context], branch: str, target: str) -> bool:
        return self.branches.is_branch_merged(ctx, branch, target)
