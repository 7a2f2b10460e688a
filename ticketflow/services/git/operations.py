"""Basic git operations service"""

from typing import Optional

from ticketflow.constants import (
    FLAG_ABBREV_REF,
    FLAG_BRANCH,
    FLAG_MESSAGE,
    FLAG_PORCELAIN,
    FLAG_QUIET,
    FLAG_SQUASH,
    FLAG_UPSTREAM,
    FLAG_VERIFY,
    REF_HEAD,
    REFS_HEADS_PREFIX,
    SUBCMD_ADD,
    SUBCMD_CHECKOUT,
    SUBCMD_COMMIT,
    SUBCMD_MERGE,
    SUBCMD_PUSH,
    SUBCMD_REV_PARSE,
    SUBCMD_SHOW_REF,
    SUBCMD_STATUS,
)
from ticketflow.exceptions import GitOperationError, GitTimeoutError
from ticketflow.services.branch_validation_service import validate_branch_name
from ticketflow.services.git.executor import GitExecutor
from ticketflow.utils.context import Context
from ticketflow.utils.logging import get_logger

logger = get_logger(__name__)


class GitOperations:
    """Service for everyday branch and commit operations."""

    def __init__(self, executor: GitExecutor):
        """Initialize the service.

        Args:
            executor: Executor bound to the repository working directory
        """
        self.executor = executor

    def current_branch(self, ctx: Optional[Context]) -> str:
        """Return the checked-out branch name ("HEAD" when detached)."""
        return self.executor.execute(ctx, SUBCMD_REV_PARSE, FLAG_ABBREV_REF, REF_HEAD)

    def create_branch(self, ctx: Optional[Context], name: str) -> None:
        """Create a branch and check it out."""
        validate_branch_name(name)
        self.executor.execute(ctx, SUBCMD_CHECKOUT, FLAG_BRANCH, name)
        logger.info(f"Created branch {name}")

    def has_uncommitted_changes(self, ctx: Optional[Context]) -> bool:
        """Check for staged, modified or untracked files."""
        output = self.executor.execute(ctx, SUBCMD_STATUS, FLAG_PORCELAIN)
        return output != ""

    def add(self, ctx: Optional[Context], *files: str) -> None:
        """Stage files."""
        self.executor.execute(ctx, SUBCMD_ADD, *files)

    def commit(self, ctx: Optional[Context], message: str) -> None:
        """Create a commit from the index."""
        self.executor.execute(ctx, SUBCMD_COMMIT, FLAG_MESSAGE, message)

    def checkout(self, ctx: Optional[Context], branch: str) -> None:
        """Switch to an existing branch."""
        validate_branch_name(branch)
        self.executor.execute(ctx, SUBCMD_CHECKOUT, branch)

    def branch_exists(self, ctx: Optional[Context], branch: str) -> bool:
        """Check whether a local branch exists.

        A non-zero exit from show-ref means the branch is absent. Timeouts and
        cancellation are still raised.
        """
        validate_branch_name(branch)
        try:
            self.executor.execute(
                ctx, SUBCMD_SHOW_REF, FLAG_VERIFY, FLAG_QUIET, f"{REFS_HEADS_PREFIX}{branch}"
            )
        except GitTimeoutError:
            raise
        except GitOperationError:
            return False
        return True

    def merge_squash(self, ctx: Optional[Context], branch: str) -> None:
        """Squash-merge a branch into the current one."""
        validate_branch_name(branch)
        self.executor.execute(ctx, SUBCMD_MERGE, FLAG_SQUASH, branch)

    def push(self, ctx: Optional[Context], remote: str, branch: str, set_upstream: bool = False) -> None:
        """Push a branch to a remote."""
        validate_branch_name(remote, "remote name")
        validate_branch_name(branch)
        args = [SUBCMD_PUSH]
        if set_upstream:
            args.append(FLAG_UPSTREAM)
        args.extend([remote, branch])
        self.executor.execute(ctx, *args)
        logger.info(f"Pushed {branch} to {remote}")
