"""Branch query service for ticketflow."""

from typing import Optional

from ticketflow.constants import (
    DEFAULT_BRANCH_FALLBACKS,
    FLAG_COUNT,
    FLAG_IS_ANCESTOR,
    FLAG_SHORT,
    FLAG_VERIFY,
    ORIGIN_HEAD_REF,
    ORIGIN_PREFIX,
    SUBCMD_MERGE_BASE,
    SUBCMD_REV_LIST,
    SUBCMD_REV_PARSE,
    SUBCMD_SYMBOLIC_REF,
)
from ticketflow.exceptions import BranchNotFoundError, GitOperationError, GitTimeoutError
from ticketflow.models.branch import BranchDivergence
from ticketflow.services.branch_validation_service import BranchValidationService
from ticketflow.services.git.executor import GitExecutor
from ticketflow.services.git.operations import GitOperations
from ticketflow.utils.context import Context
from ticketflow.utils.logging import get_logger

logger = get_logger(__name__)


class BranchQueries:
    """Service for querying how branches relate to each other."""

    def __init__(self, executor: GitExecutor, operations: Optional[GitOperations] = None):
        """Initialize the branch queries service.

        Args:
            executor: Executor bound to the repository
            operations: Basic operations used for existence checks
        """
        self.executor = executor
        self.operations = operations or GitOperations(executor)

    def get_default_branch(self, ctx: Optional[Context]) -> str:
        """Determine the repository's default branch.

        Tries origin/HEAD first, then the local branches main and master, in
        that order.

        Raises:
            BranchNotFoundError: None of the candidates resolve
        """
        try:
            ref = self.executor.execute(ctx, SUBCMD_SYMBOLIC_REF, FLAG_SHORT, ORIGIN_HEAD_REF)
            if ref.startswith(ORIGIN_PREFIX):
                ref = ref[len(ORIGIN_PREFIX):]
            if ref:
                return ref
        except GitTimeoutError:
            raise
        except GitOperationError as e:
            logger.debug(f"origin/HEAD is not set: {e}")

        for candidate in DEFAULT_BRANCH_FALLBACKS:
            if self.operations.branch_exists(ctx, candidate):
                return candidate

        raise BranchNotFoundError(
            "default", "could not determine default branch (no origin/HEAD, main or master)"
        )

    def get_branch_commit(self, ctx: Optional[Context], branch: str) -> str:
        """Return the full commit SHA at the tip of a branch."""
        BranchValidationService.validate(branch)
        return self.executor.execute(ctx, SUBCMD_REV_PARSE, FLAG_VERIFY, branch)

    def branch_diverged_from(self, ctx: Optional[Context], branch: str, base: str) -> bool:
        """Check whether two branches point at different commits."""
        BranchValidationService.validate(branch, base)
        return self.get_branch_commit(ctx, branch) != self.get_branch_commit(ctx, base)

    def get_branch_divergence_info(self, ctx: Optional[Context], branch: str, base: str) -> BranchDivergence:
        """Count commits ahead of and behind base.

        Output that is not an integer counts as 0. Errors from git itself are
        raised.
        """
        BranchValidationService.validate(branch, base)

        ahead = self._count_commits(ctx, f"{base}..{branch}")
        behind = self._count_commits(ctx, f"{branch}..{base}")
        return BranchDivergence(ahead=ahead, behind=behind)

    def _count_commits(self, ctx: Optional[Context], revision_range: str) -> int:
        output = self.executor.execute(ctx, SUBCMD_REV_LIST, FLAG_COUNT, revision_range)
        try:
            return max(0, int(output.strip()))
        except ValueError:
            logger.debug(f"Unparsable rev-list count for {revision_range}: {output!r}")
            return 0

    def is_branch_merged(self, ctx: Optional[Context], branch: str, target: str) -> bool:
        """Check whether branch is fully contained in target.

        A missing branch or target gives False rather than an error; callers
        only use this to decide cleanup eligibility.
        """
        BranchValidationService.validate(branch, target)

        if not self.operations.branch_exists(ctx, branch):
            return False
        if not self.operations.branch_exists(ctx, target):
            return False
        if branch == target:
            return True

        try:
            self.executor.execute(ctx, SUBCMD_MERGE_BASE, FLAG_IS_ANCESTOR, branch, target)
        except GitTimeoutError:
            raise
        except GitOperationError as e:
            # Exit status 1 means "not an ancestor"; anything else is a real failure
            if e.status == 1:
                return False
            raise
        return True
