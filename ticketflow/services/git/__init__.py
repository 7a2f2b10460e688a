"""Git-related services for ticketflow."""

from .executor import GitExecutor, find_project_root, is_git_repo
from .operations import GitOperations
from .worktrees import WorktreeService, parse_worktree_list
from .branch_queries import BranchQueries

__all__ = [
    "GitExecutor",
    "GitOperations",
    "WorktreeService",
    "BranchQueries",
    "find_project_root",
    "is_git_repo",
    "parse_worktree_list",
]
