"""Worktree data models."""

from dataclasses import dataclass, field
from typing import List


@dataclass
class WorktreeInfo:
    """Information about a git worktree."""

    path: str
    branch: str  # Short name without refs/heads/; empty when detached
    head: str

    @property
    def is_detached(self) -> bool:
        """True when the worktree has no branch checked out."""
        return not self.branch

    def __str__(self) -> str:
        """String representation of worktree."""
        branch = self.branch or "(detached)"
        return f"{branch} @ {self.path} [{self.head[:7]}]"


@dataclass
class CleanupResult:
    """Outcome of an orphaned-worktree cleanup pass."""

    removed: List[WorktreeInfo] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    dry_run: bool = False

    @property
    def count(self) -> int:
        return len(self.removed)

    def has_errors(self) -> bool:
        return bool(self.errors)
