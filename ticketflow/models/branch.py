"""Branch relationship models"""
from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class BranchDivergence:
    """Commit counts of a branch relative to a base branch."""
    ahead: int = 0   # Reachable from the branch but not from the base
    behind: int = 0  # Reachable from the base but not from the branch

    @property
    def diverged(self) -> bool:
        return self.ahead > 0 and self.behind > 0

    def as_tuple(self) -> Tuple[int, int]:
        return (self.ahead, self.behind)

    def __str__(self) -> str:
        if self.ahead and self.behind:
            return f"ahead {self.ahead}, behind {self.behind}"
        elif self.ahead:
            return f"ahead {self.ahead}"
        elif self.behind:
            return f"behind {self.behind}"
        return "up to date"
