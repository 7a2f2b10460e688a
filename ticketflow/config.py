"""Configuration handling for ticketflow's git layer"""

import os
from dataclasses import dataclass

from ticketflow.constants import DEFAULT_GIT_TIMEOUT
from ticketflow.exceptions import ConfigError
from ticketflow.services.branch_validation_service import is_valid_branch_name


@dataclass
class Config:
    """Configuration for the git layer with validation."""

    # Git
    timeout: float = DEFAULT_GIT_TIMEOUT  # Seconds per git command
    default_branch: str = "main"

    # Worktrees
    worktree_enabled: bool = True
    worktree_base_dir: str = "../ticketflow.worktrees"  # Relative to the repository root

    # Execution modes
    verbose: bool = False
    debug: bool = False

    def __post_init__(self):
        """Validate configuration after initialization."""
        self._validate_timeout()
        self._validate_default_branch()
        self._validate_worktree_base_dir()

    def _validate_timeout(self):
        """Validate timeout is a non-negative number."""
        if isinstance(self.timeout, bool) or not isinstance(self.timeout, (int, float)):
            raise ConfigError("timeout", repr(self.timeout), "must be a number of seconds")
        if self.timeout < 0:
            raise ConfigError("timeout", str(self.timeout), "must not be negative")

    def _validate_default_branch(self):
        """Validate default_branch is a usable branch name."""
        self.default_branch = (self.default_branch or "").strip()
        if not is_valid_branch_name(self.default_branch):
            raise ConfigError("default_branch", self.default_branch, "not a valid git branch name")

    def _validate_worktree_base_dir(self):
        """Validate worktree_base_dir is not empty."""
        if not self.worktree_base_dir or not self.worktree_base_dir.strip():
            raise ConfigError("worktree_base_dir", self.worktree_base_dir, "cannot be empty")

    def worktree_path_for(self, repo_root: str, branch: str) -> str:
        """Compute the worktree directory for a branch."""
        base = self.worktree_base_dir
        if not os.path.isabs(base):
            base = os.path.join(repo_root, base)
        return os.path.normpath(os.path.join(base, branch))

    def to_dict(self) -> dict:
        """Convert config to dictionary."""
        return {
            "timeout": self.timeout,
            "default_branch": self.default_branch,
            "worktree_enabled": self.worktree_enabled,
            "worktree_base_dir": self.worktree_base_dir,
            "verbose": self.verbose,
            "debug": self.debug,
        }

    def get(self, key: str, default=None):
        """Get config value by key, mirroring dict.get()."""
        return getattr(self, key, default)

    @classmethod
    def from_dict(cls, config_dict: dict) -> "Config":
        """Create Config from dictionary, ignoring unknown keys."""
        known_fields = {
            "timeout",
            "default_branch",
            "worktree_enabled",
            "worktree_base_dir",
            "verbose",
            "debug",
        }

        filtered = {k: v for k, v in config_dict.items() if k in known_fields}
        return cls(**filtered)
