"""
ticketflow - git worktree and branch automation for file-based tickets
"""

from .__version__ import __version__
from .services.git_service import GitService
from .utils.context import Context

__all__ = ["GitService", "Context", "__version__"]
