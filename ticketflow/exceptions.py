"""Custom exceptions for ticketflow"""

from enum import Enum
from typing import Iterator, Optional, Sequence, Type, TypeVar

from ticketflow.utils.context import ContextError

E = TypeVar("E", bound=BaseException)


class ErrorKind(Enum):
    """Category of a ticketflow error."""
    TICKET = "ticket"
    GIT = "git"
    WORKTREE = "worktree"
    VALIDATION = "validation"
    CONFIG = "config"
    CANCELLED = "cancelled"


class TicketFlowError(Exception):
    """Base exception for all ticketflow errors."""

    kind: ErrorKind = ErrorKind.GIT

    @property
    def cause(self) -> Optional[BaseException]:
        """The wrapped underlying error, if any."""
        return self.__cause__


class OperationCancelledError(TicketFlowError):
    """Raised when a context was cancelled or expired around a git call."""

    kind = ErrorKind.CANCELLED

    def __init__(self, operation: str, reason: Optional[BaseException] = None):
        self.operation = operation
        self.reason = reason

        error_msg = "operation cancelled"
        if operation:
            error_msg = f"git {operation}: operation cancelled"
        if reason is not None:
            error_msg += f": {reason}"

        super().__init__(error_msg)


class GitOperationError(TicketFlowError):
    """Exception raised for errors in Git operations."""

    kind = ErrorKind.GIT

    def __init__(
        self,
        operation: str,
        branch: Optional[str] = None,
        message: Optional[str] = None,
        stderr: str = "",
        status: Optional[int] = None,
    ):
        self.operation = operation
        self.branch = branch
        self.message = message
        self.stderr = stderr
        self.status = status

        error_msg = f"Git operation '{operation}' failed"
        if branch:
            error_msg += f" for branch '{branch}'"
        if message:
            error_msg += f": {message}"
        if stderr:
            error_msg += f"\n{stderr}"

        super().__init__(error_msg)


class GitTimeoutError(GitOperationError):
    """Exception raised when a git command exceeded its deadline."""

    def __init__(self, operation: str, branch: Optional[str] = None, timeout: Optional[float] = None):
        self.timeout = timeout
        if timeout:
            message = f"operation timed out after {timeout:g}s"
        else:
            message = "operation timed out"
        super().__init__(operation, branch, message)


class BranchNotFoundError(GitOperationError):
    """Exception raised when a branch is not found."""

    def __init__(self, branch: str, message: str = "Branch not found"):
        super().__init__("find_branch", branch, message)


class NotGitRepoError(GitOperationError):
    """Exception raised when a path is not inside a git repository."""

    def __init__(self, path: str):
        self.path = path
        super().__init__("rev-parse", message=f"not a git repository: {path}")


class WorktreeError(TicketFlowError):
    """Exception raised for filesystem-level worktree failures."""

    kind = ErrorKind.WORKTREE

    def __init__(self, operation: str, path: Optional[str] = None, message: Optional[str] = None):
        self.operation = operation
        self.path = path
        self.message = message

        error_msg = f"worktree {operation}"
        if path:
            error_msg += f" at {path}"
        if message:
            error_msg += f": {message}"

        super().__init__(error_msg)


class ValidationError(TicketFlowError):
    """Exception raised when caller input is rejected before running git."""

    kind = ErrorKind.VALIDATION

    def __init__(self, field: str, value: str, message: str):
        self.field = field
        self.value = value
        self.message = message
        super().__init__(f"invalid {field} {value!r}: {message}")


class TicketError(TicketFlowError):
    """Exception raised for ticket operations."""

    kind = ErrorKind.TICKET

    def __init__(
        self,
        operation: str,
        ticket_id: Optional[str] = None,
        message: Optional[str] = None,
        context: Sequence[str] = (),
    ):
        self.operation = operation
        self.ticket_id = ticket_id
        self.message = message
        self.context = tuple(context)

        # Context chain reads like "worktree > create > start ticket 123"
        parts = list(self.context) + [operation]
        error_msg = " > ".join(parts) + " ticket"
        if ticket_id:
            error_msg += f" {ticket_id}"
        if message:
            error_msg += f": {message}"

        super().__init__(error_msg)


class ConfigError(TicketFlowError):
    """Exception raised for invalid configuration values."""

    kind = ErrorKind.CONFIG

    def __init__(self, field: Optional[str], value: Optional[str] = None, message: str = ""):
        self.field = field
        self.value = value
        self.message = message

        if field and value is not None:
            error_msg = f"config field {field} with value {value!r}"
        elif field:
            error_msg = f"config field {field}"
        else:
            error_msg = "config"
        if message:
            error_msg += f": {message}"

        super().__init__(error_msg)


def error_chain(error: BaseException) -> Iterator[BaseException]:
    """Iterate over an error and every error it was raised from."""
    seen = set()
    current: Optional[BaseException] = error
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        yield current
        current = current.__cause__


def find_cause(error: BaseException, error_type: Type[E]) -> Optional[E]:
    """Return the first error in the chain that is an instance of error_type."""
    for item in error_chain(error):
        if isinstance(item, error_type):
            return item
    return None


def is_cancellation(error: BaseException) -> bool:
    """True if the error was caused by a cancelled or expired context."""
    return find_cause(error, (OperationCancelledError, ContextError)) is not None  # type: ignore[arg-type]


def is_not_found(error: BaseException) -> bool:
    """True if the error chain reports a missing branch or repository."""
    return find_cause(error, (BranchNotFoundError, NotGitRepoError)) is not None  # type: ignore[arg-type]
