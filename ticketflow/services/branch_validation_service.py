"""Branch name validation for ticketflow.

Branch names end up as positional arguments to git subcommands that also
accept flags, so anything outside git's ref-format rules is rejected before a
command line is built.
"""

import re

from ticketflow.exceptions import ValidationError

# Control characters, ASCII whitespace and : ? * [ \
_FORBIDDEN_CHARS = re.compile(r"[\x00-\x1f\x7f \t\n\r\v\f:?*\[\\]")
_FORBIDDEN_SEQUENCES = ("..", "@{", "//")
_FORBIDDEN_EDGES = ("/", ".")


def is_valid_branch_name(name: str) -> bool:
    """Check a branch name against git-check-ref-format rules."""
    if not name:
        return False

    if any(seq in name for seq in _FORBIDDEN_SEQUENCES):
        return False

    if name.startswith(_FORBIDDEN_EDGES) or name.endswith(_FORBIDDEN_EDGES):
        return False

    # Also covers leading and trailing whitespace
    return _FORBIDDEN_CHARS.search(name) is None


def validate_branch_name(name: str, field: str = "branch name") -> str:
    """Return the name unchanged or raise ValidationError."""
    if not is_valid_branch_name(name):
        raise ValidationError(field, name, "not a valid git branch name")
    return name


class BranchValidationService:
    """Service for validating branch names before they reach git."""

    @staticmethod
    def is_valid_branch_name(name: str) -> bool:
        """
        Check if a branch name is safe to pass to git.

        Args:
            name: Candidate branch name

        Returns:
            True if the name follows git's ref-format rules
        """
        return is_valid_branch_name(name)

    @staticmethod
    def validate(*names: str) -> None:
        """
        Validate one or more branch names.

        Args:
            names: Branch names to check

        Raises:
            ValidationError: For the first rejected name
        """
        for name in names:
            validate_branch_name(name)
