"""Command-line argument parsing for ticketflow-git."""

import argparse
from ticketflow.__version__ import __version__
from ticketflow.constants import DEFAULT_GIT_TIMEOUT


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="ticketflow-git",
        description="Inspect and clean up ticketflow worktrees and branches",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Show verbose output")
    parser.add_argument("--debug", action="store_true", help="Show debug information for troubleshooting")
    parser.add_argument("--version", action="version", version=f"ticketflow-git {__version__}")
    parser.add_argument("-C", "--repo", default=".", metavar="PATH", help="Repository path (default: current directory)")
    parser.add_argument(
        "--timeout",
        type=float,
        default=DEFAULT_GIT_TIMEOUT,
        help=f"Seconds allowed per git command (default: {DEFAULT_GIT_TIMEOUT:g})",
    )
    parser.add_argument(
        "--worktree-dir",
        metavar="DIR",
        help="Worktree base directory, relative to the repository root (default: ../ticketflow.worktrees)",
    )
    parser.add_argument(
        "--no-worktree", action="store_true", help="Start work on a plain branch instead of a worktree"
    )

    commands = parser.add_subparsers(dest="command", required=True)

    worktree = commands.add_parser("worktree", help="Worktree operations")
    worktree_commands = worktree.add_subparsers(dest="worktree_command", required=True)

    worktree_commands.add_parser("list", help="List worktrees")

    clean = worktree_commands.add_parser("clean", help="Remove worktrees without an active ticket")
    clean.add_argument(
        "--active", nargs="*", default=[], metavar="BRANCH", help="Branches of tickets still in progress"
    )
    clean.add_argument("--default-branch", help="Default branch (default: auto-detect)")
    clean.add_argument(
        "--dry-run",
        action="store_true",
        help="Preview mode - show what would be removed without removing",
    )

    branch = commands.add_parser("branch", help="Branch operations")
    branch_commands = branch.add_subparsers(dest="branch_command", required=True)

    start = branch_commands.add_parser("start", help="Create a branch for a ticket, in its own worktree if enabled")
    start.add_argument("branch", help="Branch to create or attach")

    status = branch_commands.add_parser("status", help="Show divergence and merge status")
    status.add_argument("branch", help="Branch to inspect")
    status.add_argument("--base", help="Branch to compare against (default: auto-detect)")

    return parser


def parse_args(argv=None):
    """Parse command-line arguments."""
    return build_parser().parse_args(argv)
