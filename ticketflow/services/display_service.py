"""Display service for worktree and branch information"""
from rich.console import Console
from rich.table import Table
from typing import List, Optional

from ticketflow.models.branch import BranchDivergence
from ticketflow.models.worktree import CleanupResult, WorktreeInfo

console = Console()


class DisplayService:
    def __init__(self, verbose: bool = False):
        self.verbose = verbose

    def display_worktree_table(self, worktrees: List[WorktreeInfo]) -> None:
        """Display a table of worktrees, main working tree first."""
        table = Table()
        table.add_column("Branch")
        table.add_column("Path")
        table.add_column("HEAD")

        for index, worktree in enumerate(worktrees):
            branch = worktree.branch or "(detached)"
            if index == 0:
                branch += " *"
            head = worktree.head if self.verbose else worktree.head[:7]
            table.add_row(branch, worktree.path, head, style="cyan" if index == 0 else None)

        console.print(table)
        console.print("* = Main working tree")

    def display_cleanup_result(self, result: CleanupResult) -> None:
        """Summarize an orphaned-worktree cleanup."""
        verb = "Would remove" if result.dry_run else "Removed"
        for worktree in result.removed:
            console.print(f"  {verb} orphaned worktree: {worktree.path} (branch: {worktree.branch})")
        for error in result.errors:
            console.print(f"  [yellow]Warning: failed to remove worktree {error}[/yellow]")

        noun = "worktree" if result.count == 1 else "worktrees"
        if result.dry_run:
            console.print(f"[dim]Dry run: {result.count} orphaned {noun} would be removed[/dim]")
        else:
            console.print(f"Cleaned {result.count} orphaned {noun}")

    def display_branch_status(
        self,
        branch: str,
        base: str,
        divergence: BranchDivergence,
        merged: bool,
        worktree: Optional[WorktreeInfo],
    ) -> None:
        """Display how a branch relates to its base."""
        table = Table(show_header=False)
        table.add_column("Field")
        table.add_column("Value")
        table.add_row("Branch", branch)
        table.add_row("Base", base)
        table.add_row("Ahead", str(divergence.ahead))
        table.add_row("Behind", str(divergence.behind))
        table.add_row("Merged", "[green]yes[/green]" if merged else "no")
        table.add_row("Worktree", worktree.path if worktree else "-")
        console.print(table)
