"""Command-line entry point for ticketflow-git"""

import sys
from typing import List, Optional

from rich.console import Console

from ticketflow.cli.args import parse_args
from ticketflow.config import Config
from ticketflow.exceptions import BranchNotFoundError, TicketFlowError
from ticketflow.services.display_service import DisplayService
from ticketflow.services.git_service import GitService
from ticketflow.utils.context import Context
from ticketflow.utils.logging import get_logger, setup_logging

console = Console()
logger = get_logger(__name__)


def resolve_default_branch(service: GitService, config: Config, ctx: Context) -> str:
    """Detect the default branch, falling back to the configured one."""
    try:
        return service.get_default_branch(ctx)
    except BranchNotFoundError as e:
        logger.info(f"{e}; using configured default branch {config.default_branch}")
        return config.default_branch


def run_worktree_command(args, service: GitService, config: Config, display: DisplayService, ctx: Context) -> int:
    if args.worktree_command == "list":
        display.display_worktree_table(service.list_worktrees(ctx))
        return 0

    default_branch = args.default_branch or resolve_default_branch(service, config, ctx)
    result = service.clean_orphaned_worktrees(ctx, args.active, default_branch, dry_run=args.dry_run)
    display.display_cleanup_result(result)
    return 1 if result.has_errors() else 0


def run_branch_command(args, service: GitService, config: Config, display: DisplayService, ctx: Context) -> int:
    if args.branch_command == "start":
        if not config.worktree_enabled:
            service.create_branch(ctx, args.branch)
            console.print(f"[green]Switched to new branch {args.branch}[/green]")
            return 0

        path = config.worktree_path_for(service.root_path(), args.branch)
        service.add_worktree(ctx, path, args.branch)
        console.print(f"[green]Created worktree for {args.branch} at {path}[/green]")
        return 0

    base = args.base or resolve_default_branch(service, config, ctx)
    divergence = service.get_branch_divergence_info(ctx, args.branch, base)
    merged = service.is_branch_merged(ctx, args.branch, base)
    worktree = service.find_worktree_by_branch(ctx, args.branch)
    display.display_branch_status(args.branch, base, divergence, merged, worktree)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the application."""
    parsed_args = parse_args(argv)

    log_file = setup_logging(verbose=parsed_args.verbose, debug=parsed_args.debug)
    if log_file is not None:
        console.print(f"[dim]Debug log: {log_file}[/dim]")

    ctx = Context.background().with_cancel()
    try:
        settings = {
            "timeout": parsed_args.timeout,
            "worktree_enabled": not parsed_args.no_worktree,
            "worktree_base_dir": parsed_args.worktree_dir,
            "verbose": parsed_args.verbose,
            "debug": parsed_args.debug,
        }
        config = Config.from_dict({k: v for k, v in settings.items() if v is not None})
        if parsed_args.debug:
            console.print("[yellow]Configuration:[/yellow]")
            for key, value in config.to_dict().items():
                console.print(f"  {key}: {value}")

        service = GitService.from_config(parsed_args.repo, config)
        display = DisplayService(verbose=parsed_args.verbose)

        if parsed_args.command == "worktree":
            return run_worktree_command(parsed_args, service, config, display, ctx)
        return run_branch_command(parsed_args, service, config, display, ctx)
    except KeyboardInterrupt:
        ctx.cancel()
        console.print("\n[yellow]Operation cancelled by user[/yellow]")
        return 1
    except TicketFlowError as e:
        console.print(f"[red]Error: {e}[/red]")
        if parsed_args.debug:
            console.print_exception()
        return 1
    finally:
        ctx.cancel()


if __name__ == "__main__":
    sys.exit(main())
