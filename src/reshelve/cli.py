from __future__ import annotations

import asyncio
import logging
from dataclasses import replace
from pathlib import Path

import typer
from openai import OpenAIError
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.progress import BarColumn, Progress, SpinnerColumn, TextColumn
from rich.table import Table

from .config import ExecutorSettings
from .diff import compute_moves, summarize_operations
from .errors import PlanFileError, ScanRootError, StrategyError
from .executor import BatchExecutor
from .models import ExecuteResult, FileOperation
from .plan_file import Proposal, load_proposal, save_proposal
from .scanner import LocalScanner
from .strategies import get_strategy, list_strategies
from .text_utils import format_size
from .tree_builder import build_tree
from .tree_editor import move_node

app = typer.Typer(
    help="Reorganize folders by time, type or topic, with undo",
    no_args_is_help=True,
)
console = Console()

MAX_LISTED_MOVES = 50


def configure_logging(verbose: bool) -> logging.Logger:
    logger = logging.getLogger("reshelve")
    logger.handlers.clear()
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    handler = RichHandler(console=console, show_path=False, markup=False)
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)
    return logger


def _executor(log_dir: Path | None) -> BatchExecutor:
    if log_dir is not None:
        return BatchExecutor(ExecutorSettings(log_dir=log_dir.expanduser()))
    return BatchExecutor(ExecutorSettings.from_env())


def _print_moves(operations: list[FileOperation]) -> None:
    summary = summarize_operations(operations)
    console.print(
        f"Planned moves: {summary.moves} into {summary.target_directories} folder(s)"
    )
    for op in operations[:MAX_LISTED_MOVES]:
        console.print(f"  {escape(op.source)} [dim]->[/dim] {escape(op.destination)}")
    if len(operations) > MAX_LISTED_MOVES:
        console.print(f"  ... and {len(operations) - MAX_LISTED_MOVES} more")


def _print_result(label: str, result: ExecuteResult) -> None:
    status = "[green]ok[/green]" if result.success else "[red]failed[/red]"
    console.print(f"{label} {status}: processed={result.processed}")
    for error in result.errors:
        console.print(f"[red]error:[/red] {escape(error)}")


@app.callback()
def _default_command(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
) -> None:
    configure_logging(verbose)


@app.command()
def scan(
    paths: list[Path] = typer.Argument(..., help="Folders to scan"),
    depth: int = typer.Option(2, help="Folder depth to render"),
) -> None:
    """Scan folders and print their file tree."""
    try:
        results = asyncio.run(LocalScanner().scan_many(paths))
    except ScanRootError as exc:
        console.print(f"[red]Scan failed:[/red] {escape(str(exc))}")
        raise typer.Exit(1)

    for result in results:
        console.print(build_tree(result.root, max_depth=depth))
        console.print(
            f"Files: {result.file_count}  Size: {format_size(result.total_size)}"
        )


@app.command()
def strategies() -> None:
    """List the available organization strategies."""
    table = Table("id", "name", "description")
    for strategy in list_strategies():
        table.add_row(strategy.id, strategy.name, strategy.description)
    console.print(table)


@app.command()
def preview(
    path: Path = typer.Argument(..., help="Folder to reorganize"),
    strategy: str = typer.Option("type", "--strategy", "-s", help="Strategy id"),
    output: Path | None = typer.Option(
        None, "--output", "-o", help="Save the proposal to this JSON file"
    ),
    depth: int = typer.Option(2, help="Folder depth to render"),
) -> None:
    """Propose a new layout for a folder without touching it."""
    try:
        selected = get_strategy(strategy)
        result = asyncio.run(LocalScanner().scan(path))
        if not result.root.is_dir:
            raise ScanRootError(result.root.path, "not a directory")
        proposed = asyncio.run(selected.apply(result.root))
    except ScanRootError as exc:
        console.print(f"[red]Scan failed:[/red] {escape(str(exc))}")
        raise typer.Exit(1)
    except (StrategyError, OpenAIError) as exc:
        console.print(f"[red]Strategy failed:[/red] {escape(str(exc))}")
        raise typer.Exit(1)

    console.print(build_tree(proposed, max_depth=depth))
    _print_moves(compute_moves(result.root.path, proposed))

    if output is not None:
        save_proposal(
            output,
            Proposal(root_path=result.root.path, strategy=selected.id, tree=proposed),
        )
        console.print(f"Proposal saved: {output}")
        console.print(f"Run `reshelve apply {output}` to execute it.")


@app.command()
def move(
    plan: Path = typer.Argument(..., help="Proposal JSON file"),
    source: str = typer.Argument(..., help="Path of the node to move"),
    target: str = typer.Argument(..., help="Path of the destination folder node"),
) -> None:
    """Move a file or folder inside a saved proposal."""
    try:
        proposal = load_proposal(plan)
    except PlanFileError as exc:
        console.print(f"[red]Invalid plan:[/red] {escape(str(exc))}")
        raise typer.Exit(1)

    updated = move_node(proposal.tree, source, target)
    if updated is proposal.tree:
        console.print(f"[red]Move rejected:[/red] {escape(source)} -> {escape(target)}")
        raise typer.Exit(1)
    save_proposal(plan, replace(proposal, tree=updated))
    console.print(f"Moved {escape(source)} into {escape(target)}")


@app.command()
def apply(
    plan: Path = typer.Argument(..., help="Proposal JSON file"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
    log_dir: Path | None = typer.Option(None, help="Batch log directory"),
) -> None:
    """Execute the moves needed to realize a saved proposal."""
    try:
        proposal = load_proposal(plan)
        operations = compute_moves(proposal.root_path, proposal.tree)
    except (PlanFileError, ValueError) as exc:
        console.print(f"[red]Invalid plan:[/red] {escape(str(exc))}")
        raise typer.Exit(1)

    if not operations:
        console.print("Nothing to move.")
        return
    _print_moves(operations)
    if not yes:
        typer.confirm("Apply these moves?", abort=True)

    executor = _executor(log_dir)
    with Progress(
        SpinnerColumn(),
        TextColumn("{task.description}"),
        BarColumn(),
        console=console,
    ) as progress:
        task_id = progress.add_task("Moving files...", total=len(operations))

        def report(
            done: int,
            total: int,
            op: FileOperation,
            ok: bool,
            error: str | None,
        ) -> None:
            progress.update(task_id, completed=done, description=f"{done}/{total}")

        result = executor.execute(operations, progress_cb=report)

    _print_result("Apply", result)
    if not result.success:
        raise typer.Exit(1)
    console.print("Run `reshelve undo` to revert this batch.")


@app.command()
def undo(
    log_dir: Path | None = typer.Option(None, help="Batch log directory"),
) -> None:
    """Revert the most recently executed batch."""
    result = _executor(log_dir).undo_last_batch()
    _print_result("Undo", result)
    if not result.success:
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
