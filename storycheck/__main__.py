"""CLI for the storycheck Story API suite.

Usage:
    python -m storycheck steps                       # Show the ordered steps
    python -m storycheck run                         # Run all steps ($STORY_API_TOKEN)
    python -m storycheck run --only create,list      # Run a subset, in order
    python -m storycheck results                     # List all stored runs
    python -m storycheck show [timestamp]            # Step table for a run
    python -m storycheck compare                     # Status codes: latest vs previous
    python -m storycheck report                      # Generate RESULTS.md history
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from storycheck.environment import ConfigError, load_config
from storycheck.runner import run_suite
from storycheck.scorer import (
    generate_report,
    list_all_results,
    load_all_runs,
    load_run,
    render_comparison,
    render_run,
)
from storycheck.steps import STEPS

app = typer.Typer(
    name="storycheck",
    help="End-to-end checks for the Story CRUD API",
    no_args_is_help=True,
)
console = Console(stderr=True)


@app.command("steps")
def cmd_steps() -> None:
    """Show the steps in execution order."""
    table = Table(title="Steps", show_header=True, header_style="bold")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Name", style="green", min_width=18)
    table.add_column("Request", min_width=30)
    table.add_column("Expect", justify="right")
    table.add_column("Description")

    for i, s in enumerate(STEPS, 1):
        table.add_row(str(i), s.name, f"{s.method} {s.path}", str(s.expected_status), s.description)

    console.print()
    console.print(table)
    console.print()


@app.command("run")
def cmd_run(
    base_url: Optional[str] = typer.Option(None, "--base-url", "-u", help="API base URL (or $STORY_API_BASE_URL)"),
    token: Optional[str] = typer.Option(None, "--token", "-t", help="Bearer token (or $STORY_API_TOKEN)"),
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="KEY=VALUE config file"),
    only: Optional[str] = typer.Option(None, "--only", help="Comma-separated step names"),
    timeout: Optional[float] = typer.Option(None, "--timeout", help="Per-request timeout in seconds"),
    no_save: bool = typer.Option(False, "--no-save", help="Don't write metrics.json"),
) -> None:
    """Run the suite against the Story API."""
    try:
        cfg = load_config(base_url=base_url, token=token, timeout_s=timeout, config_path=config)
    except ConfigError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(2)

    names = [n.strip() for n in only.split(",") if n.strip()] if only else None
    try:
        result = run_suite(cfg, console, only=names, save=not no_save)
    except ValueError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(2)

    render_run(result, console)
    if result.verdict != "pass":
        raise typer.Exit(1)


@app.command("results")
def cmd_results() -> None:
    """List all stored runs."""
    list_all_results(console)


@app.command("show")
def cmd_show(
    timestamp: Optional[str] = typer.Argument(None, help="Run timestamp (default: latest)"),
) -> None:
    """Show the step table of a stored run."""
    result = load_run(timestamp)
    if not result:
        console.print(f"[yellow]No run found{f' for {timestamp}' if timestamp else ''}.[/yellow]")
        raise typer.Exit(1)
    render_run(result, console)


@app.command("compare")
def cmd_compare() -> None:
    """Compare status codes of the two most recent runs."""
    runs = load_all_runs()
    if len(runs) < 2:
        console.print("[yellow]Need at least two stored runs to compare.[/yellow]")
        raise typer.Exit(1)
    if not render_comparison(runs[-2], runs[-1], console):
        raise typer.Exit(1)


@app.command("report")
def cmd_report() -> None:
    """Generate RESULTS.md with full run history."""
    path = generate_report()
    console.print(f"Report written to {path}")


if __name__ == "__main__":
    app()
