"""Storycheck scorer: loads results, renders Rich tables, generates markdown reports.

Results are stored as storycheck/results/<timestamp>/metrics.json. This module
finds them, shows a per-step table for a run, compares status codes between
runs (the suite should produce the same codes every time), and writes a
persistent RESULTS.md history.
"""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from storycheck.models import RunResult


def _results_root() -> Path:
    """Absolute path to storycheck/results/."""
    return Path(__file__).parent / "results"


def load_all_runs(root: Optional[Path] = None) -> list[RunResult]:
    """Load every stored run, oldest first.

    Timestamps are ISO8601 and sort lexicographically. Unreadable
    metrics.json files are skipped.
    """
    root = root or _results_root()
    if not root.is_dir():
        return []
    runs: list[RunResult] = []
    for run_dir in sorted(root.iterdir()):
        if not run_dir.is_dir():
            continue
        result = RunResult.load(run_dir)
        if result:
            runs.append(result)
    runs.sort(key=lambda r: r.timestamp)
    return runs


def load_run(timestamp: Optional[str] = None, root: Optional[Path] = None) -> Optional[RunResult]:
    """Load one run by timestamp, or the latest run when none is given."""
    root = root or _results_root()
    if timestamp:
        return RunResult.load(root / timestamp)
    runs = load_all_runs(root)
    return runs[-1] if runs else None


def _fmt_status(code: Optional[int]) -> str:
    return str(code) if code is not None else "--"


def render_run(result: RunResult, console: Console) -> None:
    """Render a Rich table of one run's steps."""
    table = Table(
        title=f"Storycheck: {result.timestamp}",
        show_header=True,
        header_style="bold",
    )
    table.add_column("#", justify="right", style="dim")
    table.add_column("Step", style="cyan", min_width=18)
    table.add_column("Request", min_width=30)
    table.add_column("Status", justify="right")
    table.add_column("Verdict", justify="center")
    table.add_column("Details")

    colors = {"pass": "green", "fail": "red", "error": "red", "skipped": "yellow"}
    for i, step in enumerate(result.steps, 1):
        color = colors.get(step.verdict, "white")
        details = "; ".join(
            f"{c.label}: expected {c.expected}, got {c.actual}" for c in step.failed_checks
        )
        if step.error:
            details = f"{details}; {step.error}" if details else step.error
        table.add_row(
            str(i),
            step.name,
            f"{step.method} {step.path}",
            _fmt_status(step.status_code),
            f"[{color}]{step.verdict}[/{color}]",
            f"[dim]{escape(details)}[/dim]" if details else "",
        )

    console.print()
    console.print(table)
    console.print(
        f"  {result.passed}/{result.total} passed, verdict [bold]{result.verdict}[/bold], "
        f"wall clock {result.wall_clock_s}s"
    )
    console.print()


def list_all_results(console: Console, root: Optional[Path] = None) -> None:
    """List all stored runs."""
    runs = load_all_runs(root)
    if not runs:
        console.print("[yellow]No results yet. Run the suite first.[/yellow]")
        return
    for r in reversed(runs):
        tests = f"{r.passed}/{r.total}"
        console.print(
            f"  {r.timestamp}  {r.verdict:8s} {tests:6s} {r.wall_clock_s:>6.1f}s  {r.base_url}"
        )


def compare_runs(first: RunResult, second: RunResult) -> list[tuple[str, Optional[int], Optional[int]]]:
    """Return (step, first_status, second_status) for every step whose status differs.

    Steps present in only one of the runs are reported with None for the
    missing side.
    """
    a = first.status_codes()
    b = second.status_codes()
    names = list(a) + [n for n in b if n not in a]
    return [(n, a.get(n), b.get(n)) for n in names if a.get(n) != b.get(n)]


def render_comparison(first: RunResult, second: RunResult, console: Console) -> bool:
    """Print a status-code comparison of two runs. Returns True when consistent."""
    diffs = compare_runs(first, second)
    if not diffs:
        console.print(
            f"[green]Consistent:[/green] {first.timestamp} and {second.timestamp} "
            f"returned the same status codes for all {first.total} step(s)"
        )
        return True

    table = Table(title="Status code divergence", show_header=True, header_style="bold")
    table.add_column("Step", style="cyan")
    table.add_column(first.timestamp, justify="right")
    table.add_column(second.timestamp, justify="right")
    for name, x, y in diffs:
        table.add_row(name, _fmt_status(x), _fmt_status(y))
    console.print()
    console.print(table)
    console.print()
    return False


# ---------------------------------------------------------------------------
# Markdown report generation
# ---------------------------------------------------------------------------

def _report_path() -> Path:
    """Path to the generated RESULTS.md."""
    return Path(__file__).parent / "RESULTS.md"


def generate_report(root: Optional[Path] = None, out: Optional[Path] = None) -> Path:
    """Generate RESULTS.md with the full run history and latest step detail.

    Returns the path to the generated file.
    """
    runs = load_all_runs(root)
    out = out or _report_path()

    lines: list[str] = []
    lines.append("# Storycheck Results")
    lines.append("")
    lines.append(f"*Generated {datetime.now(timezone.utc).strftime('%Y-%m-%d %H:%M UTC')}*")
    lines.append("")

    if not runs:
        lines.append("No results yet.")
        out.write_text("\n".join(lines) + "\n", encoding="utf-8")
        return out

    lines.append("## History")
    lines.append("")
    lines.append("| # | Timestamp | Target | Verdict | Passed | Failed | Errors | Skipped | Wall Clock |")
    lines.append("|---|-----------|--------|---------|--------|--------|--------|---------|------------|")
    for i, r in enumerate(runs, 1):
        lines.append(
            f"| {i} | `{r.timestamp}` | {r.base_url} | **{r.verdict}** | {r.passed}/{r.total} "
            f"| {r.failed} | {r.errors} | {r.skipped} | {r.wall_clock_s}s |"
        )
    lines.append("")

    latest = runs[-1]
    lines.append("## Latest Run")
    lines.append("")
    lines.append("| Step | Request | Status | Verdict |")
    lines.append("|------|---------|--------|---------|")
    for s in latest.steps:
        lines.append(f"| {s.name} | `{s.method} {s.path}` | {_fmt_status(s.status_code)} | **{s.verdict}** |")
    lines.append("")

    if len(runs) >= 2:
        diffs = compare_runs(runs[-2], latest)
        lines.append("## Consistency")
        lines.append("")
        if diffs:
            for name, x, y in diffs:
                lines.append(f"- `{name}`: {_fmt_status(x)} → {_fmt_status(y)}")
        else:
            lines.append("Status codes match the previous run for every step.")
        lines.append("")

    out.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return out
