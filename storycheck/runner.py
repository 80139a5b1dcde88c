"""Storycheck runner: orchestrates setup → ordered steps → teardown → metrics.

Data flow per run:
1. Build the StoryClient from a ClientConfig (fatal on failure)
2. Create a fresh RunContext for this run
3. Execute each step in canonical order, one request per step
4. Record every check; carry the created story id forward
5. On a transport error, skip the remaining steps
6. Close the client, whatever happened above
7. Assemble RunResult, save as metrics.json
"""

from __future__ import annotations

import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

import requests
from rich.console import Console
from rich.markup import escape

from storycheck.checks import CheckGroup
from storycheck.client import StoryClient
from storycheck.models import ClientConfig, RunContext, RunResult, RunState, StepResult
from storycheck.steps import StepInfo, select_steps

_VERDICT_STYLE = {"pass": "green", "fail": "red", "error": "red", "skipped": "yellow"}


def _results_root() -> Path:
    """Absolute path to storycheck/results/."""
    return Path(__file__).parent / "results"


class SuiteRunner:
    """Runs a list of steps against one API with isolated per-run state."""

    def __init__(
        self,
        config: ClientConfig,
        console: Console,
        steps: list[StepInfo],
        session: Optional[requests.Session] = None,
    ):
        self.config = config
        self.console = console
        self.steps = steps
        self._session = session
        self.client: Optional[StoryClient] = None
        self.context = RunContext()
        self.state = RunState.NOT_STARTED

    def setup(self) -> None:
        self.client = StoryClient(self.config, session=self._session)
        self.state = RunState.CONFIGURED

    def teardown(self) -> None:
        if self.client is not None:
            self.client.close()
        self.state = RunState.TORN_DOWN

    def _run_step(self, step: StepInfo) -> StepResult:
        path = step.resolve_path(self.context)
        result = StepResult(name=step.name, method=step.method, path=path)

        if step.needs_story_id and not self.context.story_id:
            result.skipped = True
            result.error = "no story id from create step"
            return result

        checks = CheckGroup()
        start = time.monotonic()
        try:
            resp = step.run(self.client, self.context, checks)
            result.status_code = resp.status_code
        except requests.RequestException as e:
            result.error = f"{type(e).__name__}: {e}"
        finally:
            result.elapsed_s = round(time.monotonic() - start, 3)
            result.checks = checks.results
        return result

    def _report_step(self, result: StepResult) -> None:
        style = _VERDICT_STYLE.get(result.verdict, "white")
        status = result.status_code if result.status_code is not None else "--"
        self.console.print(
            f"  {result.name:20s} {result.method:6s} {status!s:>4}  "
            f"[{style}]{result.verdict}[/{style}]"
        )
        for c in result.failed_checks:
            line = f"{c.label}: expected {c.expected}, got {c.actual}"
            self.console.print(f"    [dim]{escape(line)}[/dim]")
        if result.error:
            self.console.print(f"    [dim]{escape(result.error)}[/dim]")

    def run(self) -> list[StepResult]:
        """Execute setup, every step in order, then teardown.

        Exceptions other than transport errors propagate after teardown.
        """
        results: list[StepResult] = []
        try:
            self.setup()
            self.state = RunState.RUNNING
            aborted = False
            for step in self.steps:
                if aborted:
                    result = StepResult(
                        name=step.name,
                        method=step.method,
                        path=step.resolve_path(self.context),
                        skipped=True,
                        error="aborted after transport error",
                    )
                else:
                    result = self._run_step(step)
                    # Transport failure: later steps assume a reachable API
                    aborted = result.verdict == "error"
                results.append(result)
                self._report_step(result)
        finally:
            self.teardown()
        return results


def run_suite(
    config: ClientConfig,
    console: Console,
    only: Optional[list[str]] = None,
    session: Optional[requests.Session] = None,
    save: bool = True,
    results_root: Optional[Path] = None,
) -> RunResult:
    """Execute one full run of the Story API suite.

    Args:
        config: Target API and credentials.
        console: Rich Console for status output.
        only: Subset of step names to run; canonical order is kept.
        session: Pre-built requests.Session (tests inject fakes here).
        save: Write metrics.json under the results root.
        results_root: Override for storycheck/results/.

    Returns:
        RunResult with every step populated.

    Raises:
        ValueError: unknown step name in ``only``, or an empty selection.
    """
    steps = select_steps(only)
    # Microseconds keep back-to-back runs in separate result dirs
    timestamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%S%fZ")

    console.print(f"\n[bold]Running:[/bold] {len(steps)} step(s) against {config.base_url}")

    runner = SuiteRunner(config, console, steps, session=session)
    start = time.monotonic()
    step_results = runner.run()
    wall_clock = time.monotonic() - start

    result = RunResult(
        timestamp=timestamp,
        base_url=config.base_url,
        wall_clock_s=round(wall_clock, 1),
        steps=step_results,
    )

    color = {"pass": "green", "partial": "yellow"}.get(result.verdict, "red")
    console.print(
        f"  Result: {result.passed}/{result.total} passed "
        f"([{color}]{result.verdict}[/{color}]) in {result.wall_clock_s}s"
    )

    if save:
        root = results_root or _results_root()
        result_dir = root / timestamp
        n = 1
        while result_dir.exists():
            result.timestamp = f"{timestamp}-{n}"
            result_dir = root / result.timestamp
            n += 1
        result.save(result_dir)
        console.print(f"  [bold green]Done.[/bold green] Metrics saved to {result_dir / 'metrics.json'}")
    return result
