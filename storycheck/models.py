"""Data models for the storycheck suite.

ClientConfig, StoryPayload, ApiResponse, RunContext, CheckResult, StepResult,
RunResult. The typed structures that flow through runner → scorer → CLI.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Optional


class RunState(str, Enum):
    """Lifecycle of a single suite run."""

    NOT_STARTED = "not-started"
    CONFIGURED = "configured"
    RUNNING = "running"
    TORN_DOWN = "torn-down"


@dataclass(frozen=True)
class ClientConfig:
    """Where to send requests and how to authenticate them."""

    base_url: str
    token: str
    timeout_s: float = 30.0

    def __post_init__(self) -> None:
        object.__setattr__(self, "base_url", self.base_url.rstrip("/"))

    def __repr__(self) -> str:
        # Keep the token out of tracebacks and debug output
        return f"ClientConfig(base_url={self.base_url!r}, token='***', timeout_s={self.timeout_s})"


@dataclass
class StoryPayload:
    """Request body for create/edit."""

    title: Optional[str] = None
    description: Optional[str] = None
    url: Optional[str] = None

    def to_dict(self) -> dict[str, Optional[str]]:
        return {"title": self.title, "description": self.description, "url": self.url}


@dataclass
class ApiResponse:
    """The {storyId?, msg} envelope returned by the Story API."""

    msg: str = ""
    story_id: Optional[str] = None

    @classmethod
    def from_json(cls, data: Any) -> Optional[ApiResponse]:
        """Build an envelope from a decoded JSON body.

        Returns None when the body is not a JSON object, which callers treat
        as a missing envelope.
        """
        if not isinstance(data, dict):
            return None
        story_id = data.get("storyId")
        msg = data.get("msg")
        return cls(
            msg=msg if isinstance(msg, str) else "",
            story_id=str(story_id) if story_id is not None else None,
        )


@dataclass
class RunContext:
    """State carried forward between steps of one run."""

    story_id: Optional[str] = None


@dataclass
class CheckResult:
    """Outcome of a single assertion inside a step."""

    label: str
    passed: bool
    expected: str = ""
    actual: str = ""

    def to_dict(self) -> dict:
        return {
            "label": self.label,
            "passed": self.passed,
            "expected": self.expected,
            "actual": self.actual,
        }

    @classmethod
    def from_dict(cls, d: dict) -> CheckResult:
        return cls(
            label=d.get("label", ""),
            passed=d.get("passed", False),
            expected=d.get("expected", ""),
            actual=d.get("actual", ""),
        )


@dataclass
class StepResult:
    """Result of one step: the request made and every check evaluated."""

    name: str
    method: str
    path: str
    status_code: Optional[int] = None
    checks: list[CheckResult] = field(default_factory=list)
    error: str = ""
    skipped: bool = False
    elapsed_s: float = 0.0

    @property
    def failed_checks(self) -> list[CheckResult]:
        return [c for c in self.checks if not c.passed]

    @property
    def verdict(self) -> str:
        if self.skipped:
            return "skipped"
        if self.error:
            return "error"
        if self.failed_checks:
            return "fail"
        return "pass"

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "method": self.method,
            "path": self.path,
            "status_code": self.status_code,
            "checks": [c.to_dict() for c in self.checks],
            "error": self.error,
            "skipped": self.skipped,
            "elapsed_s": self.elapsed_s,
            "verdict": self.verdict,
        }

    @classmethod
    def from_dict(cls, d: dict) -> StepResult:
        return cls(
            name=d.get("name", ""),
            method=d.get("method", ""),
            path=d.get("path", ""),
            status_code=d.get("status_code"),
            checks=[CheckResult.from_dict(c) for c in d.get("checks", [])],
            error=d.get("error", ""),
            skipped=d.get("skipped", False),
            elapsed_s=d.get("elapsed_s", 0.0),
        )


@dataclass
class RunResult:
    """Complete result of a single storycheck run."""

    timestamp: str
    base_url: str = ""
    wall_clock_s: float = 0.0
    steps: list[StepResult] = field(default_factory=list)

    def _count(self, verdict: str) -> int:
        return sum(1 for s in self.steps if s.verdict == verdict)

    @property
    def passed(self) -> int:
        return self._count("pass")

    @property
    def failed(self) -> int:
        return self._count("fail")

    @property
    def errors(self) -> int:
        return self._count("error")

    @property
    def skipped(self) -> int:
        return self._count("skipped")

    @property
    def total(self) -> int:
        return len(self.steps)

    @property
    def verdict(self) -> str:
        if self.total == 0:
            return "no-steps"
        if self.passed == self.total:
            return "pass"
        if self.passed > 0:
            return "partial"
        return "fail"

    def status_codes(self) -> dict[str, Optional[int]]:
        """Step name → observed HTTP status (None when no response)."""
        return {s.name: s.status_code for s in self.steps}

    def to_dict(self) -> dict:
        """Serialize to a JSON-compatible dict."""
        return {
            "timestamp": self.timestamp,
            "base_url": self.base_url,
            "wall_clock_s": self.wall_clock_s,
            "verdict": self.verdict,
            "passed": self.passed,
            "total": self.total,
            "steps": [s.to_dict() for s in self.steps],
        }

    @classmethod
    def from_dict(cls, d: dict) -> RunResult:
        """Deserialize from a JSON dict (metrics.json)."""
        return cls(
            timestamp=d.get("timestamp", ""),
            base_url=d.get("base_url", ""),
            wall_clock_s=d.get("wall_clock_s", 0.0),
            steps=[StepResult.from_dict(s) for s in d.get("steps", [])],
        )

    def save(self, result_dir: Path) -> None:
        """Write metrics.json to the result directory."""
        result_dir.mkdir(parents=True, exist_ok=True)
        (result_dir / "metrics.json").write_text(
            json.dumps(self.to_dict(), indent=2), encoding="utf-8"
        )

    @classmethod
    def load(cls, result_dir: Path) -> Optional[RunResult]:
        """Load metrics.json from a result directory."""
        p = result_dir / "metrics.json"
        if not p.exists():
            return None
        try:
            return cls.from_dict(json.loads(p.read_text(encoding="utf-8")))
        except (json.JSONDecodeError, OSError):
            return None
