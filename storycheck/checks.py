"""Grouped assertions for a single step.

Every check is evaluated and recorded; none of them raise. A step fails when
any recorded check failed, and all failures are reported together.
"""

from __future__ import annotations

from typing import Any, Optional

from storycheck.models import CheckResult


def _show(value: Any) -> str:
    if value is None:
        return "None"
    text = repr(value) if isinstance(value, str) else str(value)
    if len(text) > 120:
        text = text[:117] + "..."
    return text


class CheckGroup:
    """Collects CheckResults for one step."""

    def __init__(self) -> None:
        self.results: list[CheckResult] = []

    def _record(self, label: str, passed: bool, expected: str, actual: Any) -> bool:
        self.results.append(CheckResult(label=label, passed=passed, expected=expected, actual=_show(actual)))
        return passed

    @property
    def passed(self) -> bool:
        return all(r.passed for r in self.results)

    def status(self, actual: Optional[int], expected: int) -> bool:
        return self._record("status", actual == expected, str(expected), actual)

    def equals(self, label: str, actual: Any, expected: Any) -> bool:
        return self._record(label, actual == expected, _show(expected), actual)

    def not_none(self, label: str, actual: Any) -> bool:
        return self._record(label, actual is not None, "not None", actual)

    def not_empty(self, label: str, actual: Optional[str]) -> bool:
        return self._record(label, bool(actual), "non-empty", actual)

    def contains(self, label: str, actual: Optional[str], needle: str, ignore_case: bool = False) -> bool:
        if actual is None:
            ok = False
        elif ignore_case:
            ok = needle.lower() in actual.lower()
        else:
            ok = needle in actual
        expected = f"contains {needle!r}" + (" (ignore case)" if ignore_case else "")
        return self._record(label, ok, expected, actual)
