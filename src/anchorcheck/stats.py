"""Aggregation of test runs into pass/fail statistics."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

from anchorcheck.models.result import TestRun, TestStatus


@dataclass(frozen=True)
class GroupStats:
    """Counts for one reporting group of one SEP."""

    sep: int
    name: str
    passed: int = 0
    failed: int = 0

    @property
    def has_failures(self) -> bool:
        return self.failed > 0

    @property
    def total(self) -> int:
        return self.passed + self.failed

    def to_dict(self) -> dict[str, Any]:
        return {
            "sep": self.sep,
            "name": self.name,
            "passed": self.passed,
            "failed": self.failed,
            "total": self.total,
        }


@dataclass(frozen=True)
class Stats:
    """Totals over executed runs.

    Skipped runs are counted separately and never contribute to ``total``,
    ``passed``, ``failed`` or the groups.
    """

    total: int = 0
    passed: int = 0
    failed: int = 0
    skipped: int = 0
    groups: tuple[GroupStats, ...] = ()

    @property
    def ok(self) -> bool:
        return self.failed == 0

    @property
    def groups_failed(self) -> int:
        return sum(1 for g in self.groups if g.has_failures)

    @property
    def groups_passed(self) -> int:
        return len(self.groups) - self.groups_failed

    def to_dict(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "passed": self.passed,
            "failed": self.failed,
            "skipped": self.skipped,
            "groups": [g.to_dict() for g in self.groups],
        }


def compute_stats(runs: Iterable[TestRun]) -> Stats:
    """Reduce runs to `Stats`; groups keep first-seen order."""
    passed = failed = skipped = 0
    groups: dict[tuple[int, str], list[int]] = {}
    for run in runs:
        if run.status is TestStatus.SKIPPED:
            skipped += 1
            continue
        counts = groups.setdefault((run.sep, run.group), [0, 0])
        if run.status is TestStatus.FAILED:
            failed += 1
            counts[1] += 1
        else:
            passed += 1
            counts[0] += 1

    return Stats(
        total=passed + failed,
        passed=passed,
        failed=failed,
        skipped=skipped,
        groups=tuple(GroupStats(sep=sep, name=name, passed=p, failed=f) for (sep, name), (p, f) in groups.items()),
    )
