"""Pytest configuration: import path, sample data fixtures and a per-module summary."""

from __future__ import annotations

import sys
from collections import Counter
from pathlib import Path

import pytest

_root = Path(__file__).resolve().parents[1]
if str(_root) not in sys.path:
    sys.path.insert(0, str(_root))


@pytest.fixture
def project_root() -> Path:
    return _root


@pytest.fixture
def sample_plan_path() -> Path:
    """Plan shipped in data/: 3 workpieces, 2 stations (capacities 2 and 1), 1 transport unit."""
    return _root / "data" / "plan_small.txt"


@pytest.fixture
def sample_config_path() -> Path:
    return _root / "configs" / "config.yaml"


def pytest_terminal_summary(
    terminalreporter: pytest.TerminalReporter,
    exitstatus: int,
    config: pytest.Config,
) -> None:  # noqa: D401
    """Print pass/fail counts per fmsplan area (test module) at the end of the session."""
    stats = terminalreporter.stats
    passed: Counter = Counter()
    failed: Counter = Counter()
    for key, counter in (("passed", passed), ("failed", failed), ("error", failed)):
        for rep in stats.get(key, []):
            if getattr(rep, "when", "call") in ("call", "setup"):
                area = rep.nodeid.split("::")[0].rsplit("/", 1)[-1]
                area = area.removeprefix("test_").removesuffix(".py")
                counter[area] += 1

    terminalreporter.section("fmsplan summary", sep="=")
    for area in sorted(set(passed) | set(failed)):
        mark = "ok" if not failed[area] else "FAILED"
        terminalreporter.write_line(
            f"{area:<20} passed: {passed[area]:>3}  failed: {failed[area]:>3}  {mark}"
        )
    if failed:
        terminalreporter.write_line("Failed tests:")
        for rep in stats.get("failed", []):
            terminalreporter.write_line(f"  - {rep.nodeid}")
