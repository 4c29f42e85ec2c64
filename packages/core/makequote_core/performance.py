"""Render performance budgeting for benchmarks."""

from __future__ import annotations

from dataclasses import dataclass

import psutil


@dataclass(frozen=True)
class PerformanceTargets:
    render_ms_max: float = 1500.0
    rss_mb_max: float = 512.0


@dataclass(frozen=True)
class BudgetStatus:
    cpu_percent: float
    rss_mb: float
    render_ms: float
    overloaded: bool
    warning: str | None


class PerformanceController:
    def __init__(self, targets: PerformanceTargets | None = None) -> None:
        self.targets = targets or PerformanceTargets()
        self._process = psutil.Process()
        # Prime non-blocking CPU measurement.
        self._process.cpu_percent(interval=None)

    def sample(self, render_ms: float) -> BudgetStatus:
        cpu = float(self._process.cpu_percent(interval=None))
        rss_mb = float(self._process.memory_info().rss) / (1024 * 1024)

        warning = None
        if rss_mb > self.targets.rss_mb_max:
            warning = "memory_over_budget"
        elif render_ms > self.targets.render_ms_max:
            warning = "render_too_slow"

        return BudgetStatus(
            cpu_percent=cpu,
            rss_mb=rss_mb,
            render_ms=float(render_ms),
            overloaded=warning is not None,
            warning=warning,
        )
