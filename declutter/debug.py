"""Collects processing steps, timings and statistics when debug mode is on."""

from __future__ import annotations

import time

from declutter.items import DebugInfo, ProcessingStep, Statistics


class Debugger:
    """Observational recorder; every method is a no-op when disabled."""

    def __init__(self, enabled: bool = False) -> None:
        self.enabled = enabled
        self._steps: list[ProcessingStep] = []
        self._started: dict[str, float] = {}
        self._durations: dict[str, float] = {}
        self._statistics = Statistics()
        self._extractor_used: str | None = None

    def start_timer(self, operation: str) -> None:
        if self.enabled:
            self._started[operation] = time.perf_counter()

    def end_timer(self, operation: str) -> None:
        if not self.enabled:
            return
        started = self._started.pop(operation, None)
        if started is not None:
            self._durations[operation] = (time.perf_counter() - started) * 1000.0

    def add_step(
        self,
        step: str,
        description: str,
        elements_affected: int = 0,
        details: str | None = None,
    ) -> None:
        """Record a processing step, attaching the duration timed under the same name."""
        if not self.enabled:
            return
        self._steps.append(
            ProcessingStep(
                step=step,
                description=description,
                elements_affected=elements_affected,
                duration_ms=round(self._durations.get(step, 0.0), 3),
                details=details,
            ),
        )

    def set_statistics(self, **stats: int) -> None:
        if not self.enabled:
            return
        self._statistics = self._statistics.model_copy(update=stats)

    def set_extractor_used(self, name: str) -> None:
        if self.enabled:
            self._extractor_used = name

    def info(self) -> DebugInfo | None:
        if not self.enabled:
            return None
        return DebugInfo(
            processing_steps=list(self._steps),
            timings={k: round(v, 3) for k, v in self._durations.items()},
            statistics=self._statistics,
            extractor_used=self._extractor_used,
        )
