"""Shared state machine and result types for stepped processes.

A process is any algorithm that can be advanced one unit of work at a time.
Implementations own their run state exclusively and expose it through the
small lifecycle defined by :class:`Process`:

``idle -> running -> {completed | failed}``

Terminal states are absorbing; only :meth:`Process.reset` or
:meth:`Process.init` leave them. Configuration problems and run-away
execution are reported through ``state`` and ``failed_reason`` instead of
exceptions so a caller always receives a well formed
:class:`ProcessRunResult`.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from ..config import Config
from ..logging import log_entry
from ..logging_models import ProcessRunLog, ProcessRunPayload

logger = logging.getLogger(__name__)


class ProcessState(str, Enum):
    """Lifecycle states of a process."""

    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (ProcessState.COMPLETED, ProcessState.FAILED)


@dataclass
class ProcessEvent:
    """A single event emitted while performing a step."""

    type: str
    entity_id: Optional[str] = None
    data: Any = None


@dataclass
class ProcessStepResult:
    """Outcome of one :meth:`Process.step` call."""

    step: int
    state: Any
    metrics: Dict[str, float] = field(default_factory=dict)
    events: List[ProcessEvent] = field(default_factory=list)


@dataclass
class ProcessRunResult:
    """Outcome of :meth:`Process.run`."""

    state: ProcessState
    steps: List[ProcessStepResult] = field(default_factory=list)
    metrics: Dict[str, float] = field(default_factory=dict)
    failed_reason: Optional[str] = None


@dataclass
class ProcessSnapshot:
    """Detached copy of a process' full run state."""

    state: ProcessState
    current_step: int
    data: Dict[str, Any] = field(default_factory=dict)


class Process(ABC):
    """Base class for steppable algorithms.

    Subclasses implement the algorithm specific parts (``init``, ``reset``,
    ``step``, metrics and snapshots) while the state bookkeeping and the
    bounded :meth:`run` loop live here. Instances are not thread safe; a
    single caller must own each instance.
    """

    #: Short algorithm identifier used for track affinity and registries.
    type: str = "process"

    def __init__(self, process_id: str | None = None) -> None:
        self.id = process_id or self.type
        self._state = ProcessState.IDLE
        self._current_step = -1
        self._total_steps = 0
        self._failed_reason: str | None = None

    # ------------------------------------------------------------------
    @property
    def state(self) -> ProcessState:
        return self._state

    @property
    def current_step(self) -> int:
        return self._current_step

    @property
    def total_steps(self) -> int:
        return self._total_steps

    @property
    def failed_reason(self) -> str | None:
        return self._failed_reason

    # ------------------------------------------------------------------
    @abstractmethod
    def init(self, config: Any) -> None:
        """Normalise ``config`` and reset the process."""

    @abstractmethod
    def reset(self) -> None:
        """Clear run state and return to ``idle`` (or ``failed``)."""

    @abstractmethod
    def step(self) -> ProcessStepResult:
        """Advance exactly one unit of work."""

    @abstractmethod
    def get_metrics(self) -> Dict[str, float]:
        """Return the current metrics without side effects."""

    @abstractmethod
    def get_snapshot(self) -> ProcessSnapshot:
        """Return a deep copy of the full run state."""

    @abstractmethod
    def restore_snapshot(self, snapshot: ProcessSnapshot) -> None:
        """Rebuild the run state from ``snapshot``."""

    # ------------------------------------------------------------------
    def default_max_steps(self) -> int:
        """Return the step cap used when :meth:`run` receives none."""

        return Config.max_run_steps

    def run(self, max_steps: int | None = None) -> ProcessRunResult:
        """Step until a terminal state or until ``max_steps`` is exceeded.

        Exceeding the cap fails the process with a reason naming the cap.
        Only results carrying a new step index are collected.
        """

        if max_steps is None:
            max_steps = self.default_max_steps()
        steps: List[ProcessStepResult] = []
        last_step = self._current_step
        iterations = 0

        while not self._state.is_terminal:
            if iterations >= max_steps:
                self._fail(f"Exceeded max run steps ({max_steps}).")
                break
            result = self.step()
            if result.step > last_step:
                steps.append(result)
                last_step = result.step
            iterations += 1

        run = ProcessRunResult(
            state=self._state,
            steps=steps,
            metrics=self.get_metrics(),
            failed_reason=self._failed_reason,
        )
        self._log_run(run)
        return run

    # ------------------------------------------------------------------
    def _fail(self, reason: str) -> None:
        self._state = ProcessState.FAILED
        self._failed_reason = reason
        logger.debug("process %s failed: %s", self.id, reason)

    def _log_run(self, run: ProcessRunResult) -> None:
        if not Config.is_log_enabled("process", "process_run"):
            return
        entry = ProcessRunLog(
            correlation_id=self.id,
            payload=ProcessRunPayload(
                process_id=self.id,
                process_type=self.type,
                state=run.state.value,
                steps=len(run.steps),
                total_steps=self._total_steps,
                metrics=run.metrics,
                failed_reason=run.failed_reason,
            ),
        )
        log_entry("process", "process_run", entry)
