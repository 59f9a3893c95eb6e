"""Gradient descent on a two dimensional quadratic bowl."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple

import numpy as np

from ..errors import ConfigError
from ..utils import clone_value
from .base import (
    Process,
    ProcessEvent,
    ProcessSnapshot,
    ProcessState,
    ProcessStepResult,
)

Point = Tuple[float, float]

DEFAULT_COEFFICIENTS = {"a": 1.0, "b": 1.0, "c": 0.0, "d": 0.0, "e": 0.0, "f": 0.0}


def _finite_or(value: Any, fallback: float) -> float:
    try:
        candidate = float(value)
    except (TypeError, ValueError):
        return fallback
    return candidate if math.isfinite(candidate) else fallback


@dataclass
class GradientDescentConfig:
    """Settings for minimising ``a x² + b y² + c xy + d x + e y + f``."""

    start_point: Point = (0.0, 0.0)
    learning_rate: float = 0.1
    max_iterations: int = 50
    epsilon: float = 1e-3
    coefficients: Dict[str, float] = field(
        default_factory=lambda: dict(DEFAULT_COEFFICIENTS)
    )
    point_entity_id: Optional[str] = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "GradientDescentConfig":
        """Build a normalised config; malformed values fall back to defaults.

        Raises :class:`ConfigError` when ``data`` is not a mapping.
        """

        if not isinstance(data, Mapping):
            raise ConfigError("Invalid config: expected a mapping.")

        def pick(*keys: str) -> Any:
            for key in keys:
                if key in data:
                    return data[key]
            return None

        raw_point = pick("start_point", "startPoint")
        if raw_point is None:
            raw_point = (0.0, 0.0)
        try:
            x, y = raw_point[0], raw_point[1]
        except (TypeError, IndexError, KeyError):
            x, y = 0.0, 0.0
        raw_coeff = pick("coefficients")
        if not isinstance(raw_coeff, Mapping):
            raw_coeff = {}
        entity = pick("point_entity_id", "pointEntityId")
        return cls(
            start_point=(_finite_or(x, 0.0), _finite_or(y, 0.0)),
            learning_rate=_finite_or(pick("learning_rate", "learningRate"), 0.1),
            max_iterations=max(
                1,
                math.floor(_finite_or(pick("max_iterations", "maxIterations"), 50)),
            ),
            epsilon=max(1e-10, _finite_or(pick("epsilon"), 1e-3)),
            coefficients={
                key: _finite_or(raw_coeff.get(key), default)
                for key, default in DEFAULT_COEFFICIENTS.items()
            },
            point_entity_id=entity if isinstance(entity, str) else None,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "start_point": list(self.start_point),
            "learning_rate": self.learning_rate,
            "max_iterations": self.max_iterations,
            "epsilon": self.epsilon,
            "coefficients": dict(self.coefficients),
            "point_entity_id": self.point_entity_id,
        }


@dataclass
class GradientDescentState:
    iteration: int
    current_point: Point
    trajectory: List[Point]
    loss: float
    gradient: Point
    gradient_norm: float

    def __deepcopy__(self, memo: Dict[int, Any]) -> "GradientDescentState":
        # points are tuples of floats
        return GradientDescentState(
            iteration=self.iteration,
            current_point=self.current_point,
            trajectory=list(self.trajectory),
            loss=self.loss,
            gradient=self.gradient,
            gradient_norm=self.gradient_norm,
        )


class GradientDescentProcess(Process):
    """Fixed step gradient descent emitting ``iterate``/``settle`` events.

    The run converges once the gradient norm drops to ``epsilon`` and
    completes with ``max_iterations`` otherwise. ``total_steps`` equals the
    iteration budget.
    """

    type = "gradient_descent"

    def __init__(self, process_id: str | None = "gradient-descent") -> None:
        super().__init__(process_id)
        self._config: GradientDescentConfig | None = None
        self._config_error: str | None = None
        self._point = np.zeros(2)
        self._trajectory: List[Point] = []
        self._loss = 0.0
        self._gradient = np.zeros(2)
        self._gradient_norm = 0.0

    def init(self, config: GradientDescentConfig | Mapping[str, Any] | None) -> None:
        if isinstance(config, GradientDescentConfig):
            config = config.to_dict()
        try:
            self._config = GradientDescentConfig.from_mapping(
                {} if config is None else config
            )
            self._config_error = None
        except ConfigError as exc:
            self._config = None
            self._config_error = str(exc)
        self.reset()

    def reset(self) -> None:
        self._state = ProcessState.IDLE
        self._current_step = -1
        self._failed_reason = None

        if self._config is None:
            self._total_steps = 0
            self._fail(self._config_error or "Process is not initialized.")
            return

        self._total_steps = self._config.max_iterations
        self._point = np.asarray(self._config.start_point, dtype=float)
        self._trajectory = [self._as_point(self._point)]
        self._refresh()

    def default_max_steps(self) -> int:
        return self._total_steps or 1000

    def step(self) -> ProcessStepResult:
        if self._state.is_terminal:
            return self._make_step_result([])
        if self._config is None:
            self._fail(self._config_error or "Process is not initialized.")
            return self._make_step_result(
                [ProcessEvent("fail", data={"reason": self._failed_reason})]
            )

        if self._state is ProcessState.IDLE:
            self._state = ProcessState.RUNNING
        events: List[ProcessEvent] = []
        entity = self._config.point_entity_id

        self._current_step += 1
        if self._current_step >= self._config.max_iterations:
            self._state = ProcessState.COMPLETED
            events.append(ProcessEvent("complete", data={"reason": "max_iterations"}))
            return self._make_step_result(events)

        if self._gradient_norm <= self._config.epsilon:
            self._state = ProcessState.COMPLETED
            events.append(ProcessEvent("settle", entity_id=entity, data=self._settle_data()))
            events.append(ProcessEvent("complete", data={"reason": "converged"}))
            return self._make_step_result(events)

        self._point = self._point - self._config.learning_rate * self._gradient
        self._trajectory.append(self._as_point(self._point))
        self._refresh()
        events.append(
            ProcessEvent(
                "iterate",
                entity_id=entity,
                data={
                    "point": list(self._as_point(self._point)),
                    "loss": self._loss,
                    "gradient": list(self._as_point(self._gradient)),
                    "gradient_norm": self._gradient_norm,
                },
            )
        )

        if self._gradient_norm <= self._config.epsilon:
            self._state = ProcessState.COMPLETED
            events.append(ProcessEvent("settle", entity_id=entity, data=self._settle_data()))
            events.append(ProcessEvent("complete", data={"reason": "converged"}))
        elif self._current_step >= self._config.max_iterations - 1:
            self._state = ProcessState.COMPLETED
            events.append(ProcessEvent("complete", data={"reason": "max_iterations"}))

        return self._make_step_result(events)

    def get_metrics(self) -> Dict[str, float]:
        return {
            "iteration": max(0, self._current_step + 1),
            "loss": self._loss,
            "gradient_norm": self._gradient_norm,
            "trajectory_length": len(self._trajectory),
        }

    def get_snapshot(self) -> ProcessSnapshot:
        return ProcessSnapshot(
            state=self._state,
            current_step=self._current_step,
            data={
                "config": self._config.to_dict() if self._config else None,
                "config_error": self._config_error,
                "current_point": list(self._as_point(self._point)),
                "trajectory": [list(p) for p in self._trajectory],
                "loss": self._loss,
                "gradient": list(self._as_point(self._gradient)),
                "gradient_norm": self._gradient_norm,
                "failed_reason": self._failed_reason,
            },
        )

    def restore_snapshot(self, snapshot: ProcessSnapshot) -> None:
        data = clone_value(snapshot.data)
        self._state = ProcessState(snapshot.state)
        self._current_step = snapshot.current_step
        self._config_error = data.get("config_error")
        raw_config = data.get("config")
        self._config = (
            GradientDescentConfig.from_mapping(raw_config) if raw_config else None
        )
        self._point = np.asarray(data["current_point"], dtype=float)
        self._trajectory = [(float(x), float(y)) for x, y in data["trajectory"]]
        self._loss = float(data["loss"])
        self._gradient = np.asarray(data["gradient"], dtype=float)
        self._gradient_norm = float(data["gradient_norm"])
        self._failed_reason = data.get("failed_reason")
        if self._config is not None:
            self._total_steps = self._config.max_iterations

    # ------------------------------------------------------------------
    def _refresh(self) -> None:
        self._loss = self._evaluate_loss(self._point)
        self._gradient = self._evaluate_gradient(self._point)
        self._gradient_norm = float(np.linalg.norm(self._gradient))

    def _evaluate_loss(self, point: np.ndarray) -> float:
        k = self._config.coefficients if self._config else DEFAULT_COEFFICIENTS
        x, y = point
        return float(
            k["a"] * x * x
            + k["b"] * y * y
            + k["c"] * x * y
            + k["d"] * x
            + k["e"] * y
            + k["f"]
        )

    def _evaluate_gradient(self, point: np.ndarray) -> np.ndarray:
        k = self._config.coefficients if self._config else DEFAULT_COEFFICIENTS
        x, y = point
        return np.array(
            [
                2 * k["a"] * x + k["c"] * y + k["d"],
                2 * k["b"] * y + k["c"] * x + k["e"],
            ]
        )

    def _settle_data(self) -> Dict[str, Any]:
        return {
            "point": list(self._as_point(self._point)),
            "loss": self._loss,
            "gradient_norm": self._gradient_norm,
        }

    def _make_step_result(self, events: List[ProcessEvent]) -> ProcessStepResult:
        return ProcessStepResult(
            step=self._current_step,
            state=GradientDescentState(
                iteration=max(0, self._current_step + 1),
                current_point=self._as_point(self._point),
                trajectory=list(self._trajectory),
                loss=self._loss,
                gradient=self._as_point(self._gradient),
                gradient_norm=self._gradient_norm,
            ),
            metrics=self.get_metrics(),
            events=[clone_value(evt) for evt in events],
        )

    @staticmethod
    def _as_point(vec: np.ndarray) -> Point:
        return float(vec[0]), float(vec[1])


__all__ = [
    "GradientDescentConfig",
    "GradientDescentProcess",
    "GradientDescentState",
]
