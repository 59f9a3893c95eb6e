"""Ray against plane intersection traced over a fixed number of steps."""

from __future__ import annotations

import math
from dataclasses import dataclass
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

Vector3 = Tuple[float, float, float]

EPSILON = 1e-8
UP: Vector3 = (0.0, 1.0, 0.0)


def _finite_or(value: Any, fallback: float) -> float:
    try:
        candidate = float(value)
    except (TypeError, ValueError):
        return fallback
    return candidate if math.isfinite(candidate) else fallback


def _as_vector(vec: Any) -> Vector3:
    return float(vec[0]), float(vec[1]), float(vec[2])


def _vector3(raw: Any, fallback: Vector3 = (0.0, 0.0, 0.0)) -> Vector3:
    if raw is None:
        return fallback
    try:
        x, y, z = raw[0], raw[1], raw[2]
    except (TypeError, IndexError, KeyError):
        return fallback
    return _finite_or(x, 0.0), _finite_or(y, 0.0), _finite_or(z, 0.0)


def _unit(raw: Any) -> Vector3:
    """Return ``raw`` scaled to unit length; degenerate input points up."""

    vec = np.asarray(_vector3(raw), dtype=float)
    length = float(np.linalg.norm(vec))
    if not math.isfinite(length) or length <= EPSILON:
        return UP
    return _as_vector(vec / length)


@dataclass
class RayIntersectionConfig:
    """A ray from ``origin`` along ``direction`` and the plane ``n·p + offset = 0``."""

    origin: Vector3 = (0.0, 0.0, 0.0)
    direction: Vector3 = UP
    plane_normal: Vector3 = UP
    plane_offset: float = 0.0
    max_steps: int = 20
    max_distance: float = 10.0
    ray_entity_id: Optional[str] = None
    hit_entity_id: Optional[str] = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "RayIntersectionConfig":
        """Build a normalised config from a camelCase or snake_case mapping.

        Directions are normalised; malformed numbers fall back to defaults.
        Raises :class:`ConfigError` when ``data`` is not a mapping.
        """

        if not isinstance(data, Mapping):
            raise ConfigError("Invalid config: expected a mapping.")

        def pick(*keys: str) -> Any:
            for key in keys:
                if key in data:
                    return data[key]
            return None

        ray_entity = pick("ray_entity_id", "rayEntityId")
        hit_entity = pick("hit_entity_id", "hitEntityId")
        return cls(
            origin=_vector3(pick("origin")),
            direction=_unit(pick("direction")),
            plane_normal=_unit(pick("plane_normal", "planeNormal")),
            plane_offset=_finite_or(pick("plane_offset", "planeOffset"), 0.0),
            max_steps=max(1, math.floor(_finite_or(pick("max_steps", "maxSteps"), 20))),
            max_distance=max(
                0.001, _finite_or(pick("max_distance", "maxDistance"), 10.0)
            ),
            ray_entity_id=ray_entity if isinstance(ray_entity, str) else None,
            hit_entity_id=hit_entity if isinstance(hit_entity, str) else None,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "origin": list(self.origin),
            "direction": list(self.direction),
            "plane_normal": list(self.plane_normal),
            "plane_offset": self.plane_offset,
            "max_steps": self.max_steps,
            "max_distance": self.max_distance,
            "ray_entity_id": self.ray_entity_id,
            "hit_entity_id": self.hit_entity_id,
        }


@dataclass
class RayIntersectionState:
    status: str
    t: float
    point: Vector3
    progress: float


def intersect_plane(
    config: RayIntersectionConfig,
) -> Tuple[Optional[float], Optional[Vector3]]:
    """Return the ray parameter and point where the ray meets the plane.

    Rays parallel to the plane, and planes behind the origin, give
    ``(None, None)``.
    """

    normal = np.asarray(config.plane_normal, dtype=float)
    origin = np.asarray(config.origin, dtype=float)
    direction = np.asarray(config.direction, dtype=float)
    denom = float(np.dot(normal, direction))
    if abs(denom) <= EPSILON:
        return None, None
    t = -(float(np.dot(normal, origin)) + config.plane_offset) / denom
    if not math.isfinite(t) or t < 0:
        return None, None
    return t, _as_vector(origin + direction * t)


class RayIntersectionProcess(Process):
    """Advance a point along a ray until it reaches a plane or ``max_distance``.

    The intersection is solved once on reset. Each step moves the traced point
    another ``1 / max_steps`` of the way and emits ``trace``; the last step
    emits ``hit`` or ``miss`` followed by ``complete``.
    """

    type = "ray_intersection"

    def __init__(self, process_id: str | None = "ray-intersection") -> None:
        super().__init__(process_id)
        self._config: RayIntersectionConfig | None = None
        self._config_error: str | None = None
        self._hit_t: float | None = None
        self._hit_point: Vector3 | None = None
        self._current_t = 0.0
        self._current_point: Vector3 = (0.0, 0.0, 0.0)

    @property
    def config(self) -> RayIntersectionConfig | None:
        return clone_value(self._config)

    @property
    def has_hit(self) -> bool:
        return self._hit_t is not None

    def init(self, config: RayIntersectionConfig | Mapping[str, Any] | None) -> None:
        if isinstance(config, RayIntersectionConfig):
            config = config.to_dict()
        try:
            self._config = RayIntersectionConfig.from_mapping(
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
        self._current_t = 0.0

        if self._config is None:
            self._total_steps = 0
            self._hit_t, self._hit_point = None, None
            self._fail(self._config_error or "Process is not initialized.")
            return

        self._total_steps = self._config.max_steps
        self._current_point = self._config.origin
        self._hit_t, self._hit_point = intersect_plane(self._config)

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
        self._current_step += 1

        if self._current_step >= self._total_steps:
            self._state = ProcessState.COMPLETED
            return self._make_step_result(
                [ProcessEvent("complete", data={"reason": "max_steps"})]
            )

        config = self._config
        progress = (self._current_step + 1) / self._total_steps
        distance = self._hit_t if self._hit_t is not None else config.max_distance
        self._current_t = max(0.0, distance * progress)
        self._current_point = _as_vector(
            np.asarray(config.origin) + np.asarray(config.direction) * self._current_t
        )
        events = [
            ProcessEvent(
                "trace",
                entity_id=config.ray_entity_id,
                data={
                    "t": self._current_t,
                    "point": list(self._current_point),
                    "progress": progress,
                },
            )
        ]

        if progress >= 1:
            self._state = ProcessState.COMPLETED
            if self._hit_t is not None and self._hit_point is not None:
                self._current_t = self._hit_t
                self._current_point = self._hit_point
                events.append(
                    ProcessEvent(
                        "hit",
                        entity_id=config.hit_entity_id,
                        data={"t": self._hit_t, "point": list(self._hit_point)},
                    )
                )
            else:
                events.append(
                    ProcessEvent(
                        "miss",
                        entity_id=config.ray_entity_id,
                        data={"max_distance": config.max_distance},
                    )
                )
            reason = "hit" if self.has_hit else "miss"
            events.append(ProcessEvent("complete", data={"reason": reason}))

        return self._make_step_result(events)

    def get_metrics(self) -> Dict[str, float]:
        return {
            "step": max(0, self._current_step + 1),
            "total_steps": self._total_steps,
            "progress": self._progress(),
            "hit_count": 1 if self.has_hit else 0,
            "closest_t": self._hit_t if self._hit_t is not None else math.inf,
        }

    def get_snapshot(self) -> ProcessSnapshot:
        return ProcessSnapshot(
            state=self._state,
            current_step=self._current_step,
            data={
                "config": self._config.to_dict() if self._config else None,
                "config_error": self._config_error,
                "hit_t": self._hit_t,
                "hit_point": list(self._hit_point) if self._hit_point else None,
                "current_t": self._current_t,
                "current_point": list(self._current_point),
                "total_steps": self._total_steps,
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
            RayIntersectionConfig.from_mapping(raw_config) if raw_config else None
        )
        self._hit_t = data["hit_t"]
        hit_point = data["hit_point"]
        self._hit_point = _as_vector(hit_point) if hit_point is not None else None
        self._current_t = float(data["current_t"])
        self._current_point = _as_vector(data["current_point"])
        self._failed_reason = data.get("failed_reason")
        self._total_steps = (
            self._config.max_steps if self._config else data.get("total_steps", 0)
        )

    # ------------------------------------------------------------------
    def _progress(self) -> float:
        if self._total_steps <= 0:
            return 0.0
        return min(1.0, max(0.0, (self._current_step + 1) / self._total_steps))

    def _status(self) -> str:
        if self._state is not ProcessState.COMPLETED:
            return "tracing"
        return "hit" if self.has_hit else "miss"

    def _make_step_result(self, events: List[ProcessEvent]) -> ProcessStepResult:
        return ProcessStepResult(
            step=self._current_step,
            state=RayIntersectionState(
                status=self._status(),
                t=self._current_t,
                point=self._current_point,
                progress=self._progress(),
            ),
            metrics=self.get_metrics(),
            events=[clone_value(evt) for evt in events],
        )


__all__ = [
    "RayIntersectionConfig",
    "RayIntersectionProcess",
    "RayIntersectionState",
    "intersect_plane",
]
