"""Timeline tracks and the keyframe payloads written by process bindings.

Three track kinds exist. Each one knows how to turn a
:class:`~Algo_Trace.process.base.ProcessRunResult` into keyframes through its
``bind`` method; the binder only decides which tracks take part and at which
times their keyframes land.
"""

from __future__ import annotations

import math
from bisect import insort
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import (
    TYPE_CHECKING,
    Any,
    Iterable,
    List,
    Mapping,
    Optional,
    Sequence,
    Tuple,
)

from ..utils import clone_value

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from ..process.base import Process, ProcessRunResult, ProcessStepResult


class TrackKind(str, Enum):
    """Closed set of track variants understood by the binder."""

    STEP = "step"
    STATE = "state"
    EVENT = "event"


@dataclass
class Keyframe:
    time: float
    value: Any = None


@dataclass
class StepData:
    index: int
    label: Optional[str] = None
    payload: Any = None


@dataclass
class StateData:
    state: str
    trigger: Optional[str] = None
    payload: Any = None


@dataclass
class TimelineEvent:
    name: str
    payload: Any = None


def keyframe_time(kf: Keyframe) -> float:
    """Return ``kf.time`` as a float; unusable times sort last and never fire."""

    try:
        value = float(kf.time)
    except (TypeError, ValueError):
        return math.inf
    return value if not math.isnan(value) else math.inf


class Track(ABC):
    """Time ordered keyframe container.

    Keyframes stay sorted by time; keyframes sharing a time keep their
    insertion order.
    """

    kind: TrackKind

    def __init__(self, track_id: str, process_id: str | None = None) -> None:
        self.id = track_id
        self.process_id = process_id
        self._keyframes: List[Keyframe] = []

    def add_keyframe(self, kf: Keyframe) -> "Track":
        insort(self._keyframes, kf, key=keyframe_time)
        return self

    def set_keyframes(self, keyframes: Iterable[Keyframe]) -> "Track":
        """Replace every keyframe with ``keyframes``, sorted once."""

        self.clear_keyframes()
        self._keyframes = sorted(keyframes, key=keyframe_time)
        return self

    def remove_keyframe(self, time: float) -> "Track":
        self._keyframes = [k for k in self._keyframes if k.time != time]
        return self

    def get_keyframes(self) -> List[Keyframe]:
        return self._keyframes

    def clear_keyframes(self) -> "Track":
        self._keyframes = []
        return self

    @abstractmethod
    def evaluate(self, time: float) -> Any:
        """Return the value active at ``time``."""

    @abstractmethod
    def bind(
        self, run: "ProcessRunResult", times: Sequence[float], process: "Process"
    ) -> None:
        """Replace the keyframes with ones derived from ``run``."""

    def _find_surrounding(
        self, time: float
    ) -> Tuple[Optional[Keyframe], Optional[Keyframe]]:
        prev: Optional[Keyframe] = None
        nxt: Optional[Keyframe] = None
        for kf in self._keyframes:
            if keyframe_time(kf) <= time:
                prev = kf
            elif nxt is None:
                nxt = kf
        return prev, nxt

    def __repr__(self) -> str:  # pragma: no cover - debugging aid
        return (
            f"{type(self).__name__}(id={self.id!r}, process_id={self.process_id!r}, "
            f"keyframes={len(self._keyframes)})"
        )


class StepTrack(Track):
    """Discrete step track; each keyframe is one process step."""

    kind = TrackKind.STEP

    @property
    def total_steps(self) -> int:
        return len(self._keyframes)

    def evaluate(self, time: float) -> StepData | None:
        if not self._keyframes:
            return None
        prev, _ = self._find_surrounding(time)
        return (prev or self._keyframes[0]).value

    def time_of_step(self, index: int) -> float | None:
        if 0 <= index < len(self._keyframes):
            return self._keyframes[index].time
        return None

    def bind(
        self, run: "ProcessRunResult", times: Sequence[float], process: "Process"
    ) -> None:
        keyframes: List[Keyframe] = []
        for i, result in enumerate(run.steps):
            value = StepData(
                index=i,
                label=resolve_step_label(result, i),
                payload={
                    "node_id": extract_node_id(result.state),
                    "state": clone_value(result.state),
                    "metrics": clone_value(result.metrics),
                    "events": clone_value(result.events),
                },
            )
            keyframes.append(Keyframe(time=times[i], value=value))
        self.set_keyframes(keyframes)


class StateTrack(Track):
    """Discrete state timeline; each keyframe is a process state change."""

    kind = TrackKind.STATE

    def evaluate(self, time: float) -> StateData | None:
        if not self._keyframes:
            return None
        prev, _ = self._find_surrounding(time)
        return (prev or self._keyframes[0]).value

    def bind(
        self, run: "ProcessRunResult", times: Sequence[float], process: "Process"
    ) -> None:
        steps = run.steps

        if not steps:
            value = StateData(
                state=run.state.value,
                trigger="process",
                payload={
                    "metrics": clone_value(run.metrics),
                    "failed_reason": run.failed_reason,
                },
            )
            self.set_keyframes([Keyframe(time=times[0] if times else 0.0, value=value)])
            return

        keyframes: List[Keyframe] = []
        last = len(steps) - 1
        for i, result in enumerate(steps):
            is_last = i == last
            value = StateData(
                state=resolve_state_name(result, run, is_last),
                trigger=result.events[0].type if result.events else None,
                payload={
                    "step": result.step,
                    "state": clone_value(result.state),
                    "metrics": clone_value(result.metrics),
                    "events": clone_value(result.events),
                    "process_state": run.state.value if is_last else "running",
                    "failed_reason": run.failed_reason if is_last else None,
                },
            )
            keyframes.append(Keyframe(time=times[i], value=value))
        self.set_keyframes(keyframes)


class EventTrack(Track):
    """Fires discrete events once as playback passes their time."""

    kind = TrackKind.EVENT

    def __init__(self, track_id: str, process_id: str | None = None) -> None:
        super().__init__(track_id, process_id)
        self._fired: set[int] = set()

    def clear_keyframes(self) -> "EventTrack":
        super().clear_keyframes()
        self._fired.clear()
        return self

    def remove_keyframe(self, time: float) -> "EventTrack":
        super().remove_keyframe(time)
        live = {id(kf) for kf in self._keyframes}
        self._fired &= live
        return self

    def evaluate(self, time: float) -> TimelineEvent | None:
        """Return the earliest unfired event at or before ``time``."""

        for kf in self._keyframes:
            if keyframe_time(kf) <= time and id(kf) not in self._fired:
                self._fired.add(id(kf))
                return kf.value
        return None

    def drain(self, time: float) -> List[TimelineEvent]:
        """Return and mark every unfired event at or before ``time``."""

        out: List[TimelineEvent] = []
        for kf in self._keyframes:
            if keyframe_time(kf) <= time and id(kf) not in self._fired:
                self._fired.add(id(kf))
                out.append(kf.value)
        return out

    def reset(self, up_to_time: float = 0.0) -> None:
        """Re-arm events, keeping those strictly before ``up_to_time`` fired."""

        self._fired = {
            id(kf) for kf in self._keyframes if keyframe_time(kf) < up_to_time
        }

    def bind(
        self, run: "ProcessRunResult", times: Sequence[float], process: "Process"
    ) -> None:
        steps = run.steps
        first_time = times[0] if times else 0.0
        final_time = times[-1] if times else first_time

        keyframes = [
            Keyframe(
                time=first_time,
                value=TimelineEvent(
                    name="process_state",
                    payload={"process_id": process.id, "state": "running"},
                ),
            )
        ]

        for i, step in enumerate(steps):
            time = times[i] if i < len(times) else first_time
            for evt in step.events:
                keyframes.append(
                    Keyframe(
                        time=time,
                        value=TimelineEvent(
                            name=evt.type,
                            payload={
                                "process_id": process.id,
                                "process_type": process.type,
                                "step": step.step,
                                "entity_id": evt.entity_id,
                                "data": clone_value(evt.data),
                                "state": clone_value(step.state),
                                "metrics": clone_value(step.metrics),
                            },
                        ),
                    )
                )

        keyframes.append(
            Keyframe(
                time=final_time,
                value=TimelineEvent(
                    name="process_state",
                    payload={
                        "process_id": process.id,
                        "state": run.state.value,
                        "failed_reason": run.failed_reason,
                        "metrics": clone_value(run.metrics),
                    },
                ),
            )
        )
        self.set_keyframes(keyframes)


# ---------------------------------------------------------------------------
# payload helpers


def _lookup(state: Any, *keys: str) -> Any:
    for key in keys:
        if isinstance(state, Mapping):
            value = state.get(key)
        else:
            value = getattr(state, key, None)
        if value is not None:
            return value
    return None


def extract_node_id(state: Any) -> str | None:
    """Return the node a step state points at, if any."""

    value = _lookup(state, "current_node", "node_id")
    return value if isinstance(value, str) else None


def resolve_step_label(step: "ProcessStepResult", index: int) -> str:
    """Label a step by its node, an explicit ``label`` or its position."""

    node_id = extract_node_id(step.state)
    if node_id:
        return node_id
    label = _lookup(step.state, "label")
    if isinstance(label, str) and label:
        return label
    return f"S{index + 1}"


def resolve_state_name(
    step: "ProcessStepResult", run: "ProcessRunResult", is_last: bool
) -> str:
    """Name the discrete state shown for ``step``."""

    types = {evt.type for evt in step.events}
    if "fail" in types:
        return "failed"
    if "hit" in types:
        return "hit"
    if is_last:
        return run.state.value
    return "running"


__all__ = [
    "EventTrack",
    "Keyframe",
    "StateData",
    "StateTrack",
    "StepData",
    "StepTrack",
    "TimelineEvent",
    "Track",
    "TrackKind",
    "extract_node_id",
    "keyframe_time",
    "resolve_state_name",
    "resolve_step_label",
]
