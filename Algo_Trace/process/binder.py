"""Compile a process run into keyframes on the tracks bound to it."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Protocol

from ..config import Config
from ..logging import log_entry
from ..logging_models import BindingLog, BindingPayload
from ..timeline.allocation import clamp, find_matching_times, resolve_times
from ..timeline.tracks import Track, TrackKind
from .base import Process

logger = logging.getLogger(__name__)


class TimelineHost(Protocol):
    """Subset of the timeline host read by the binder."""

    duration: float

    def get_tracks(self) -> Mapping[str, Track]: ...


@dataclass
class BindingResult:
    process_id: str
    step_track_ids: List[str] = field(default_factory=list)
    state_track_ids: List[str] = field(default_factory=list)
    event_track_ids: List[str] = field(default_factory=list)
    generated_steps: int = 0


def matches_process(
    track_process_id: str | None, process: Process, allow_unbound: bool
) -> bool:
    """Return ``True`` when a track tagged ``track_process_id`` belongs to ``process``.

    Untagged tracks match only when ``allow_unbound`` is set.
    """

    if not track_process_id:
        return allow_unbound
    return track_process_id in (process.id, process.type)


class ProcessTimelineBinder:
    """Run a process and rewrite the step, state and event tracks bound to it.

    The binder keeps no state between calls. Each binding resets the process,
    runs it to a terminal state, allocates one time per step and resets the
    process again so it is idle for later replays. Tracks bound to other
    processes are left untouched.
    """

    @classmethod
    def bind(cls, runtime: TimelineHost, process: Process) -> BindingResult:
        duration = max(float(runtime.duration), 0.0)
        bound = cls.collect_tracks(runtime.get_tracks().values(), process)
        step_tracks = bound[TrackKind.STEP]
        state_tracks = bound[TrackKind.STATE]
        event_tracks = bound[TrackKind.EVENT]

        process.reset()
        run = process.run()
        count = len(run.steps)

        for track in step_tracks:
            times = resolve_times(
                [kf.time for kf in track.get_keyframes()], count, duration
            )
            track.bind(run, times, process)
        for track in state_tracks:
            times = resolve_times(
                [kf.time for kf in track.get_keyframes()], max(count, 1), duration
            )
            track.bind(run, times, process)

        reference = cls.resolve_reference_times(
            step_tracks, state_tracks, max(count, 1), duration
        )
        for track in event_tracks:
            if len(reference) == max(count, 1):
                times = [clamp(t, 0.0, duration) for t in reference]
            else:
                times = resolve_times(
                    [kf.time for kf in track.get_keyframes()],
                    max(count, 1),
                    duration,
                )
            track.bind(run, times, process)

        process.reset()

        result = BindingResult(
            process_id=process.id,
            step_track_ids=[t.id for t in step_tracks],
            state_track_ids=[t.id for t in state_tracks],
            event_track_ids=[t.id for t in event_tracks],
            generated_steps=count,
        )
        logger.debug(
            "bound %s (%s): %d steps, state=%s",
            process.id,
            process.type,
            count,
            run.state.value,
        )
        if Config.is_log_enabled("binding", "process_bound"):
            log_entry(
                "binding",
                "process_bound",
                BindingLog(
                    correlation_id=process.id,
                    payload=BindingPayload(duration=duration, **vars(result)),
                ),
            )
        return result

    @staticmethod
    def collect_tracks(tracks, process: Process) -> Dict[TrackKind, List[Track]]:
        """Group the tracks bound to ``process`` by kind.

        Step and state tracks accept untagged tracks; event tracks need an
        explicit tag.
        """

        bound: Dict[TrackKind, List[Track]] = {kind: [] for kind in TrackKind}
        for track in tracks:
            kind = track.kind
            if kind is TrackKind.STEP or kind is TrackKind.STATE:
                allow_unbound = True
            elif kind is TrackKind.EVENT:
                allow_unbound = False
            else:  # pragma: no cover - closed enum
                continue
            if matches_process(track.process_id, process, allow_unbound):
                bound[kind].append(track)
        return bound

    @staticmethod
    def resolve_reference_times(
        step_tracks: List[Track],
        state_tracks: List[Track],
        count: int,
        duration: float,
    ) -> List[float]:
        """Return per-step times shared with event tracks, or ``[]``."""

        from_step = find_matching_times(
            [[kf.time for kf in t.get_keyframes()] for t in step_tracks],
            count,
            duration,
        )
        if len(from_step) == count:
            return from_step
        from_state = find_matching_times(
            [[kf.time for kf in t.get_keyframes()] for t in state_tracks],
            count,
            duration,
        )
        if len(from_state) == count:
            return from_state
        return []


__all__ = [
    "BindingResult",
    "ProcessTimelineBinder",
    "TimelineHost",
    "matches_process",
]
