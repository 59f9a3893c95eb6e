"""In-process timeline host holding tracks and a playback clock."""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, List, Mapping, Optional

from ..config import Config
from .tracks import Track, TrackKind, keyframe_time


class PlayState(str, Enum):
    IDLE = "idle"
    PLAYING = "playing"
    PAUSED = "paused"


@dataclass
class TimelineMarker:
    time: float
    label: str
    description: Optional[str] = None
    color: Optional[str] = None


LISTENER_TYPES = ("tick", "event", "state_change", "end")


class TimelineRuntime:
    """Timeline of fixed ``duration`` driven by explicit :meth:`advance` calls.

    Parameters
    ----------
    duration:
        Length of the timeline in seconds.
    loop:
        Wrap to ``0`` instead of stopping when the end is reached.
    speed:
        Multiplier applied to the ``dt`` passed to :meth:`advance`.
    markers:
        Optional labelled positions shown by hosts.
    """

    def __init__(
        self,
        duration: float | None = None,
        *,
        loop: bool = False,
        speed: float = 1.0,
        markers: List[TimelineMarker] | None = None,
    ) -> None:
        self.duration = float(
            Config.default_duration if duration is None else duration
        )
        self.loop = loop
        self.speed = speed
        self._tracks: Dict[str, Track] = {}
        self._time = 0.0
        self._state = PlayState.IDLE
        self._markers = sorted(markers or [], key=lambda m: m.time)
        self._handlers: Dict[str, List[Callable]] = {t: [] for t in LISTENER_TYPES}

    # ---- markers ----
    def add_marker(self, marker: TimelineMarker) -> None:
        self._markers.append(marker)
        self._markers.sort(key=lambda m: m.time)

    def remove_marker(self, time: float) -> None:
        self._markers = [m for m in self._markers if m.time != time]

    def get_markers(self) -> List[TimelineMarker]:
        return list(self._markers)

    # ---- tracks ----
    def add_track(self, track: Track) -> "TimelineRuntime":
        self._tracks[track.id] = track
        return self

    def get_track(self, track_id: str) -> Track | None:
        return self._tracks.get(track_id)

    def get_tracks(self) -> Mapping[str, Track]:
        return self._tracks

    # ---- playback ----
    @property
    def time(self) -> float:
        return self._time

    @property
    def state(self) -> PlayState:
        return self._state

    @property
    def progress(self) -> float:
        return self._time / self.duration if self.duration > 0 else 0.0

    def play(self) -> None:
        if self._state is PlayState.PLAYING:
            return
        if self._time >= self.duration:
            self._seek_internal(0.0)
        self._set_state(PlayState.PLAYING)

    def pause(self) -> None:
        if self._state is not PlayState.PLAYING:
            return
        self._set_state(PlayState.PAUSED)

    def stop(self) -> None:
        self._seek_internal(0.0)
        self._set_state(PlayState.IDLE)

    def seek(self, time: float) -> None:
        self._seek_internal(max(0.0, min(self.duration, time)))
        self._emit("tick", self._time)

    def advance(self, dt: float) -> None:
        """Move the clock forward by ``dt`` seconds while playing."""

        if self._state is not PlayState.PLAYING:
            return
        self._time = min(self._time + dt * self.speed, self.duration)
        self._emit("tick", self._time)
        self._drain_events()

        if self._time >= self.duration:
            if self.loop:
                self._seek_internal(0.0)
            else:
                self._set_state(PlayState.IDLE)
                self._emit("end")

    def step_forward(self) -> None:
        """Seek to the next step keyframe on any step track."""
        nxt = self._nearest_step_time(1)
        if nxt is not None:
            self.seek(nxt)

    def step_backward(self) -> None:
        """Seek to the previous step keyframe on any step track."""
        prev = self._nearest_step_time(-1)
        if prev is not None:
            self.seek(prev)

    # ---- listeners ----
    def on(self, listener_type: str, handler: Callable) -> Callable[[], None]:
        """Register ``handler`` and return a callable removing it again."""

        if listener_type not in self._handlers:
            raise ValueError(f"unknown listener type: {listener_type}")
        self._handlers[listener_type].append(handler)

        def _off() -> None:
            handlers = self._handlers[listener_type]
            if handler in handlers:
                handlers.remove(handler)

        return _off

    def dispose(self) -> None:
        self._set_state(PlayState.IDLE)
        for handlers in self._handlers.values():
            handlers.clear()
        self._tracks.clear()

    # ---- internal ----
    def _emit(self, listener_type: str, *args: object) -> None:
        for handler in list(self._handlers[listener_type]):
            handler(*args)

    def _drain_events(self) -> None:
        for track in self._tracks.values():
            if track.kind is TrackKind.EVENT:
                for evt in track.drain(self._time):
                    self._emit("event", evt)

    def _seek_internal(self, time: float) -> None:
        self._time = time
        for track in self._tracks.values():
            if track.kind is TrackKind.EVENT:
                track.reset(time)

    def _set_state(self, state: PlayState) -> None:
        if state is self._state:
            return
        self._state = state
        self._emit("state_change", state)

    def _nearest_step_time(self, direction: int) -> float | None:
        eps = Config.step_epsilon
        best: float | None = None
        for track in self._tracks.values():
            if track.kind is not TrackKind.STEP:
                continue
            for kf in track.get_keyframes():
                time = keyframe_time(kf)
                if math.isinf(time):
                    continue
                if direction > 0 and time > self._time + eps:
                    if best is None or time < best:
                        best = time
                elif direction < 0 and time < self._time - eps:
                    if best is None or time > best:
                        best = time
        return best


__all__ = ["LISTENER_TYPES", "PlayState", "TimelineMarker", "TimelineRuntime"]
