"""Timeline tracks, time allocation and the in-process timeline host."""

from .allocation import find_matching_times, resolve_times, uniform_times
from .runtime import PlayState, TimelineMarker, TimelineRuntime
from .tracks import (
    EventTrack,
    Keyframe,
    StateData,
    StateTrack,
    StepData,
    StepTrack,
    TimelineEvent,
    Track,
    TrackKind,
)

__all__ = [
    "EventTrack",
    "Keyframe",
    "PlayState",
    "StateData",
    "StateTrack",
    "StepData",
    "StepTrack",
    "TimelineEvent",
    "TimelineMarker",
    "TimelineRuntime",
    "Track",
    "TrackKind",
    "find_matching_times",
    "resolve_times",
    "uniform_times",
]
