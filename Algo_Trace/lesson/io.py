"""File IO helpers for :mod:`Algo_Trace.lesson`."""

from __future__ import annotations

import json
import math
from typing import Any

import yaml

from ..config import Config
from ..process import Process, create_process
from ..timeline.runtime import TimelineRuntime
from ..timeline.tracks import EventTrack, Keyframe, StateTrack, StepTrack, Track, TrackKind
from .model import LessonModel

_TRACK_CLASSES: dict[TrackKind, type[Track]] = {
    TrackKind.STEP: StepTrack,
    TrackKind.STATE: StateTrack,
    TrackKind.EVENT: EventTrack,
}


def load_lesson(path: str) -> LessonModel:
    """Load a lesson from a JSON or YAML file."""
    with open(path) as f:
        if path.endswith((".yml", ".yaml")):
            data = yaml.safe_load(f)
        else:
            data = json.load(f)
    _validate_lesson(data)
    return LessonModel.from_dict(data, default_duration=Config.default_duration)


def save_lesson(path: str, lesson: LessonModel) -> None:
    """Write ``lesson`` to ``path`` in JSON format."""
    with open(path, "w") as f:
        json.dump(lesson.to_dict(), f, indent=2)


def build_process(lesson: LessonModel) -> Process:
    """Create the lesson's process and initialise it with its config."""
    process = create_process(lesson.process_type, lesson.process_id)
    process.init(lesson.process_config)
    return process


def build_runtime(lesson: LessonModel) -> TimelineRuntime:
    """Create a :class:`TimelineRuntime` holding the lesson's tracks."""
    runtime = TimelineRuntime(lesson.duration, loop=lesson.loop)
    for spec in lesson.tracks:
        track = _TRACK_CLASSES[TrackKind(spec.kind)](spec.id, spec.process_id)
        for kf in spec.keyframes:
            track.add_keyframe(Keyframe(time=kf.get("time"), value=kf.get("value")))
        runtime.add_track(track)
    return runtime


def _is_time(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


def _validate_lesson(data: Any) -> None:
    if not isinstance(data, dict):
        raise ValueError("Lesson file must contain an object")
    if "process" not in data or not isinstance(data["process"], dict):
        raise ValueError("Lesson file must contain a 'process' object")
    process = data["process"]
    if "type" not in process:
        raise ValueError("process missing 'type'")
    if "config" in process and not isinstance(process["config"], dict):
        raise ValueError("'config' must be an object")
    timeline = data.get("timeline", {})
    if not isinstance(timeline, dict):
        raise ValueError("'timeline' must be an object")
    if "duration" in timeline and not _is_time(timeline["duration"]):
        raise ValueError("'duration' must be a number")
    tracks = timeline.get("tracks", [])
    if not isinstance(tracks, list):
        raise ValueError("'tracks' must be a list")
    kinds = {k.value for k in TrackKind}
    for track in tracks:
        if not isinstance(track, dict):
            raise ValueError("track entries must be objects")
        if "id" not in track or "kind" not in track:
            raise ValueError("track missing 'id' or 'kind'")
        if track["kind"] not in kinds:
            raise ValueError(f"unknown track kind: {track['kind']}")
        keyframes = track.get("keyframes", [])
        if not isinstance(keyframes, list) or not all(
            isinstance(kf, dict) for kf in keyframes
        ):
            raise ValueError("'keyframes' must be a list of objects")
        for kf in keyframes:
            if not _is_time(kf.get("time")):
                raise ValueError(
                    f"keyframe in track {track['id']!r} needs a numeric 'time'"
                )
