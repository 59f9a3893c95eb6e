from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, TypedDict

# Reusable typed mappings for lesson files

KeyframeData = TypedDict("KeyframeData", {"time": float, "value": Any}, total=False)

TrackData = TypedDict(
    "TrackData",
    {
        "id": str,
        "kind": str,
        "process_id": str,
        "keyframes": List[KeyframeData],
    },
    total=False,
)

ProcessData = TypedDict(
    "ProcessData",
    {"type": str, "id": str, "config": Dict[str, Any]},
    total=False,
)

LessonDict = TypedDict(
    "LessonDict",
    {
        "process": ProcessData,
        "timeline": Dict[str, Any],
    },
    total=False,
)


@dataclass
class TrackSpec:
    """Declared timeline track with optional pre-authored keyframe times."""

    id: str
    kind: str
    process_id: Optional[str] = None
    keyframes: List[KeyframeData] = field(default_factory=list)


@dataclass
class LessonModel:
    """In-memory representation of a lesson file."""

    process_type: str = "bfs"
    process_id: Optional[str] = None
    process_config: Dict[str, Any] = field(default_factory=dict)
    duration: float = 10.0
    loop: bool = False
    tracks: List[TrackSpec] = field(default_factory=list)

    def to_dict(self) -> LessonDict:
        """Serialize the model to a plain ``dict`` suitable for JSON."""
        process: ProcessData = {"type": self.process_type, "config": self.process_config}
        if self.process_id is not None:
            process["id"] = self.process_id
        return {
            "process": process,
            "timeline": {
                "duration": self.duration,
                "loop": self.loop,
                "tracks": [
                    {
                        "id": t.id,
                        "kind": t.kind,
                        **({"process_id": t.process_id} if t.process_id else {}),
                        "keyframes": list(t.keyframes),
                    }
                    for t in self.tracks
                ],
            },
        }

    @classmethod
    def from_dict(cls, data: LessonDict, default_duration: float = 10.0) -> "LessonModel":
        """Construct a :class:`LessonModel` from ``data``."""
        process = data.get("process", {})
        timeline = data.get("timeline", {})
        model = cls(
            process_type=process.get("type", "bfs"),
            process_id=process.get("id"),
            process_config=dict(process.get("config", {})),
            duration=float(timeline.get("duration", default_duration)),
            loop=bool(timeline.get("loop", False)),
        )
        for track in timeline.get("tracks", []):
            model.tracks.append(
                TrackSpec(
                    id=track["id"],
                    kind=track["kind"],
                    process_id=track.get("process_id", track.get("processId")),
                    keyframes=list(track.get("keyframes", [])),
                )
            )
        return model
