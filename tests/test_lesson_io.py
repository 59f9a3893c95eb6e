import json

import pytest

from Algo_Trace.config import Config
from Algo_Trace.lesson import (
    LessonModel,
    build_process,
    build_runtime,
    load_lesson,
    save_lesson,
)
from Algo_Trace.process import BFSProcess, GradientDescentProcess, ProcessState
from Algo_Trace.timeline import EventTrack, StepTrack, TrackKind

LESSON = {
    "process": {
        "type": "bfs",
        "id": "walker",
        "config": {"startNodeId": "A", "adjacency": {"A": ["B"], "B": []}},
    },
    "timeline": {
        "duration": 6,
        "loop": True,
        "tracks": [
            {"id": "steps", "kind": "step"},
            {
                "id": "events",
                "kind": "event",
                "processId": "walker",
                "keyframes": [{"time": 1.0}, {"time": 5.0}],
            },
        ],
    },
}


def test_load_json_and_build(tmp_path):
    path = tmp_path / "lesson.json"
    path.write_text(json.dumps(LESSON))
    lesson = load_lesson(str(path))

    assert lesson.process_id == "walker"
    assert lesson.duration == 6.0
    assert lesson.tracks[1].process_id == "walker"

    proc = build_process(lesson)
    assert isinstance(proc, BFSProcess)
    assert proc.id == "walker"
    assert proc.state is ProcessState.IDLE
    assert proc.total_steps == 2

    runtime = build_runtime(lesson)
    assert runtime.duration == 6.0
    assert runtime.loop is True
    assert isinstance(runtime.get_track("steps"), StepTrack)
    events = runtime.get_track("events")
    assert isinstance(events, EventTrack)
    assert events.kind is TrackKind.EVENT
    assert [kf.time for kf in events.get_keyframes()] == [1.0, 5.0]


def test_load_yaml_uses_default_duration(tmp_path):
    Config.default_duration = 3.0
    path = tmp_path / "lesson.yaml"
    path.write_text(
        "process:\n"
        "  type: gradient_descent\n"
        "  config:\n"
        "    startPoint: [1, 1]\n"
        "timeline:\n"
        "  tracks:\n"
        "    - {id: states, kind: state}\n"
    )
    lesson = load_lesson(str(path))
    assert lesson.duration == 3.0
    assert isinstance(build_process(lesson), GradientDescentProcess)


def test_save_round_trip(tmp_path):
    lesson = LessonModel.from_dict(LESSON)
    out = tmp_path / "out.json"
    save_lesson(str(out), lesson)
    saved = json.loads(out.read_text())
    assert saved["process"]["id"] == "walker"
    assert saved["timeline"]["tracks"][1]["process_id"] == "walker"
    assert "process_id" not in saved["timeline"]["tracks"][0]
    assert load_lesson(str(out)) == lesson


@pytest.mark.parametrize(
    "data",
    [
        [],
        {"timeline": {}},
        {"process": {"config": {}}},
        {"process": {"type": "bfs", "config": []}},
        {"process": {"type": "bfs"}, "timeline": []},
        {"process": {"type": "bfs"}, "timeline": {"duration": "long"}},
        {"process": {"type": "bfs"}, "timeline": {"duration": True}},
        {"process": {"type": "bfs"}, "timeline": {"tracks": {}}},
        {"process": {"type": "bfs"}, "timeline": {"tracks": [{"id": "t"}]}},
        {"process": {"type": "bfs"}, "timeline": {"tracks": [{"id": "t", "kind": "color"}]}},
        {
            "process": {"type": "bfs"},
            "timeline": {"tracks": [{"id": "t", "kind": "step", "keyframes": [1]}]},
        },
    ],
)
def test_invalid_lessons_raise(tmp_path, data):
    path = tmp_path / "bad.json"
    path.write_text(json.dumps(data))
    with pytest.raises(ValueError):
        load_lesson(str(path))


def test_unknown_process_type(tmp_path):
    path = tmp_path / "lesson.json"
    path.write_text(json.dumps({"process": {"type": "dfs"}}))
    lesson = load_lesson(str(path))
    with pytest.raises(ValueError):
        build_process(lesson)


@pytest.mark.parametrize(
    "keyframe", [{"value": "x"}, {"time": "1"}, {"time": None}, {"time": True}]
)
def test_keyframes_need_numeric_times(tmp_path, keyframe):
    data = {
        "process": {"type": "bfs"},
        "timeline": {"tracks": [{"id": "e", "kind": "event", "keyframes": [keyframe]}]},
    }
    path = tmp_path / "bad.json"
    path.write_text(json.dumps(data))
    with pytest.raises(ValueError, match="numeric 'time'"):
        load_lesson(str(path))
