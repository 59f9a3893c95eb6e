import pytest

from Algo_Trace.config import Config
from Algo_Trace.process import BFSProcess, ProcessTimelineBinder
from Algo_Trace.timeline import (
    EventTrack,
    Keyframe,
    PlayState,
    StateTrack,
    StepTrack,
    TimelineEvent,
    TimelineMarker,
    TimelineRuntime,
)


def _bound_runtime(adjacency, duration=10.0, **kwargs):
    runtime = TimelineRuntime(duration, **kwargs)
    runtime.add_track(StepTrack("steps"))
    runtime.add_track(StateTrack("states"))
    runtime.add_track(EventTrack("events", "bfs"))
    proc = BFSProcess()
    proc.init({"startNodeId": "A", "adjacency": adjacency})
    ProcessTimelineBinder.bind(runtime, proc)
    return runtime


def _collect(runtime, listener_type):
    seen = []
    runtime.on(listener_type, lambda *args: seen.append(args))
    return seen


def test_default_duration_comes_from_config():
    Config.default_duration = 4.0
    assert TimelineRuntime().duration == 4.0


def test_seek_clamps_and_ticks():
    runtime = TimelineRuntime(10.0)
    ticks = _collect(runtime, "tick")
    runtime.seek(25.0)
    runtime.seek(-3.0)
    assert ticks == [(10.0,), (0.0,)]
    assert runtime.progress == 0.0


def test_step_and_state_tracks_evaluate_at_playhead(diamond):
    runtime = _bound_runtime(diamond)
    steps = runtime.get_track("steps")
    states = runtime.get_track("states")

    runtime.seek(5.0)
    assert steps.evaluate(runtime.time).label == "B"
    assert states.evaluate(runtime.time).state == "running"
    assert steps.time_of_step(3) == 10.0
    assert steps.total_steps == 4
    assert states.evaluate(10.0).state == "completed"


def test_advance_requires_playing():
    runtime = TimelineRuntime(10.0)
    runtime.advance(1.0)
    assert runtime.time == 0.0


def test_playback_fires_each_event_once(diamond):
    runtime = _bound_runtime(diamond, duration=9.0)
    events = _collect(runtime, "event")
    ends = _collect(runtime, "end")
    states = _collect(runtime, "state_change")

    runtime.play()
    runtime.advance(0.5)
    names = [args[0].name for args in events]
    assert names == ["process_state", "visit", "expand", "expand"]

    runtime.advance(0.5)
    assert len(events) == 4

    runtime.advance(20.0)
    names = [args[0].name for args in events]
    assert names[-2:] == ["complete", "process_state"]
    assert names.count("visit") == 4
    assert ends == [()]
    assert runtime.state is PlayState.IDLE
    assert states == [(PlayState.PLAYING,), (PlayState.IDLE,)]


def test_seek_backwards_rearms_events(diamond):
    runtime = _bound_runtime(diamond, duration=9.0)
    events = _collect(runtime, "event")
    runtime.play()
    runtime.advance(9.0)
    fired = len(events)

    runtime.seek(3.0)
    runtime.play()
    runtime.advance(1.0)
    replayed = [args[0] for args in events[fired:]]
    assert [e.name for e in replayed] == ["visit", "expand"]
    assert replayed[0].payload["entity_id"] == "B"


def test_loop_wraps_instead_of_ending():
    runtime = TimelineRuntime(2.0, loop=True)
    track = EventTrack("events", "bfs")
    track.add_keyframe(Keyframe(1.0, TimelineEvent("ping")))
    runtime.add_track(track)
    events = _collect(runtime, "event")
    ends = _collect(runtime, "end")

    runtime.play()
    runtime.advance(3.0)
    assert runtime.time == 0.0
    assert runtime.state is PlayState.PLAYING
    runtime.advance(1.5)
    assert [args[0].name for args in events] == ["ping", "ping"]
    assert ends == []


def test_speed_scales_dt():
    runtime = TimelineRuntime(10.0, speed=2.0)
    runtime.play()
    runtime.advance(1.5)
    assert runtime.time == 3.0


def test_play_from_end_restarts():
    runtime = TimelineRuntime(1.0)
    runtime.seek(1.0)
    runtime.play()
    assert runtime.time == 0.0
    runtime.pause()
    assert runtime.state is PlayState.PAUSED
    runtime.stop()
    assert runtime.state is PlayState.IDLE


def test_step_forward_and_backward(diamond):
    runtime = _bound_runtime(diamond, duration=9.0)
    runtime.step_forward()
    assert runtime.time == pytest.approx(3.0)
    runtime.step_forward()
    assert runtime.time == pytest.approx(6.0)
    runtime.step_backward()
    assert runtime.time == pytest.approx(3.0)
    runtime.seek(9.0)
    runtime.step_forward()
    assert runtime.time == 9.0


def test_unsubscribe_and_unknown_listener():
    runtime = TimelineRuntime(5.0)
    ticks = []
    off = runtime.on("tick", ticks.append)
    runtime.seek(1.0)
    off()
    off()
    runtime.seek(2.0)
    assert ticks == [1.0]

    with pytest.raises(ValueError):
        runtime.on("frame", ticks.append)


def test_markers_stay_sorted():
    runtime = TimelineRuntime(5.0, markers=[TimelineMarker(3.0, "late")])
    runtime.add_marker(TimelineMarker(1.0, "early"))
    assert [m.label for m in runtime.get_markers()] == ["early", "late"]
    runtime.remove_marker(3.0)
    assert [m.label for m in runtime.get_markers()] == ["early"]


def test_dispose_clears_tracks(diamond):
    runtime = _bound_runtime(diamond)
    runtime.dispose()
    assert runtime.get_tracks() == {}
    assert runtime.state is PlayState.IDLE


def test_removed_event_does_not_mask_new_one():
    track = EventTrack("events", "bfs")
    for _ in range(20):
        track.add_keyframe(Keyframe(1.0, TimelineEvent("old")))
        assert [e.name for e in track.drain(1.0)] == ["old"]
        track.remove_keyframe(1.0)
        track.add_keyframe(Keyframe(1.0, TimelineEvent("new")))
        assert [e.name for e in track.drain(1.0)] == ["new"]
        track.remove_keyframe(1.0)
    assert track._fired == set()


@pytest.mark.parametrize("bad_time", [None, "soon", float("nan")])
def test_unusable_keyframe_times_never_fire(bad_time):
    runtime = TimelineRuntime(4.0)
    events = EventTrack("events")
    events.add_keyframe(Keyframe(bad_time, TimelineEvent("broken")))
    events.add_keyframe(Keyframe(1.0, TimelineEvent("ok")))
    steps = StepTrack("steps")
    steps.add_keyframe(Keyframe(bad_time, "broken")).add_keyframe(Keyframe(2.0, "ok"))
    runtime.add_track(events).add_track(steps)
    fired = _collect(runtime, "event")

    assert [kf.value.name for kf in events.get_keyframes()] == ["ok", "broken"]
    runtime.play()
    runtime.advance(5.0)
    assert [args[0].name for args in fired] == ["ok"]
    assert steps.evaluate(3.0) == "ok"

    runtime.seek(0.0)
    runtime.step_forward()
    assert runtime.time == 2.0
    runtime.step_forward()
    assert runtime.time == 2.0
