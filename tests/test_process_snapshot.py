"""Snapshots must capture the full run state and share nothing with it."""

from __future__ import annotations

import pytest

from Algo_Trace.process import (
    BFSProcess,
    GradientDescentProcess,
    ProcessSnapshot,
    ProcessState,
)


def _bfs(adjacency, target=None) -> BFSProcess:
    proc = BFSProcess()
    proc.init({"startNodeId": "A", "targetNodeId": target, "adjacency": adjacency})
    return proc


@pytest.mark.parametrize("steps_before", [0, 1, 2, 3])
def test_restored_copy_continues_identically(diamond, steps_before):
    live = _bfs(diamond, target="D")
    for _ in range(steps_before):
        live.step()

    copy = BFSProcess()
    copy.restore_snapshot(live.get_snapshot())

    assert copy.state == live.state
    assert copy.current_step == live.current_step
    assert copy.total_steps == live.total_steps
    for _ in range(5):
        assert copy.step() == live.step()
    assert copy.get_metrics() == live.get_metrics()


def test_snapshot_is_detached_from_live_instance(diamond):
    live = _bfs(diamond)
    live.step()
    snap = live.get_snapshot()

    snap.data["frontier"].append("Z")
    snap.data["config"]["adjacency"]["A"].append("Z")
    snap.data["traversal_order"].clear()

    assert live.step().state.current_node == "B"
    assert "Z" not in live.config.adjacency["A"]
    assert live.traversal_order == ["A", "B"]


def test_restore_does_not_alias_snapshot(diamond):
    live = _bfs(diamond)
    live.step()
    snap = live.get_snapshot()

    copy = BFSProcess()
    copy.restore_snapshot(snap)
    copy.run()

    assert snap.data["frontier"] == ["B", "C"]
    assert snap.data["traversal_order"] == ["A"]
    assert snap.state is ProcessState.RUNNING


def test_snapshot_at_terminal_and_failed_states(diamond):
    done = _bfs(diamond)
    done.run()
    copy = BFSProcess()
    copy.restore_snapshot(done.get_snapshot())
    assert copy.state is ProcessState.COMPLETED
    assert copy.step().events == []
    copy.reset()
    assert copy.run().state is ProcessState.COMPLETED

    failed = BFSProcess()
    failed.init({"adjacency": {}})
    copy = BFSProcess()
    copy.restore_snapshot(failed.get_snapshot())
    assert copy.state is ProcessState.FAILED
    copy.reset()
    assert copy.failed_reason == "Missing start_node_id."


def test_snapshot_restores_normalised_config():
    snap = ProcessSnapshot(
        state=ProcessState.IDLE,
        current_step=-1,
        data={
            "config": {"start_node_id": "A", "adjacency": {"A": ["B", "B"]}},
            "frontier": ["A"],
            "visited": [],
            "depth_by_node": [("A", 0)],
            "parent_by_node": [("A", None)],
            "traversal_order": [],
            "terminal_path": [],
            "total_steps": 2,
        },
    )
    proc = BFSProcess()
    proc.restore_snapshot(snap)
    assert proc.config.adjacency == {"A": ["B"], "B": []}
    run = proc.run()
    assert proc.traversal_order == ["A", "B"]
    assert run.state is ProcessState.COMPLETED


def test_gradient_descent_round_trip():
    live = GradientDescentProcess()
    live.init({"startPoint": [2.0, -1.0], "learningRate": 0.1, "maxIterations": 10})
    live.step()
    live.step()

    copy = GradientDescentProcess()
    copy.restore_snapshot(live.get_snapshot())
    assert copy.total_steps == 10
    for _ in range(4):
        assert copy.step() == live.step()
