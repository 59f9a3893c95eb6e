import math

import pytest

from Algo_Trace.timeline.allocation import (
    coerce_times,
    find_matching_times,
    resolve_times,
    uniform_times,
)


def test_uniform_over_duration_without_keyframes():
    assert resolve_times([], 3, 10) == [0.0, 5.0, 10.0]


def test_exact_count_reuses_sorted_clamped_times():
    assert resolve_times([7.0, 1.0, 2.5], 3, 10) == [1.0, 2.5, 7.0]
    assert resolve_times([-1.0, 4.0, 12.0], 3, 10) == [0.0, 4.0, 10.0]


def test_two_or_more_keyframes_become_anchors():
    assert resolve_times([8.0, 2.0], 4, 10) == pytest.approx([2.0, 4.0, 6.0, 8.0])
    assert resolve_times([1.0, 5.0, 9.0], 5, 10) == pytest.approx(
        [1.0, 3.0, 5.0, 7.0, 9.0]
    )


def test_single_keyframe_is_ignored_for_many_steps():
    assert resolve_times([3.0], 3, 6) == [0.0, 3.0, 6.0]


def test_single_step_collapses_to_earliest_anchor():
    assert resolve_times([], 1, 10) == [0.0]
    assert resolve_times([4.0, 2.0], 1, 10) == [2.0]
    assert resolve_times([20.0], 1, 10) == [10.0]


def test_no_steps_means_no_times():
    assert resolve_times([1.0, 2.0], 0, 10) == []


def test_malformed_times_degrade_gracefully():
    assert coerce_times(["2", None, "x", float("nan"), math.inf, True, 1]) == [1.0, 2.0]
    assert resolve_times([None, "bad", 4.0], 3, 10) == [0.0, 5.0, 10.0]


def test_negative_duration_is_clamped():
    assert resolve_times([], 2, -5) == [0.0, 0.0]


def test_uniform_times_single_point():
    assert uniform_times(1, 3.0, 9.0) == [3.0]
    assert uniform_times(0, 3.0, 9.0) == [3.0]


def test_find_matching_prefers_exact_candidate():
    candidates = [[0.0, 10.0], [1.0, 2.0, 3.0]]
    assert find_matching_times(candidates, 3, 10) == [1.0, 2.0, 3.0]
    assert find_matching_times([[0.0, 10.0]], 3, 10) == [0.0, 5.0, 10.0]
    assert find_matching_times([[], []], 3, 10) == []
