"""Invariant checks for process traces and bound timelines."""

from __future__ import annotations

from typing import Any, Dict, Iterable, Mapping, Sequence

from Algo_Trace.graph import build_digraph, reachable_count


def visited_once(order: Sequence[str]) -> bool:
    """Ensure no node appears twice in a traversal order."""

    return len(order) == len(set(order))


def valid_walk(adjacency: Mapping[str, Iterable[str]], path: Sequence[str]) -> bool:
    """Every consecutive pair of ``path`` must be a directed edge."""

    graph = build_digraph(adjacency)
    if path and path[0] not in graph:
        return False
    return all(graph.has_edge(a, b) for a, b in zip(path, path[1:]))


def times_in_range(times: Iterable[float], duration: float) -> bool:
    """All keyframe times lie inside ``[0, duration]``."""

    return all(0.0 <= t <= duration for t in times)


def non_decreasing(times: Sequence[float]) -> bool:
    """Keyframe times never go backwards."""

    return all(a <= b for a, b in zip(times, times[1:]))


def from_run(
    adjacency: Mapping[str, Iterable[str]],
    start: str,
    run: Any,
    total_steps: int,
) -> Dict[str, bool]:
    """Extract invariant flags from a breadth-first search run."""

    visits = [
        evt.entity_id for step in run.steps for evt in step.events if evt.type == "visit"
    ]
    hits = [evt for step in run.steps for evt in step.events if evt.type == "hit"]
    path_ok = all(
        valid_walk(adjacency, evt.data["path"]) and evt.data["path"][0] == start
        for evt in hits
    )
    return {
        "inv_visited_once": visited_once(visits),
        "inv_total_steps": total_steps == reachable_count(adjacency, start),
        "inv_path_valid": path_ok,
        "inv_steps_bounded": len(run.steps) <= total_steps,
    }
