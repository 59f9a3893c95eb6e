"""Breadth-first search over a directed adjacency mapping."""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from ..errors import ConfigError
from ..graph import reachable_count
from ..utils import clone_value
from .base import (
    Process,
    ProcessEvent,
    ProcessSnapshot,
    ProcessState,
    ProcessStepResult,
)


@dataclass
class BFSConfig:
    """Traversal settings.

    ``adjacency`` maps a node id to the ids it points at. Edges are directed
    as given; a neighbour listed under ``A`` does not imply a way back.
    """

    start_node_id: Optional[str]
    adjacency: Optional[Dict[str, List[str]]]
    target_node_id: Optional[str] = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "BFSConfig":
        """Build a config from a camelCase or snake_case mapping."""

        def pick(*keys: str) -> Any:
            for key in keys:
                if key in data:
                    return data[key]
            return None

        return cls(
            start_node_id=pick("start_node_id", "startNodeId"),
            adjacency=pick("adjacency"),
            target_node_id=pick("target_node_id", "targetNodeId"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "start_node_id": self.start_node_id,
            "target_node_id": self.target_node_id,
            "adjacency": clone_value(self.adjacency),
        }


@dataclass
class BFSState:
    """Per-step view of the traversal."""

    current_node: Optional[str]
    visited: List[str] = field(default_factory=list)
    frontier: List[str] = field(default_factory=list)
    path: List[str] = field(default_factory=list)
    depth: int = 0

    def __deepcopy__(self, memo: Dict[int, Any]) -> "BFSState":
        # node ids are strings; copying the lists is a full copy
        return BFSState(
            current_node=self.current_node,
            visited=list(self.visited),
            frontier=list(self.frontier),
            path=list(self.path),
            depth=self.depth,
        )


def normalize_config(config: BFSConfig | Mapping[str, Any]) -> BFSConfig:
    """Return a validated copy of ``config``.

    Neighbour lists are de-duplicated in order, every referenced neighbour and
    the start node receive an adjacency entry. Raises :class:`ConfigError`
    when the start node or adjacency is missing or malformed.
    """

    if not isinstance(config, BFSConfig):
        if not isinstance(config, Mapping):
            raise ConfigError("Invalid config: expected a mapping.")
        config = BFSConfig.from_mapping(config)

    if config.start_node_id is None or config.start_node_id == "":
        raise ConfigError("Missing start_node_id.")
    if config.adjacency is None:
        raise ConfigError("Missing adjacency.")
    if not isinstance(config.adjacency, Mapping):
        raise ConfigError("Invalid adjacency: expected a mapping of node lists.")

    adjacency: Dict[str, List[str]] = {}
    for node_id, raw_neighbors in config.adjacency.items():
        if raw_neighbors is None:
            raw_neighbors = []
        if isinstance(raw_neighbors, (str, bytes)) or not hasattr(
            raw_neighbors, "__iter__"
        ):
            raise ConfigError(
                f"Invalid adjacency: neighbours of {node_id!r} must be a list."
            )
        adjacency[str(node_id)] = list(dict.fromkeys(str(n) for n in raw_neighbors))

    for neighbors in list(adjacency.values()):
        for neighbor in neighbors:
            adjacency.setdefault(neighbor, [])

    start = str(config.start_node_id)
    adjacency.setdefault(start, [])
    target = config.target_node_id
    return BFSConfig(
        start_node_id=start,
        adjacency=adjacency,
        target_node_id=str(target) if target not in (None, "") else None,
    )


class BFSProcess(Process):
    """Breadth-first search emitting ``visit``/``expand``/``hit`` events.

    Neighbours are enqueued once, when first discovered, in adjacency order.
    Visited entries at the head of the frontier are pruned lazily before each
    dequeue and after each expansion. A configured target ends the run as
    soon as it is dequeued.
    """

    type = "bfs"

    def __init__(self, process_id: str | None = None) -> None:
        super().__init__(process_id)
        self._config: BFSConfig | None = None
        self._config_error: str | None = None
        self._frontier: deque[str] = deque()
        self._visited: set[str] = set()
        self._depth_by_node: Dict[str, int] = {}
        self._parent_by_node: Dict[str, Optional[str]] = {}
        self._traversal_order: List[str] = []
        self._terminal_path: List[str] = []
        self._max_depth = 0

    # ------------------------------------------------------------------
    @property
    def config(self) -> BFSConfig | None:
        return clone_value(self._config)

    @property
    def depth_by_node(self) -> Dict[str, int]:
        return dict(self._depth_by_node)

    @property
    def parent_by_node(self) -> Dict[str, Optional[str]]:
        return dict(self._parent_by_node)

    @property
    def traversal_order(self) -> List[str]:
        return list(self._traversal_order)

    @property
    def terminal_path(self) -> List[str]:
        return list(self._terminal_path)

    # ------------------------------------------------------------------
    def init(self, config: BFSConfig | Mapping[str, Any]) -> None:
        try:
            self._config = normalize_config(config)
            self._config_error = None
        except ConfigError as exc:
            self._config = None
            self._config_error = str(exc)
        self.reset()

    def reset(self) -> None:
        self._state = ProcessState.IDLE
        self._current_step = -1
        self._total_steps = 0
        self._failed_reason = None

        self._frontier = deque()
        self._visited = set()
        self._depth_by_node = {}
        self._parent_by_node = {}
        self._traversal_order = []
        self._terminal_path = []
        self._max_depth = 0

        if self._config is None:
            self._fail(self._config_error or "Process is not initialized.")
            return

        start = self._config.start_node_id
        self._frontier.append(start)
        self._depth_by_node[start] = 0
        self._parent_by_node[start] = None
        self._total_steps = reachable_count(self._config.adjacency, start)

    def step(self) -> ProcessStepResult:
        if self._state.is_terminal:
            return self._make_step_result(None, [])
        if self._config is None:
            self._fail(self._config_error or "Process is not initialized.")
            return self._make_step_result(
                None, [ProcessEvent("fail", data={"reason": self._failed_reason})]
            )

        if self._state is ProcessState.IDLE:
            self._state = ProcessState.RUNNING
        self._prune_frontier()

        if not self._frontier:
            self._state = ProcessState.COMPLETED
            return self._make_step_result(
                None, [ProcessEvent("complete", data={"reason": "frontier_exhausted"})]
            )

        current = self._frontier.popleft()
        self._visited.add(current)
        self._traversal_order.append(current)
        self._current_step += 1

        depth = self._depth_by_node.get(current, 0)
        self._max_depth = max(self._max_depth, depth)
        events = [
            ProcessEvent(
                "visit",
                entity_id=current,
                data={"depth": depth, "step": self._current_step},
            )
        ]

        if current == self._config.target_node_id:
            self._terminal_path = self._reconstruct_path(current)
            self._frontier.clear()
            self._state = ProcessState.COMPLETED
            events.append(
                ProcessEvent(
                    "hit",
                    entity_id=current,
                    data={
                        "path": list(self._terminal_path),
                        "step": self._current_step,
                    },
                )
            )
            events.append(ProcessEvent("complete", data={"reason": "target_found"}))
            return self._make_step_result(current, events)

        for neighbor in self._config.adjacency.get(current, []):
            # a recorded depth means the node was already queued or visited
            if neighbor in self._depth_by_node:
                continue
            self._frontier.append(neighbor)
            self._depth_by_node[neighbor] = depth + 1
            self._parent_by_node[neighbor] = current
            events.append(
                ProcessEvent(
                    "expand",
                    entity_id=neighbor,
                    data={"from": current, "depth": depth + 1},
                )
            )

        self._prune_frontier()
        if not self._frontier:
            self._state = ProcessState.COMPLETED
            events.append(
                ProcessEvent("complete", data={"reason": "frontier_exhausted"})
            )

        return self._make_step_result(current, events)

    def get_metrics(self) -> Dict[str, float]:
        return {
            "visited_count": len(self._visited),
            "frontier_size": len(self._frontier),
            "depth": self._max_depth,
            "path_length": len(self._terminal_path or self._traversal_order),
        }

    def get_snapshot(self) -> ProcessSnapshot:
        return ProcessSnapshot(
            state=self._state,
            current_step=self._current_step,
            data={
                "config": self._config.to_dict() if self._config else None,
                "config_error": self._config_error,
                "frontier": list(self._frontier),
                "visited": [n for n in self._traversal_order if n in self._visited],
                "depth_by_node": list(self._depth_by_node.items()),
                "parent_by_node": list(self._parent_by_node.items()),
                "traversal_order": list(self._traversal_order),
                "terminal_path": list(self._terminal_path),
                "total_steps": self._total_steps,
                "failed_reason": self._failed_reason,
            },
        )

    def restore_snapshot(self, snapshot: ProcessSnapshot) -> None:
        data = clone_value(snapshot.data)

        self._state = ProcessState(snapshot.state)
        self._current_step = snapshot.current_step
        self._config_error = data.get("config_error")
        raw_config = data.get("config")
        if raw_config is None:
            self._config = None
        else:
            try:
                self._config = normalize_config(raw_config)
            except ConfigError as exc:
                self._config = None
                self._config_error = str(exc)
        self._frontier = deque(data["frontier"])
        self._visited = set(data["visited"])
        self._depth_by_node = dict(data["depth_by_node"])
        self._parent_by_node = dict(data["parent_by_node"])
        self._traversal_order = list(data["traversal_order"])
        self._terminal_path = list(data["terminal_path"])
        self._max_depth = max(
            (self._depth_by_node.get(n, 0) for n in self._visited), default=0
        )
        self._total_steps = data["total_steps"]
        self._failed_reason = data.get("failed_reason")

    # ------------------------------------------------------------------
    def _prune_frontier(self) -> None:
        while self._frontier and self._frontier[0] in self._visited:
            self._frontier.popleft()

    def _make_step_result(
        self, current: str | None, events: List[ProcessEvent]
    ) -> ProcessStepResult:
        return ProcessStepResult(
            step=self._current_step,
            state=self._resolve_state(current),
            metrics=self.get_metrics(),
            events=[clone_value(evt) for evt in events],
        )

    def _resolve_state(self, current: str | None) -> BFSState:
        depth = self._depth_by_node.get(current, 0) if current is not None else 0
        return BFSState(
            current_node=current,
            visited=list(self._traversal_order),
            frontier=list(self._frontier),
            path=self._resolve_path(),
            depth=depth,
        )

    def _resolve_path(self) -> List[str]:
        if self._terminal_path:
            return list(self._terminal_path)
        return list(self._traversal_order)

    def _reconstruct_path(self, target: str) -> List[str]:
        path: List[str] = []
        seen: set[str] = set()
        cursor: str | None = target
        while cursor is not None and cursor not in seen:
            path.append(cursor)
            seen.add(cursor)
            cursor = self._parent_by_node.get(cursor)
        path.reverse()
        return path


__all__ = ["BFSConfig", "BFSProcess", "BFSState", "normalize_config"]
