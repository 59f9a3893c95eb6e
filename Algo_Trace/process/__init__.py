"""Stepped processes and the registry used to build them by type."""

from __future__ import annotations

from typing import Dict, Type

from .base import (
    Process,
    ProcessEvent,
    ProcessRunResult,
    ProcessSnapshot,
    ProcessState,
    ProcessStepResult,
)
from .bfs import BFSConfig, BFSProcess, BFSState
from .binder import BindingResult, ProcessTimelineBinder
from .gradient_descent import (
    GradientDescentConfig,
    GradientDescentProcess,
    GradientDescentState,
)
from .ray_intersection import (
    RayIntersectionConfig,
    RayIntersectionProcess,
    RayIntersectionState,
)

PROCESS_TYPES: Dict[str, Type[Process]] = {
    BFSProcess.type: BFSProcess,
    GradientDescentProcess.type: GradientDescentProcess,
    RayIntersectionProcess.type: RayIntersectionProcess,
}


def create_process(process_type: str, process_id: str | None = None) -> Process:
    """Return a new, uninitialised process of ``process_type``."""

    try:
        cls = PROCESS_TYPES[process_type]
    except KeyError:
        raise ValueError(f"unknown process type: {process_type}") from None
    if process_id is None:
        return cls()
    return cls(process_id)


__all__ = [
    "BFSConfig",
    "BFSProcess",
    "BFSState",
    "BindingResult",
    "GradientDescentConfig",
    "GradientDescentProcess",
    "GradientDescentState",
    "PROCESS_TYPES",
    "Process",
    "ProcessEvent",
    "ProcessRunResult",
    "ProcessSnapshot",
    "ProcessState",
    "ProcessStepResult",
    "ProcessTimelineBinder",
    "RayIntersectionConfig",
    "RayIntersectionProcess",
    "RayIntersectionState",
    "create_process",
]
