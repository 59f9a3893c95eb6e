"""Algo_Trace package initialization."""

from __future__ import annotations

from typing import Any

from typing import TYPE_CHECKING

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from .process import BFSProcess, ProcessTimelineBinder, create_process
    from .timeline import TimelineRuntime

__all__ = ["BFSProcess", "ProcessTimelineBinder", "TimelineRuntime", "create_process"]


def __getattr__(name: str) -> Any:  # pragma: no cover - attribute access
    """Lazily expose the main entry points."""

    if name in ("BFSProcess", "ProcessTimelineBinder", "create_process"):
        from . import process

        return getattr(process, name)
    if name == "TimelineRuntime":
        from .timeline import TimelineRuntime as _TimelineRuntime

        return _TimelineRuntime
    raise AttributeError(name)
