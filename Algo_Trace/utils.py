"""Copy and serialisation helpers shared by processes and tracks."""

from __future__ import annotations

import copy
import dataclasses
from enum import Enum
from typing import Any, Mapping, TypeVar

import numpy as np

T = TypeVar("T")

_IMMUTABLE = (type(None), bool, int, float, complex, str, bytes, Enum)


def clone_value(value: T) -> T:
    """Return an isolated copy of ``value``.

    Immutable scalars (``None``, numbers, strings, bytes and enum members) are
    returned unchanged. Any other value, including containers, dataclasses
    and numpy arrays, is copied with :func:`copy.deepcopy` so no mutable
    structure is shared between the caller and the result.
    """

    if isinstance(value, _IMMUTABLE):
        return value
    return copy.deepcopy(value)


def to_jsonable(value: Any) -> Any:
    """Convert ``value`` into a structure accepted by :func:`json.dumps`."""

    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (str, int, float, bool)) or value is None:
        return value
    if isinstance(value, np.generic):
        return value.item()
    if isinstance(value, np.ndarray):
        return value.tolist()
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {
            f.name: to_jsonable(getattr(value, f.name))
            for f in dataclasses.fields(value)
        }
    if isinstance(value, Mapping):
        return {str(k): to_jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [to_jsonable(v) for v in value]
    return str(value)


__all__ = ["clone_value", "to_jsonable"]
