from __future__ import annotations

"""Lightweight JSON line logger for process runs and bindings."""

import json
from pathlib import Path
from typing import Any

from pydantic import BaseModel

from ..config import Config


def log_record(
    category: str,
    label: str,
    *,
    step: int | None = None,
    value: dict[str, Any] | None = None,
    metadata: dict[str, Any] | None = None,
    path: Path | None = None,
    **extra: Any,
) -> bool:
    """Append a record to a JSON lines log file.

    Records are only written when :meth:`Config.is_log_enabled` allows the
    ``category``/``label`` pair. Returns ``True`` when a line was written.
    """

    if not Config.is_log_enabled(category, label):
        return False
    if path is None:
        path = Path(Config.output_path(f"{category}_log.jsonl"))
    path.parent.mkdir(parents=True, exist_ok=True)
    data: dict[str, Any] = {"label": label}
    if step is not None:
        data["step"] = step
    if value is not None:
        if isinstance(value, dict):
            data.update(value)
        else:
            data["value"] = value
    if metadata is not None:
        data["metadata"] = metadata
    if extra:
        data.update(extra)
    with path.open("a") as fh:
        fh.write(json.dumps(data) + "\n")
    return True


def log_entry(category: str, label: str, entry: BaseModel) -> bool:
    """Serialise a pydantic ``entry`` and hand it to :func:`log_record`."""

    return log_record(category, label, value=entry.model_dump(mode="json"))
