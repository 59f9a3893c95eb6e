import uuid
from datetime import datetime, timezone
from typing import Dict, List, Optional

from pydantic import BaseModel, Field


def new_log_id() -> str:
    """Return a unique identifier for a log entry."""
    return f"log_{uuid.uuid4()}"


class BaseLogEntry(BaseModel):
    """Common metadata for all log entries."""

    log_id: str = Field(default_factory=new_log_id)
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    correlation_id: Optional[str] = None


class ProcessRunPayload(BaseModel):
    process_id: str
    process_type: str
    state: str
    steps: int
    total_steps: int
    metrics: Dict[str, float]
    failed_reason: Optional[str] = None


class ProcessRunLog(BaseLogEntry):
    event_type: str = "ProcessRun"
    payload: ProcessRunPayload


class BindingPayload(BaseModel):
    process_id: str
    step_track_ids: List[str]
    state_track_ids: List[str]
    event_track_ids: List[str]
    generated_steps: int
    duration: float


class BindingLog(BaseLogEntry):
    event_type: str = "ProcessBound"
    payload: BindingPayload
