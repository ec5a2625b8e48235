"""Backup stream events

Each event is one JSON object on the outbound stream. Optional fields that
do not apply to an event kind are left out of the serialized form.
"""
from typing import Literal, Optional, Union
from pydantic import BaseModel
from src.domain.backup_run import RunStats


class ProgressEvent(BaseModel):
    type: Literal["progress"] = "progress"
    phase: str
    item: str
    current: int
    total: int


class ErrorEvent(BaseModel):
    type: Literal["error"] = "error"
    phase: str
    item: Optional[str] = None
    message: str


class CompleteEvent(BaseModel):
    type: Literal["complete"] = "complete"
    stats: RunStats
    message: str


BackupEvent = Union[ProgressEvent, ErrorEvent, CompleteEvent]


def encode_event(event: BackupEvent) -> str:
    """Serialize an event as one server-sent-events frame"""
    payload = event.model_dump_json(by_alias=True, exclude_none=True)
    return f"data: {payload}\n\n"
