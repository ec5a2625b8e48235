"""Backup event emission

EventChannel carries encoded frames from the running pipeline to whoever
is streaming the HTTP response. BackupEmitter is the only writer: it owns
the run's RunStats and error list and turns every call into one event.
"""
import asyncio
import logging
from enum import Enum
from typing import AsyncIterator, List, Optional, Union
from src.domain.backup_events import (
    BackupEvent,
    CompleteEvent,
    ErrorEvent,
    ProgressEvent,
    encode_event,
)
from src.domain.backup_run import BackupErrorRecord, RunStats
from src.domain.enums import BackupPhase

logger = logging.getLogger(__name__)

_END_OF_STREAM = object()

Phase = Union[BackupPhase, str]


def _phase_name(phase: Phase) -> str:
    return phase.value if isinstance(phase, Enum) else str(phase)


class EventChannel:
    """
    Single-writer, single-reader queue of encoded event frames.

    Once closed, either because the run finished or because the consumer
    went away, publishing is a no-op.
    """

    def __init__(self):
        self._queue: asyncio.Queue = asyncio.Queue()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def publish(self, frame: str) -> bool:
        if self._closed:
            return False
        self._queue.put_nowait(frame)
        return True

    def close(self) -> None:
        """Writer side: no more events, release the reader"""
        if self._closed:
            return
        self._closed = True
        self._queue.put_nowait(_END_OF_STREAM)

    def detach(self) -> None:
        """Reader side: the consumer disconnected"""
        if not self._closed:
            logger.info("[Backup] Event consumer detached, further events are dropped")
        self._closed = True

    async def frames(self) -> AsyncIterator[str]:
        try:
            while True:
                frame = await self._queue.get()
                if frame is _END_OF_STREAM:
                    break
                yield frame
        finally:
            self.detach()


class BackupEmitter:
    """Serializes progress, error and completion events onto an EventChannel"""

    def __init__(self, channel: EventChannel, stats: Optional[RunStats] = None):
        self.channel = channel
        self.stats = stats or RunStats()
        self.errors: List[BackupErrorRecord] = []

    def progress(self, phase: Phase, item: str, current: int, total: int) -> None:
        self._emit(ProgressEvent(phase=_phase_name(phase), item=item, current=current, total=total))

    def error(self, phase: Phase, item: str, message: str) -> None:
        """Record an item-level failure and report it"""
        name = _phase_name(phase)
        self.errors.append(BackupErrorRecord(phase=name, item=item, error=message))
        self.stats.errors += 1
        logger.warning(f"[Backup] {name} item failed: {item}: {message}")
        self._emit(ErrorEvent(phase=name, item=item, message=message))

    def success(self, phase: Phase) -> None:
        self.stats.increment(BackupPhase(_phase_name(phase)))

    def complete(self, stats: RunStats, message: str) -> None:
        self._emit(CompleteEvent(stats=stats, message=message))

    def fatal(self, message: str) -> None:
        self._emit(ErrorEvent(phase=BackupPhase.fatal.value, message=message))

    def close(self) -> None:
        self.channel.close()

    def _emit(self, event: BackupEvent) -> None:
        if self.channel.closed:
            return
        self.channel.publish(encode_event(event))
