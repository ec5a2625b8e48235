"""Backup API Routes

POST /cloud/backup checks the preconditions synchronously, then streams the
progress of the running backup as server-sent events. The backup itself
runs as a detached task: a client that goes away stops receiving events
but never stops the run.
"""
import asyncio
import logging
from typing import Set
from fastapi import APIRouter, Depends, status
from fastapi.responses import StreamingResponse
from libs.result import Error
from src.api.error import ClientError, ServerError
from src.app.services.backup import EventChannel
from src.app.services.rate_limiter import SlidingWindowRateLimiter
from src.app.services.token_provider import TokenProvider
from src.app.services.unit_of_work import UnitOfWork
from src.app.use_cases.backups import StartBackupUseCase
from src.depends import (
    BackupLauncher,
    get_backup_launcher,
    get_backup_rate_limiter,
    get_current_user,
    get_token_provider,
    get_unit_of_work,
)

logger = logging.getLogger(__name__)

router = APIRouter()

# Strong references keep detached runs alive until they finish
_running_backups: Set[asyncio.Task] = set()

STREAM_HEADERS = {"Cache-Control": "no-cache", "Connection": "keep-alive"}


def launch_backup(launcher: BackupLauncher, start, channel: EventChannel) -> asyncio.Task:
    task = asyncio.create_task(launcher(start, channel))
    _running_backups.add(task)
    task.add_done_callback(_running_backups.discard)
    return task


@router.post("/cloud/backup", status_code=status.HTTP_200_OK)
async def start_backup(
    current_user: dict = Depends(get_current_user),
    uow: UnitOfWork = Depends(get_unit_of_work),
    token_provider: TokenProvider = Depends(get_token_provider),
    rate_limiter: SlidingWindowRateLimiter = Depends(get_backup_rate_limiter),
    launcher: BackupLauncher = Depends(get_backup_launcher),
):
    """
    Run a full-account backup to the connected OneDrive

    Streams `progress`, `error` and `complete` events, one `data:` frame each.
    """
    user_id = current_user["user_id"]

    decision = rate_limiter.hit(f"backup:{user_id}")
    if decision.limited:
        raise ClientError(
            Error(
                code="RATE_LIMITED",
                message=f"Backup rate limited. Try again in {decision.retry_after_seconds}s.",
            ),
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            headers={"Retry-After": str(decision.retry_after_seconds)},
        )

    try:
        result = await StartBackupUseCase(uow, token_provider).execute(user_id)
    except Exception as e:
        logger.exception(f"[Backup] Failed to start backup for user {user_id}: {e}")
        raise ServerError(Error(code="BACKUP_START_FAILED", message="Failed to start backup"))

    if result.is_err():
        if result.error.code == "NO_CLOUD_CONNECTION":
            raise ClientError(result.error, status_code=status.HTTP_400_BAD_REQUEST)
        raise ServerError(result.error)

    channel = EventChannel()
    launch_backup(launcher, result.value, channel)
    logger.info(f"[Backup] Backup started for user {user_id}")

    return StreamingResponse(
        channel.frames(), media_type="text/event-stream", headers=STREAM_HEADERS
    )
