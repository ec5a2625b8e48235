"""Start Backup Use Case

Checks the preconditions of a full-account backup before the event stream
is opened: the account must have a storage connection and a usable access
token.
"""
import logging
from libs.result import Result, Error, Return
from src.app.services.token_provider import (
    CloudNotConnectedError,
    TokenProvider,
    TokenRefreshError,
)
from src.app.services.unit_of_work import UnitOfWork
from .dtos import BackupStartDTO

logger = logging.getLogger(__name__)


class StartBackupUseCase:
    """
    Use case: Start Backup

    Failures here are reported to the caller as a plain error response;
    nothing has been streamed yet.
    """

    def __init__(self, uow: UnitOfWork, token_provider: TokenProvider):
        self.uow = uow
        self.token_provider = token_provider

    async def execute(self, user_id: str) -> Result[BackupStartDTO]:
        async with self.uow:
            connection = await self.uow.cloud_connections.get_by_user(user_id)
            if not connection:
                return Return.err(Error(
                    code="NO_CLOUD_CONNECTION",
                    message="OneDrive not connected"
                ))
            connection_id = connection.id

        try:
            access_token = await self.token_provider.get_access_token(user_id)
        except CloudNotConnectedError:
            return Return.err(Error(
                code="NO_CLOUD_CONNECTION",
                message="OneDrive not connected"
            ))
        except TokenRefreshError as e:
            logger.error(f"[Backup] Token refresh failed for user {user_id}: {e.message}")
            return Return.err(Error(
                code="CLOUD_TOKEN_UNAVAILABLE",
                message="Failed to start backup",
                reason=e.message
            ))

        return Return.ok(BackupStartDTO(
            user_id=user_id,
            connection_id=connection_id,
            access_token=access_token
        ))
