"""OneDrive Token Provider

Returns the stored access token of an account's OneDrive connection and
refreshes it through the Microsoft identity platform when it is about to
expire. Refreshed tokens are written back to the connection record.
"""
import asyncio
import logging
from typing import Optional
import httpx
from src.app.services.token_provider import (
    CloudNotConnectedError,
    TokenProvider,
    TokenRefreshError,
)
from src.app.services.unit_of_work import UnitOfWork
from src.domain.enums import CloudProvider

logger = logging.getLogger(__name__)

EXPIRY_SKEW_SECONDS = 60


class OneDriveTokenProvider(TokenProvider):

    def __init__(
        self,
        uow: UnitOfWork,
        client_id: str,
        client_secret: str,
        tenant_id: str = "common",
        auth_url: str = "https://login.microsoftonline.com",
        timeout: float = 10.0,
        max_retries: int = 3,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.uow = uow
        self.client_id = client_id
        self.client_secret = client_secret
        self.token_url = f"{auth_url.rstrip('/')}/{tenant_id}/oauth2/v2.0/token"
        self.max_retries = max_retries
        self.client = client or httpx.AsyncClient(timeout=timeout)

    async def _retry_request(self, method: str, url: str, **kwargs) -> httpx.Response:
        """Execute HTTP request with exponential backoff retry"""
        for attempt in range(self.max_retries):
            try:
                return await self.client.request(method, url, **kwargs)
            except (httpx.TimeoutException, httpx.ConnectError, httpx.ReadError) as e:
                if attempt < self.max_retries - 1:
                    delay = 2 ** attempt
                    logger.warning(
                        f"Token refresh failed (attempt {attempt + 1}/{self.max_retries}), "
                        f"retrying in {delay}s: {e}"
                    )
                    await asyncio.sleep(delay)
                else:
                    logger.error(f"Token refresh failed after {self.max_retries} attempts: {e}")

        raise TokenRefreshError(f"Token endpoint unavailable after {self.max_retries} attempts")

    async def get_access_token(self, user_id: str) -> str:
        async with self.uow:
            connection = await self.uow.cloud_connections.get_by_user(user_id, CloudProvider.onedrive)
            if not connection:
                raise CloudNotConnectedError("OneDrive not connected")

            if not connection.token_expired(EXPIRY_SKEW_SECONDS):
                return connection.access_token

            response = await self._retry_request(
                "POST",
                self.token_url,
                data={
                    "grant_type": "refresh_token",
                    "refresh_token": connection.refresh_token,
                    "client_id": self.client_id,
                    "client_secret": self.client_secret,
                },
            )
            if response.status_code >= 400:
                raise TokenRefreshError(
                    f"OneDrive token refresh failed ({response.status_code}): {response.text}",
                    status_code=response.status_code,
                )

            tokens = response.json()
            connection.update_tokens(
                access_token=tokens["access_token"],
                expires_in=int(tokens.get("expires_in", 3600)),
                refresh_token=tokens.get("refresh_token"),
            )
            access_token = connection.access_token
            await self.uow.cloud_connections.update(connection)
            await self.uow.commit()
            logger.info(f"[OneDrive] Refreshed access token for user {user_id}")
            return access_token

    async def close(self):
        """Close the HTTP client connection"""
        await self.client.aclose()
