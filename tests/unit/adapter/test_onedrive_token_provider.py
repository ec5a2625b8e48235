"""
Unit tests for OneDriveTokenProvider
"""
from datetime import datetime, timedelta
from urllib.parse import parse_qs
import httpx
import pytest
from src.adapter.services.onedrive_token_provider import OneDriveTokenProvider
from src.app.services.token_provider import CloudNotConnectedError, TokenRefreshError
from tests.fakes import make_connection, make_uow


def make_provider(uow, handler):
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return OneDriveTokenProvider(
        uow=uow,
        client_id="client-id",
        client_secret="client-secret",
        tenant_id="tenant-1",
        auth_url="https://login.test",
        client=client,
    )


def fail_on_request(request):
    raise AssertionError(f"unexpected request to {request.url}")


class TestOneDriveTokenProvider:

    @pytest.mark.asyncio
    async def test_unexpired_token_returned_without_refresh(self):
        # Arrange
        connection = make_connection()
        connection.token_expires_at = datetime.utcnow() + timedelta(hours=1)
        uow = make_uow(connection)
        provider = make_provider(uow, fail_on_request)

        # Act
        token = await provider.get_access_token("user-1")

        # Assert
        assert token == "stored-token"
        uow.commit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_expired_token_refreshed_and_persisted(self):
        # Arrange
        connection = make_connection()
        connection.token_expires_at = datetime.utcnow() + timedelta(seconds=30)
        uow = make_uow(connection)
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json={
                "access_token": "fresh-token",
                "refresh_token": "rotated-refresh",
                "expires_in": 3600,
            })

        provider = make_provider(uow, handler)

        # Act
        token = await provider.get_access_token("user-1")

        # Assert
        assert token == "fresh-token"
        assert str(seen[0].url) == "https://login.test/tenant-1/oauth2/v2.0/token"
        form = parse_qs(seen[0].content.decode())
        assert form["grant_type"] == ["refresh_token"]
        assert form["refresh_token"] == ["refresh-token"]
        assert form["client_id"] == ["client-id"]
        assert connection.refresh_token == "rotated-refresh"
        assert connection.token_expires_at > datetime.utcnow() + timedelta(minutes=50)
        uow.cloud_connections.update.assert_awaited_once_with(connection)
        uow.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_refresh_keeps_refresh_token_when_not_rotated(self):
        # Arrange
        connection = make_connection()
        uow = make_uow(connection)
        provider = make_provider(
            uow, lambda request: httpx.Response(200, json={"access_token": "fresh-token", "expires_in": 60})
        )

        # Act
        await provider.get_access_token("user-1")

        # Assert
        assert connection.refresh_token == "refresh-token"

    @pytest.mark.asyncio
    async def test_rejected_refresh_raises(self):
        # Arrange
        uow = make_uow(make_connection())
        provider = make_provider(uow, lambda request: httpx.Response(400, json={"error": "invalid_grant"}))

        # Act & Assert
        with pytest.raises(TokenRefreshError) as exc_info:
            await provider.get_access_token("user-1")
        assert exc_info.value.status_code == 400
        uow.commit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_missing_connection_raises(self):
        provider = make_provider(make_uow(None), fail_on_request)

        with pytest.raises(CloudNotConnectedError):
            await provider.get_access_token("user-1")
