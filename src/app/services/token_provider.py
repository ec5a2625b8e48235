"""Token Provider Interface

Single accessor the backup pipeline uses to obtain a short-lived access
token for an account's storage connection.
"""
from abc import ABC, abstractmethod


class CloudNotConnectedError(Exception):
    """Raised when the account has no storage connection"""
    pass


class TokenRefreshError(Exception):
    """Raised when an expired access token cannot be refreshed"""
    def __init__(self, message: str, status_code: int = None):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class TokenProvider(ABC):

    @abstractmethod
    async def get_access_token(self, user_id: str) -> str:
        """
        Return a valid access token for the account, refreshing it if needed

        Raises:
            CloudNotConnectedError: The account has no connection
            TokenRefreshError: The token endpoint refused the refresh
        """
        pass
