from abc import ABC, abstractmethod
from typing import Optional
from src.domain.cloud_connection import CloudConnection
from src.domain.enums import CloudProvider


class ICloudConnectionRepository(ABC):
    """Interface for CloudConnection repository"""

    @abstractmethod
    async def get_by_user(
        self, user_id: str, provider: CloudProvider = CloudProvider.onedrive
    ) -> Optional[CloudConnection]:
        """Get the account's connection for a provider"""
        pass

    @abstractmethod
    async def update(self, connection: CloudConnection) -> CloudConnection:
        """Update an existing connection"""
        pass
