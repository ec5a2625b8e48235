from abc import ABC, abstractmethod
from src.app.repositories.cloud_connection_repository import ICloudConnectionRepository
from src.app.repositories.backup_source_repository import IBackupSourceRepository


class UnitOfWork(ABC):
    """Transaction boundary giving access to the repositories"""

    cloud_connections: ICloudConnectionRepository
    backup_sources: IBackupSourceRepository

    @abstractmethod
    async def __aenter__(self):
        pass

    @abstractmethod
    async def __aexit__(self, *args):
        pass

    @abstractmethod
    async def commit(self):
        pass

    @abstractmethod
    async def rollback(self):
        pass
