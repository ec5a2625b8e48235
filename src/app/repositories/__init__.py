from src.app.repositories.cloud_connection_repository import ICloudConnectionRepository
from src.app.repositories.backup_source_repository import IBackupSourceRepository

__all__ = [
    "ICloudConnectionRepository",
    "IBackupSourceRepository",
]
