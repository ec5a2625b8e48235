from src.adapter.repositories.cloud_connection_repository import SqlAlchemyCloudConnectionRepository
from src.adapter.repositories.backup_source_repository import SqlAlchemyBackupSourceRepository

__all__ = [
    "SqlAlchemyCloudConnectionRepository",
    "SqlAlchemyBackupSourceRepository",
]
