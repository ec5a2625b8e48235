from .dtos import BackupStartDTO
from .start_backup_use_case import StartBackupUseCase

__all__ = [
    "BackupStartDTO",
    "StartBackupUseCase",
]
