"""Backup DTOs"""
from pydantic import BaseModel


class BackupStartDTO(BaseModel):
    """Preconditions satisfied, the pipeline may be started"""
    user_id: str
    connection_id: str
    access_token: str
