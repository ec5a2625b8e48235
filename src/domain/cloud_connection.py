"""CloudConnection Entity

Per-account link to an external folder store. Holds the OAuth tokens used
by the token accessor, the id of the account's top-level folder and the
time of the last successful backup.
"""
from datetime import datetime, timedelta
from typing import Optional
from sqlalchemy import UniqueConstraint
from sqlmodel import Field
from src.domain.base import BaseModel, generate_uuid
from src.domain.enums import CloudProvider


class CloudConnection(BaseModel, table=True):
    __tablename__ = "cloud_connections"
    __table_args__ = (UniqueConstraint("user_id", "provider", name="uq_cloud_connections_user_provider"),)

    id: str = Field(default_factory=generate_uuid, primary_key=True)
    user_id: str = Field(index=True, nullable=False)
    provider: CloudProvider = Field(default=CloudProvider.onedrive, nullable=False)

    # OAuth tokens
    access_token: str = Field(nullable=False)
    refresh_token: str = Field(nullable=False)
    token_expires_at: Optional[datetime] = Field(default=None)

    # Remote folder state
    root_folder_id: Optional[str] = Field(default=None)
    last_sync_at: Optional[datetime] = Field(default=None)

    created_at: datetime = Field(default_factory=datetime.utcnow, nullable=False)
    updated_at: datetime = Field(default_factory=datetime.utcnow, nullable=False)

    class Config:
        use_enum_values = True

    def assign_root_folder(self, folder_id: str) -> bool:
        """Persist the account root folder id; an existing id is never replaced"""
        if self.root_folder_id:
            return False
        self.root_folder_id = folder_id
        self.updated_at = datetime.utcnow()
        return True

    def mark_synced(self, at: Optional[datetime] = None) -> None:
        self.last_sync_at = at or datetime.utcnow()
        self.updated_at = datetime.utcnow()

    def token_expired(self, skew_seconds: int = 60) -> bool:
        if not self.token_expires_at:
            return True
        return datetime.utcnow() >= self.token_expires_at - timedelta(seconds=skew_seconds)

    def update_tokens(
        self, access_token: str, expires_in: int, refresh_token: Optional[str] = None
    ) -> None:
        self.access_token = access_token
        if refresh_token:
            self.refresh_token = refresh_token
        self.token_expires_at = datetime.utcnow() + timedelta(seconds=expires_in)
        self.updated_at = datetime.utcnow()
