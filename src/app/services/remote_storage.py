"""Remote Storage Interface

Abstract interface over the externally hosted folder store the backup is
written to. Every call is keyed by a parent folder id; ``None`` addresses
the drive root.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional


class RemoteStorageError(Exception):
    """Raised when the folder store rejects or fails a request"""
    def __init__(self, message: str, status_code: Optional[int] = None):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


@dataclass(frozen=True)
class RemoteItem:
    """One child entry of a remote folder"""
    id: str
    name: str
    is_folder: bool = False
    size: Optional[int] = None
    mime_type: Optional[str] = None


@dataclass(frozen=True)
class RemoteListing:
    items: List[RemoteItem]
    next_link: Optional[str] = None


class RemoteStorage(ABC):
    """Interface for folder store operations"""

    @abstractmethod
    async def list_files(
        self, access_token: str, parent_id: Optional[str] = None, next_link: Optional[str] = None
    ) -> RemoteListing:
        """
        List one page of children of a folder

        Args:
            access_token: OAuth access token of the account
            parent_id: Folder to list, drive root when None
            next_link: Continuation link returned by the previous page

        Returns:
            RemoteListing with the page's items and the next page link, if any
        """
        pass

    @abstractmethod
    async def create_folder(
        self, access_token: str, name: str, parent_id: Optional[str] = None
    ) -> str:
        """
        Create a folder

        Returns:
            The remote id of the new folder
        """
        pass

    @abstractmethod
    async def upload_file(
        self,
        access_token: str,
        name: str,
        mime_type: str,
        content: bytes,
        parent_id: Optional[str] = None,
    ) -> RemoteItem:
        """
        Upload exact bytes as a file with an explicit MIME type

        Stores that cannot take a content type for every upload path derive
        it from the file name instead. The OneDrive adapter does this for
        uploads above its single-request limit.

        Returns:
            The uploaded item
        """
        pass
