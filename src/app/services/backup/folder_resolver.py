"""Folder resolution against the remote folder store"""
import logging
from typing import Dict, Optional, Tuple
from src.app.services.remote_storage import RemoteStorage

logger = logging.getLogger(__name__)


class FolderResolver:
    """
    Maps a folder name under a parent to a remote folder id.

    ``resolve`` always checks the parent's children before creating, so
    repeating it never creates a duplicate. ``resolve_cached`` puts a
    run-scoped cache keyed by (parent id, name) in front of it, so items
    sharing a sub-folder cost one lookup between them.
    """

    def __init__(self, storage: RemoteStorage):
        self.storage = storage
        self._cache: Dict[Tuple[Optional[str], str], str] = {}

    async def resolve(self, access_token: str, name: str, parent_id: Optional[str] = None) -> str:
        next_link = None
        while True:
            listing = await self.storage.list_files(access_token, parent_id, next_link)
            for item in listing.items:
                if item.is_folder and item.name == name:
                    return item.id
            if not listing.next_link:
                break
            next_link = listing.next_link

        folder_id = await self.storage.create_folder(access_token, name, parent_id)
        logger.info(f"[FolderResolver] Created folder '{name}' under {parent_id or 'root'}: {folder_id}")
        return folder_id

    async def resolve_cached(
        self, access_token: str, name: str, parent_id: Optional[str] = None
    ) -> str:
        key = (parent_id, name)
        folder_id = self._cache.get(key)
        if folder_id:
            return folder_id
        folder_id = await self.resolve(access_token, name, parent_id)
        self._cache[key] = folder_id
        return folder_id

    async def create(self, access_token: str, name: str, parent_id: Optional[str] = None) -> str:
        """Create a fresh folder without looking for an existing one"""
        return await self.storage.create_folder(access_token, name, parent_id)

    @property
    def cached_folders(self) -> int:
        return len(self._cache)
