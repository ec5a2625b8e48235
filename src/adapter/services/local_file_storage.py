"""Local File Storage Adapter

Reads upload files from the local filesystem.
"""
import aiofiles
from pathlib import Path
from src.app.services.file_storage import FileStorage


class LocalFileStorage(FileStorage):
    """Local filesystem storage implementation"""

    def __init__(self, base_path: str):
        """
        Initialize local file storage

        Args:
            base_path: Uploads root directory
        """
        self.base_path = Path(base_path).resolve()

    def _full_path(self, file_path: str) -> Path:
        full_path = (self.base_path / file_path).resolve()
        if full_path != self.base_path and self.base_path not in full_path.parents:
            raise ValueError(f"Path escapes the uploads directory: {file_path}")
        return full_path

    async def read(self, file_path: str) -> bytes:
        """Read file content from local storage"""
        full_path = self._full_path(file_path)
        if not full_path.is_file():
            raise FileNotFoundError(f"File not found: {file_path}")

        async with aiofiles.open(full_path, "rb") as f:
            return await f.read()

    async def exists(self, file_path: str) -> bool:
        """Check if a file exists in local storage"""
        try:
            return self._full_path(file_path).is_file()
        except ValueError:
            return False
