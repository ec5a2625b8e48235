"""File Storage Interface

Read access to files the application stored for an account (design files,
job photos). Paths are relative to the uploads root.
"""
from abc import ABC, abstractmethod


class FileStorage(ABC):
    """Interface for reading stored upload files"""

    @abstractmethod
    async def read(self, file_path: str) -> bytes:
        """
        Read the full content of a stored file

        Args:
            file_path: Path of the file relative to the uploads root

        Returns:
            The file content as bytes

        Raises:
            FileNotFoundError: If no file exists at the path
            ValueError: If the path points outside the uploads root
        """
        pass

    @abstractmethod
    async def exists(self, file_path: str) -> bool:
        """Check if a file exists in storage"""
        pass
