from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional
from src.domain.backup_sources import DesignFileRecord, JobPhotoRecord


class IBackupSourceRepository(ABC):
    """Read-only access to the records a full-account backup walks"""

    @abstractmethod
    async def list_rows(self, category: str, user_id: str) -> List[Dict[str, Any]]:
        """Get every row of a structured-data category, as column -> value dicts"""
        pass

    @abstractmethod
    async def get_settings(self, user_id: str) -> Optional[Dict[str, Any]]:
        """Get the account's business settings row"""
        pass

    @abstractmethod
    async def list_quotes(self, user_id: str) -> List[Dict[str, Any]]:
        """Get quotes with their ``client`` snapshot and ``lineItems``"""
        pass

    @abstractmethod
    async def list_invoices(self, user_id: str) -> List[Dict[str, Any]]:
        """Get invoices with their ``client`` snapshot and ``lineItems``"""
        pass

    @abstractmethod
    async def list_design_files(self, user_id: str) -> List[DesignFileRecord]:
        """Get design files ordered by design number"""
        pass

    @abstractmethod
    async def list_job_photos(self, user_id: str) -> List[JobPhotoRecord]:
        """Get job photos"""
        pass
