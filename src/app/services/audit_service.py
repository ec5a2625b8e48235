from abc import ABC, abstractmethod
from typing import Dict, Any


class AuditService(ABC):
    """Service interface for audit event logging"""

    @abstractmethod
    async def log_event(
        self,
        event_type: str,
        user_id: str,
        resource_type: str,
        resource_id: str,
        metadata: Dict[str, Any] = None,
    ) -> None:
        """
        Log an audit event

        Args:
            event_type: Type of event (e.g. "backup_completed", "backup_failed")
            user_id: Account the event belongs to
            resource_type: Type of resource (e.g. "cloud_backup")
            resource_id: ID of the affected resource
            metadata: Additional event metadata
        """
        pass
