from typing import Dict, Any
from datetime import datetime
from motor.motor_asyncio import AsyncIOMotorClient
from src.app.services.audit_service import AuditService


class MongoAuditService(AuditService):
    """MongoDB implementation of AuditService"""

    def __init__(self, mongo_client: AsyncIOMotorClient, db_name: str, collection: str = "backup_audit_events"):
        self.client = mongo_client
        self.db = self.client[db_name]
        self.collection = self.db[collection]

    async def log_event(
        self,
        event_type: str,
        user_id: str,
        resource_type: str,
        resource_id: str,
        metadata: Dict[str, Any] = None,
    ) -> None:
        """Insert one audit document"""
        await self.collection.insert_one({
            "event_type": event_type,
            "user_id": user_id,
            "resource": {"type": resource_type, "id": resource_id},
            "metadata": dict(metadata or {}),
            "recorded_at": datetime.utcnow(),
        })
