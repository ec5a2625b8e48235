from src.adapter.services.audit_service import MongoAuditService
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork

__all__ = ["MongoAuditService", "SqlAlchemyUnitOfWork"]
