from sqlmodel.ext.asyncio.session import AsyncSession
from src.app.services.unit_of_work import UnitOfWork
from src.adapter.repositories.cloud_connection_repository import SqlAlchemyCloudConnectionRepository
from src.adapter.repositories.backup_source_repository import SqlAlchemyBackupSourceRepository


class SqlAlchemyUnitOfWork(UnitOfWork):
    """SQLAlchemy implementation of UnitOfWork pattern"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def __aenter__(self):
        self.cloud_connections = SqlAlchemyCloudConnectionRepository(self.session)
        self.backup_sources = SqlAlchemyBackupSourceRepository(self.session)
        return self

    async def __aexit__(self, *args):
        await self.rollback()

    async def commit(self):
        await self.session.commit()

    async def rollback(self):
        await self.session.rollback()
