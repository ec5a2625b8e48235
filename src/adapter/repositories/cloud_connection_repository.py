from typing import Optional
from sqlmodel.ext.asyncio.session import AsyncSession
from sqlmodel import select
from src.app.repositories.cloud_connection_repository import ICloudConnectionRepository
from src.domain.cloud_connection import CloudConnection
from src.domain.enums import CloudProvider


class SqlAlchemyCloudConnectionRepository(ICloudConnectionRepository):
    """SQLAlchemy implementation of CloudConnection repository"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_user(
        self, user_id: str, provider: CloudProvider = CloudProvider.onedrive
    ) -> Optional[CloudConnection]:
        provider_value = provider.value if hasattr(provider, "value") else provider
        stmt = select(CloudConnection).where(
            CloudConnection.user_id == user_id,
            CloudConnection.provider == provider_value,
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def update(self, connection: CloudConnection) -> CloudConnection:
        self.session.add(connection)
        await self.session.flush()
        await self.session.refresh(connection)
        return connection
