import pytest_asyncio
from dataclasses import dataclass, field
from typing import List, Optional
from httpx import AsyncClient, ASGITransport
from src.app.services.backup import (
    BackupEmitter,
    DataCategory,
    DataExportStage,
    ExportPipeline,
)
from src.app.services.rate_limiter import SlidingWindowRateLimiter
from src.domain.cloud_connection import CloudConnection
from tests.fakes import (
    FakeBackupSources,
    FakeRemoteStorage,
    FakeTokenProvider,
    make_connection,
    make_uow,
)


@dataclass
class BackupEnvironment:
    """Collaborators behind the backup endpoint, swapped per test"""

    connection: Optional[CloudConnection] = field(default_factory=make_connection)
    sources: FakeBackupSources = field(
        default_factory=lambda: FakeBackupSources(rows={"printers": [{"id": "p1", "name": "MK4"}]})
    )
    storage: FakeRemoteStorage = field(default_factory=FakeRemoteStorage)
    token_provider: FakeTokenProvider = field(default_factory=FakeTokenProvider)
    rate_limiter: SlidingWindowRateLimiter = field(
        default_factory=lambda: SlidingWindowRateLimiter(window_seconds=3600, max_requests=1)
    )
    started: List[str] = field(default_factory=list)


@pytest_asyncio.fixture
def backup_env():
    return BackupEnvironment()


@pytest_asyncio.fixture
async def client(backup_env):
    from src.api.app import create_app
    from config import ApplicationConfig
    from src.depends import (
        get_backup_launcher,
        get_backup_rate_limiter,
        get_current_user,
        get_token_provider,
        get_unit_of_work,
    )

    app = create_app(ApplicationConfig)

    async def override_get_current_user():
        return {"user_id": "user-1"}

    async def override_get_unit_of_work():
        yield make_uow(backup_env.connection, backup_env.sources)

    async def override_get_token_provider():
        yield backup_env.token_provider

    def override_get_backup_rate_limiter():
        return backup_env.rate_limiter

    async def launcher(start, channel):
        backup_env.started.append(start.user_id)
        pipeline = ExportPipeline(
            user_id=start.user_id,
            uow=make_uow(backup_env.connection, backup_env.sources),
            storage=backup_env.storage,
            token_provider=FakeTokenProvider(),
            emitter=BackupEmitter(channel),
            stages=[DataExportStage([DataCategory("printers")])],
            access_token=start.access_token,
        )
        await pipeline.run()

    def override_get_backup_launcher():
        return launcher

    app.dependency_overrides[get_current_user] = override_get_current_user
    app.dependency_overrides[get_unit_of_work] = override_get_unit_of_work
    app.dependency_overrides[get_token_provider] = override_get_token_provider
    app.dependency_overrides[get_backup_rate_limiter] = override_get_backup_rate_limiter
    app.dependency_overrides[get_backup_launcher] = override_get_backup_launcher

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
