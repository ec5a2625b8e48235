import logging
from typing import Awaitable, Callable
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession
from motor.motor_asyncio import AsyncIOMotorClient
from config import ApplicationConfig
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.adapter.services.audit_service import MongoAuditService
from src.adapter.services.http_document_renderer import HttpDocumentRenderer
from src.adapter.services.local_file_storage import LocalFileStorage
from src.adapter.services.onedrive_storage import OneDriveStorage
from src.adapter.services.onedrive_token_provider import OneDriveTokenProvider
from src.app.services.backup import BackupEmitter, EventChannel, ExportPipeline, default_stages
from src.app.services.file_storage import FileStorage
from src.app.services.rate_limiter import SlidingWindowRateLimiter
from src.app.services.unit_of_work import UnitOfWork
from src.app.use_cases.backups import BackupStartDTO
from src.api.utils.jwt import verify_jwt

logger = logging.getLogger(__name__)

# PostgreSQL engine
engine = create_async_engine(ApplicationConfig.DB_URI, echo=False, future=True)

AsyncSessionLocal = sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
)

# MongoDB client
mongo_client = AsyncIOMotorClient(ApplicationConfig.MONGODB_URI)

# One limiter per process, shared by every request
backup_rate_limiter = SlidingWindowRateLimiter(
    window_seconds=ApplicationConfig.BACKUP_RATE_LIMIT_WINDOW_SECONDS,
    max_requests=ApplicationConfig.BACKUP_RATE_LIMIT_MAX_REQUESTS,
)

BackupLauncher = Callable[[BackupStartDTO, EventChannel], Awaitable[None]]


async def get_unit_of_work():
    async with AsyncSessionLocal() as session:
        yield SqlAlchemyUnitOfWork(session)


async def get_audit_service() -> MongoAuditService:
    return MongoAuditService(mongo_client, ApplicationConfig.MONGODB_DB_NAME)


def get_file_storage() -> FileStorage:
    """Dependency for reading upload files"""
    return LocalFileStorage(base_path=ApplicationConfig.UPLOADS_PATH)


def _token_provider(uow: UnitOfWork) -> OneDriveTokenProvider:
    return OneDriveTokenProvider(
        uow,
        client_id=ApplicationConfig.ONEDRIVE_CLIENT_ID,
        client_secret=ApplicationConfig.ONEDRIVE_CLIENT_SECRET,
        tenant_id=ApplicationConfig.ONEDRIVE_TENANT_ID,
        auth_url=ApplicationConfig.ONEDRIVE_AUTH_URL,
    )


async def get_token_provider(uow: UnitOfWork = Depends(get_unit_of_work)):
    provider = _token_provider(uow)
    try:
        yield provider
    finally:
        await provider.close()


def get_backup_rate_limiter() -> SlidingWindowRateLimiter:
    return backup_rate_limiter


async def run_backup_in_background(start: BackupStartDTO, channel: EventChannel) -> None:
    """Run one backup with its own sessions and clients"""
    storage = OneDriveStorage(
        graph_url=ApplicationConfig.ONEDRIVE_GRAPH_URL,
        timeout=ApplicationConfig.REMOTE_STORAGE_TIMEOUT,
    )
    renderer = HttpDocumentRenderer(base_url=ApplicationConfig.RENDER_SERVICE_URL)
    emitter = BackupEmitter(channel)
    try:
        async with AsyncSessionLocal() as session, AsyncSessionLocal() as token_session:
            token_provider = _token_provider(SqlAlchemyUnitOfWork(token_session))
            try:
                pipeline = ExportPipeline(
                    user_id=start.user_id,
                    uow=SqlAlchemyUnitOfWork(session),
                    storage=storage,
                    token_provider=token_provider,
                    emitter=emitter,
                    stages=default_stages(renderer, get_file_storage()),
                    audit_service=await get_audit_service(),
                    root_folder_name=ApplicationConfig.BACKUP_ROOT_FOLDER_NAME,
                    access_token=start.access_token,
                )
                await pipeline.run()
            finally:
                await token_provider.close()
    except Exception as e:
        logger.exception(f"[Backup] Background backup crashed for user {start.user_id}: {e}")
        emitter.fatal("Backup failed")
    finally:
        emitter.close()
        await storage.close()
        await renderer.close()


def get_backup_launcher() -> BackupLauncher:
    return run_backup_in_background


# Security
security = HTTPBearer()


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> dict:
    """
    Dependency to extract and validate JWT token from Authorization header

    Returns:
        dict: Decoded JWT payload with user_id

    Raises:
        HTTPException: 401 if token is missing or invalid
    """
    if ApplicationConfig.AUTH_DISABLED:
        # For testing/development - return mock user
        return {"user_id": "test-user-id"}

    if credentials is None:
        logger.error("No credentials provided - HTTPBearer failed")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="No authorization header",
            headers={"WWW-Authenticate": "Bearer"},
        )

    payload = verify_jwt(credentials.credentials)

    if payload is None or not payload.get("user_id"):
        logger.error("verify_jwt rejected the token - raising 401")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return payload
