"""Backup pipeline orchestration

ExportPipeline drives one full-account backup: provision the folder tree,
run the export stages in order, then write the manifest. Item failures are
absorbed by the stages; anything escaping a stage or root provisioning
ends the run with a single fatal event and no manifest.
"""
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional
from src.app.services.audit_service import AuditService
from src.app.services.backup.emitter import BackupEmitter
from src.app.services.backup.folder_resolver import FolderResolver
from src.app.services.backup.manifest_writer import ManifestWriter
from src.app.services.backup.stages import BackupContext, ExportStage
from src.app.services.remote_storage import RemoteStorage
from src.app.services.token_provider import CloudNotConnectedError, TokenProvider
from src.app.services.unit_of_work import UnitOfWork
from src.domain.backup_run import ExportRun, utc_iso
from src.domain.cloud_connection import CloudConnection
from src.domain.enums import ExportRunState

logger = logging.getLogger(__name__)

BACKUPS_FOLDER_NAME = "Backups"


class ExportPipeline:
    def __init__(
        self,
        user_id: str,
        uow: UnitOfWork,
        storage: RemoteStorage,
        token_provider: TokenProvider,
        emitter: BackupEmitter,
        stages: List[ExportStage],
        manifest_writer: Optional[ManifestWriter] = None,
        audit_service: Optional[AuditService] = None,
        root_folder_name: str = "Printforge CRM",
        access_token: Optional[str] = None,
    ):
        self.user_id = user_id
        self.uow = uow
        self.storage = storage
        self.token_provider = token_provider
        self.emitter = emitter
        self.stages = stages
        self.manifest_writer = manifest_writer or ManifestWriter(storage, created_by=root_folder_name)
        self.audit_service = audit_service
        self.root_folder_name = root_folder_name
        self.folders = FolderResolver(storage)
        self.run_state = ExportRun(user_id=user_id)
        self.emitter.stats.started_at = utc_iso(self.run_state.started_at)
        self._access_token = access_token
        self._connection: Optional[CloudConnection] = None

    async def run(self) -> Optional[Dict[str, Any]]:
        """
        Execute the backup end to end

        Returns:
            The manifest that was written, or None when the run failed
        """
        run = self.run_state
        logger.info(f"[Backup] Starting backup {run.run_id} for user {self.user_id}")
        try:
            async with self.uow:
                access_token = self._access_token or await self._fresh_token()
                await self._provision_folders(access_token)

                run.advance(ExportRunState.running_stages)
                context = BackupContext(
                    user_id=self.user_id,
                    run=run,
                    storage=self.storage,
                    folders=self.folders,
                    emitter=self.emitter,
                    sources=self.uow.backup_sources,
                )
                for stage in self.stages:
                    context.access_token = await self._fresh_token()
                    await stage.run(context)

                run.advance(ExportRunState.writing_manifest)
                manifest = await self._write_manifest()

            run.complete()
            stats = self.emitter.stats
            self.emitter.complete(stats, stats.summary())
            logger.info(f"[Backup] Backup {run.run_id} completed: {stats.summary()}")
            await self._audit("backup_completed", manifest)
            return manifest

        except Exception as e:
            run.fail()
            logger.exception(f"[Backup] Backup {run.run_id} failed for user {self.user_id}: {e}")
            self.emitter.fatal(str(e) or "Backup failed")
            await self._audit("backup_failed", {"error": str(e), "state": run.state.value})
            return None

        finally:
            self.emitter.close()

    async def _fresh_token(self) -> str:
        return await self.token_provider.get_access_token(self.user_id)

    async def _provision_folders(self, access_token: str) -> None:
        run = self.run_state
        run.advance(ExportRunState.root_provisioning)

        connection = await self.uow.cloud_connections.get_by_user(self.user_id)
        if not connection:
            raise CloudNotConnectedError("OneDrive not connected")

        if not connection.root_folder_id:
            root_id = await self.folders.resolve(access_token, self.root_folder_name, None)
            connection.assign_root_folder(root_id)
            await self.uow.cloud_connections.update(connection)
            await self.uow.commit()
            logger.info(f"[Backup] Root folder '{self.root_folder_name}' assigned: {root_id}")

        run.root_folder_id = connection.root_folder_id
        backups_id = await self.folders.resolve_cached(
            access_token, BACKUPS_FOLDER_NAME, run.root_folder_id
        )
        run.backup_folder_id = await self.folders.create(access_token, run.run_id, backups_id)
        self._connection = connection

    async def _write_manifest(self) -> Dict[str, Any]:
        access_token = await self._fresh_token()
        stats = self.emitter.stats
        stats.completed_at = utc_iso(datetime.utcnow())

        manifest = self.manifest_writer.build(stats, self.emitter.errors)
        await self.manifest_writer.write(access_token, self.run_state.backup_folder_id, manifest)

        self._connection.mark_synced()
        await self.uow.cloud_connections.update(self._connection)
        await self.uow.commit()
        return manifest

    async def _audit(self, event_type: str, metadata: Dict[str, Any]) -> None:
        if not self.audit_service:
            return
        try:
            await self.audit_service.log_event(
                event_type=event_type,
                user_id=self.user_id,
                resource_type="cloud_backup",
                resource_id=self.run_state.run_id,
                metadata=metadata,
            )
        except Exception as e:
            logger.warning(f"[Backup] Failed to record audit event {event_type}: {e}")
