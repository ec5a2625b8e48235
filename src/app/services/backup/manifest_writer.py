import json
import logging
from typing import Any, Dict, List
from src.app.services.remote_storage import RemoteItem, RemoteStorage
from src.domain.backup_run import BackupErrorRecord, RunStats

logger = logging.getLogger(__name__)

MANIFEST_FILENAME = "manifest.json"
MANIFEST_VERSION = "1.0"
MANIFEST_FORMAT = "json"


class ManifestWriter:
    """Builds the run manifest and uploads it into the run's backup folder"""

    def __init__(self, storage: RemoteStorage, created_by: str = "Printforge CRM"):
        self.storage = storage
        self.created_by = created_by

    def build(self, stats: RunStats, errors: List[BackupErrorRecord]) -> Dict[str, Any]:
        manifest: Dict[str, Any] = {
            "version": MANIFEST_VERSION,
            "format": MANIFEST_FORMAT,
            "createdBy": self.created_by,
            **stats.model_dump(by_alias=True),
        }
        # The error count is replaced by the error list, or dropped when there is none
        if errors:
            manifest["errors"] = [record.model_dump() for record in errors]
        else:
            manifest.pop("errors", None)
        return manifest

    async def write(self, access_token: str, folder_id: str, manifest: Dict[str, Any]) -> RemoteItem:
        content = json.dumps(manifest, indent=2).encode("utf-8")
        item = await self.storage.upload_file(
            access_token, MANIFEST_FILENAME, "application/json", content, folder_id
        )
        logger.info(f"[Backup] Manifest written to folder {folder_id}")
        return item
