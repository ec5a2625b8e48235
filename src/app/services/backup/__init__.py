from src.app.services.backup.emitter import BackupEmitter, EventChannel
from src.app.services.backup.folder_resolver import FolderResolver
from src.app.services.backup.manifest_writer import ManifestWriter
from src.app.services.backup.pipeline import ExportPipeline
from src.app.services.backup.stages import (
    BackupContext,
    DataCategory,
    DataExportStage,
    DesignFileStage,
    ExportStage,
    InvoiceDocumentStage,
    JobPhotoStage,
    QuoteDocumentStage,
    default_stages,
)

__all__ = [
    "BackupContext",
    "BackupEmitter",
    "DataCategory",
    "DataExportStage",
    "DesignFileStage",
    "EventChannel",
    "ExportPipeline",
    "ExportStage",
    "FolderResolver",
    "InvoiceDocumentStage",
    "JobPhotoStage",
    "ManifestWriter",
    "QuoteDocumentStage",
    "default_stages",
]
