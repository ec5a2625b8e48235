from src.domain.base import BaseModel, generate_uuid
from src.domain.enums import (
    CloudProvider,
    BackupPhase,
    ExportRunState,
)
from src.domain.cloud_connection import CloudConnection
from src.domain.backup_run import ExportRun, RunStats, BackupErrorRecord
from src.domain.backup_events import (
    ProgressEvent,
    ErrorEvent,
    CompleteEvent,
    BackupEvent,
    encode_event,
)
from src.domain.backup_sources import DesignFileRecord, JobPhotoRecord
from src.domain.tax_regions import TaxRegionDefaults, get_tax_defaults

__all__ = [
    # Base
    "BaseModel",
    "generate_uuid",
    # Enums
    "CloudProvider",
    "BackupPhase",
    "ExportRunState",
    # Entities
    "CloudConnection",
    # Backup run
    "ExportRun",
    "RunStats",
    "BackupErrorRecord",
    "ProgressEvent",
    "ErrorEvent",
    "CompleteEvent",
    "BackupEvent",
    "encode_event",
    "DesignFileRecord",
    "JobPhotoRecord",
    "TaxRegionDefaults",
    "get_tax_defaults",
]
