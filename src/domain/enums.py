from enum import Enum


class CloudProvider(str, Enum):
    """External folder store an account can connect"""
    onedrive = "onedrive"
    google_drive = "google_drive"


class BackupPhase(str, Enum):
    """Phase names carried on backup events and manifest error entries"""
    data = "data"
    quotes = "quotes"
    invoices = "invoices"
    designs = "designs"
    photos = "photos"
    fatal = "fatal"


class ExportRunState(str, Enum):
    """Lifecycle of one backup run"""
    initializing = "initializing"
    root_provisioning = "root_provisioning"
    running_stages = "running_stages"
    writing_manifest = "writing_manifest"
    completed = "completed"
    failed = "failed"
