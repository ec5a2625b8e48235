"""Backup run value objects

ExportRun tracks one invocation of the backup pipeline. RunStats and the
error records are the totals that end up in the manifest. None of these are
persisted in the relational store.
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field
from src.domain.enums import BackupPhase, ExportRunState


PHASE_STAT_FIELDS = {
    BackupPhase.data: "data_files",
    BackupPhase.quotes: "quote_pdfs",
    BackupPhase.invoices: "invoice_pdfs",
    BackupPhase.designs: "design_files",
    BackupPhase.photos: "job_photos",
}


def utc_iso(moment: datetime) -> str:
    return moment.strftime("%Y-%m-%dT%H:%M:%S.") + f"{moment.microsecond // 1000:03d}Z"


class RunStats(BaseModel):
    """Running totals of one backup run, serialized with camelCase keys"""
    data_files: int = Field(default=0, serialization_alias="dataFiles")
    quote_pdfs: int = Field(default=0, serialization_alias="quotePdfs")
    invoice_pdfs: int = Field(default=0, serialization_alias="invoicePdfs")
    design_files: int = Field(default=0, serialization_alias="designFiles")
    job_photos: int = Field(default=0, serialization_alias="jobPhotos")
    errors: int = 0
    started_at: str = Field(default="", serialization_alias="startedAt")
    completed_at: str = Field(default="", serialization_alias="completedAt")

    def increment(self, phase: BackupPhase) -> None:
        stat = PHASE_STAT_FIELDS[BackupPhase(phase)]
        setattr(self, stat, getattr(self, stat) + 1)

    def summary(self) -> str:
        message = (
            f"Backup complete. {self.data_files} data files, {self.quote_pdfs} quotes, "
            f"{self.invoice_pdfs} invoices, {self.design_files} design files, "
            f"{self.job_photos} photos."
        )
        if self.errors > 0:
            message += f" {self.errors} errors."
        return message


class BackupErrorRecord(BaseModel):
    """One item-level failure, in the order it was reported"""
    phase: str
    item: str
    error: str


@dataclass
class ExportRun:
    """One execution of the backup pipeline for one account"""
    user_id: str
    started_at: datetime = field(default_factory=datetime.utcnow)
    root_folder_id: Optional[str] = None
    backup_folder_id: Optional[str] = None
    completed_at: Optional[datetime] = None
    state: ExportRunState = ExportRunState.initializing

    @property
    def run_id(self) -> str:
        """Timestamp name of the run's backup folder, without colons"""
        return self.started_at.strftime("%Y-%m-%dT%H-%M-%S")

    @property
    def is_finished(self) -> bool:
        return self.state in (ExportRunState.completed, ExportRunState.failed)

    def advance(self, state: ExportRunState) -> None:
        if self.is_finished:
            raise ValueError(f"Run {self.run_id} already finished as {self.state.value}")
        self.state = state

    def complete(self) -> None:
        self.advance(ExportRunState.completed)
        self.completed_at = datetime.utcnow()

    def fail(self) -> None:
        if self.is_finished:
            return
        self.state = ExportRunState.failed
