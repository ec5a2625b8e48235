"""Records read from the account's dataset for the file stages"""
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class DesignFileRecord:
    design_id: str
    design_number: str
    filename: str
    original_name: str
    mime_type: str


@dataclass(frozen=True)
class JobPhotoRecord:
    job_id: str
    filename: str
    mime_type: Optional[str] = None
