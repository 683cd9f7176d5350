"""Resumable migration of a local video library to Vimeo."""

from .config import MigrationSettings, load_settings
from .ledger import JobLedger
from .migration import RunSummary, VideoMigrationService, build_service
from .models import Job, JobStatus

__all__ = [
    "Job",
    "JobLedger",
    "JobStatus",
    "MigrationSettings",
    "RunSummary",
    "VideoMigrationService",
    "build_service",
    "load_settings",
]
