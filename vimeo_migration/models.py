"""Persisted job rows for the migration ledger."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional

from sqlalchemy import CheckConstraint, DateTime, Index, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class JobStatus(str, Enum):
    """Lifecycle states of a migration job."""

    PENDING = "pending"
    UPLOADED = "uploaded"
    FAILED = "failed"


RETRYABLE_STATUSES = (JobStatus.PENDING, JobStatus.FAILED)


class Base(DeclarativeBase):
    pass


class Job(Base):
    """One source video and the outcome of migrating it.

    ``remote_id`` and ``remote_uri`` are only set once the video has been
    uploaded; the table constraint rejects any other combination.
    """

    __tablename__ = "uploads"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    source_filename: Mapped[str] = mapped_column(String(512), unique=True, nullable=False)
    side_asset_filename: Mapped[Optional[str]] = mapped_column(String(512), nullable=True)
    remote_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    remote_uri: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    status: Mapped[str] = mapped_column(
        String(16), nullable=False, default=JobStatus.PENDING.value
    )
    error_message: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    __table_args__ = (
        CheckConstraint(
            "status IN ('pending', 'uploaded', 'failed')", name="ck_uploads_status"
        ),
        CheckConstraint(
            "(status = 'uploaded') = (remote_id IS NOT NULL AND remote_uri IS NOT NULL)",
            name="ck_uploads_remote_when_uploaded",
        ),
        Index("idx_status", "status"),
    )

    @property
    def job_status(self) -> JobStatus:
        return JobStatus(self.status)

    def __repr__(self) -> str:
        return (
            f"<Job(id={self.id}, source_filename='{self.source_filename}', "
            f"status='{self.status}')>"
        )


__all__ = ["Base", "Job", "JobStatus", "RETRYABLE_STATUSES"]
