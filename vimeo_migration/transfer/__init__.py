"""Resumable transfer engine."""

from .models import (
    ResourceStatus,
    TransferSession,
    Tus,
    Unsupported,
    UploadMode,
    UploadTicket,
    UploadTicketIssuer,
    parse_upload_mode,
)
from .readiness import wait_until_ready
from .tus import TusUploader

__all__ = [
    "ResourceStatus",
    "TransferSession",
    "Tus",
    "TusUploader",
    "Unsupported",
    "UploadMode",
    "UploadTicket",
    "UploadTicketIssuer",
    "parse_upload_mode",
    "wait_until_ready",
]
