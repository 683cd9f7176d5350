"""Error types raised by the migration tool.

Everything derived from :class:`TransferError` is local to a single job: the
orchestrator records it on the job and moves on. :class:`LedgerError` and
:class:`ConfigurationError` abort the whole run.
"""

from __future__ import annotations


class MigrationError(Exception):
    """Base class for every error raised by this package."""


class ConfigurationError(MigrationError):
    """Raised when required settings are missing or invalid."""


class LedgerError(MigrationError):
    """Raised when the job ledger storage cannot be read or written."""


class MissingFileError(MigrationError):
    """Raised when a job's source file is not on disk."""


class SideAssetError(MigrationError):
    """Raised when a companion asset could not be attached to a video."""


class VimeoApiError(MigrationError):
    """Raised when the hosting API answers with an unexpected response."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class TransferError(MigrationError):
    """Base class for resumable transfer failures."""


class SessionCreationError(TransferError):
    """Raised when the remote refuses to open an upload session."""


class ProtocolMismatchError(TransferError):
    """Raised when the remote does not speak the resumable mode we implement."""


class OffsetQueryError(TransferError):
    """Raised when the upload offset query fails."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ChunkUploadError(TransferError):
    """Raised when a single append request is rejected."""

    def __init__(self, message: str, status_code: int | None, offset: int) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.offset = offset


class IncompleteTransferError(TransferError):
    """Raised when the final offset check finds fewer bytes than the file holds."""

    def __init__(self, expected: int, confirmed: int) -> None:
        super().__init__(
            f"Upload incomplete. Expected {expected} bytes, got {confirmed} bytes"
        )
        self.expected = expected
        self.confirmed = confirmed


class RemoteProcessingError(TransferError):
    """Raised when the remote reports that processing the upload failed."""


class ReadinessTimeoutError(TransferError):
    """Raised when the remote never reports a terminal processing state."""

    def __init__(self, resource_uri: str, attempts: int) -> None:
        super().__init__(
            f"Processing of {resource_uri} did not finish after {attempts} polls"
        )
        self.resource_uri = resource_uri
        self.attempts = attempts


__all__ = [
    "ChunkUploadError",
    "ConfigurationError",
    "IncompleteTransferError",
    "LedgerError",
    "MigrationError",
    "MissingFileError",
    "OffsetQueryError",
    "ProtocolMismatchError",
    "ReadinessTimeoutError",
    "RemoteProcessingError",
    "SessionCreationError",
    "SideAssetError",
    "TransferError",
    "VimeoApiError",
]
