"""Value types shared by the transfer client and the hosting API."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Protocol, Union


@dataclass(frozen=True)
class Tus:
    """The append-based resumable mode this client implements."""

    name = "tus"


@dataclass(frozen=True)
class Unsupported:
    """Any other upload approach offered by the remote, kept verbatim."""

    mode: Optional[str]


UploadMode = Union[Tus, Unsupported]


def parse_upload_mode(raw: object) -> UploadMode:
    """Map the remote's upload approach string onto :data:`UploadMode`."""

    if isinstance(raw, str) and raw.strip().lower() == Tus.name:
        return Tus()
    return Unsupported(mode=raw if isinstance(raw, str) else None)


@dataclass(frozen=True)
class UploadTicket:
    """Answer of the hosting API to a request for a new upload."""

    upload_link: Optional[str]
    resource_uri: Optional[str]
    mode: UploadMode


@dataclass
class TransferSession:
    """State of one in-flight upload. Never persisted."""

    upload_endpoint: str
    resource_uri: str
    total_size: int
    current_offset: int = 0


class ResourceStatus(str, Enum):
    PROCESSING = "processing"
    READY = "ready"
    ERROR = "error"


class UploadTicketIssuer(Protocol):
    """Hosting capability able to open a resumable upload."""

    def create_upload_ticket(
        self, size: int, name: str, folder_uri: str | None = None
    ) -> UploadTicket:
        raise NotImplementedError


__all__ = [
    "ResourceStatus",
    "TransferSession",
    "Tus",
    "Unsupported",
    "UploadMode",
    "UploadTicket",
    "UploadTicketIssuer",
    "parse_upload_mode",
]
