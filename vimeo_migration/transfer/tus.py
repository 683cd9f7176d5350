"""Resumable uploads over the tus 1.0.0 protocol.

Only the subset needed for large sequential transfers is implemented: the
upload itself is created through the hosting API, then the client queries the
remote offset with ``HEAD`` and appends fixed-size chunks with ``PATCH``.

The remote offset is the single source of truth. It is queried before the
first chunk, every chunk starts exactly at the last confirmed offset, and a
final query confirms that every byte arrived.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, Optional

from requests import Response, Session
from tqdm import tqdm

from ..exceptions import (
    ChunkUploadError,
    IncompleteTransferError,
    OffsetQueryError,
    ProtocolMismatchError,
    SessionCreationError,
    TransferError,
)
from .models import TransferSession, Unsupported, UploadTicketIssuer

LOGGER = logging.getLogger(__name__)

TUS_VERSION = "1.0.0"
OFFSET_CONTENT_TYPE = "application/offset+octet-stream"
DEFAULT_CHUNK_SIZE = 5 * 1024 * 1024
DEFAULT_TIMEOUT = 30 * 60  # seconds, large chunks on slow links


def _parse_offset(response: Response) -> Optional[int]:
    raw = response.headers.get("Upload-Offset")
    if raw is None:
        return None
    try:
        value = int(str(raw).strip())
    except ValueError:
        return None
    return value if value >= 0 else None


class TusUploader:
    """Move a local file to a tus upload endpoint, resuming when possible.

    Parameters
    ----------
    issuer:
        Hosting capability that opens uploads, see
        :class:`~vimeo_migration.transfer.models.UploadTicketIssuer`.
    http:
        Session used for the ``HEAD``/``PATCH`` requests.
    chunk_size:
        Bytes per ``PATCH``. The last chunk may be shorter.
    max_chunk_size:
        Limit imposed by the remote; ``chunk_size`` may not exceed it.
    strict_offsets:
        When true, a ``PATCH`` response without ``Upload-Offset`` raises
        :class:`ProtocolMismatchError` instead of assuming the whole chunk
        was accepted.
    show_progress:
        Display a ``tqdm`` byte progress bar while uploading.
    """

    def __init__(
        self,
        issuer: UploadTicketIssuer,
        http: Session,
        *,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        max_chunk_size: int | None = None,
        strict_offsets: bool = False,
        timeout: float = DEFAULT_TIMEOUT,
        show_progress: bool = False,
    ) -> None:
        if chunk_size <= 0:
            raise ValueError("chunk_size must be positive")
        if max_chunk_size is not None and chunk_size > max_chunk_size:
            raise ValueError(
                f"chunk_size {chunk_size} exceeds the remote limit of {max_chunk_size} bytes"
            )
        self.issuer = issuer
        self.http = http
        self.chunk_size = chunk_size
        self.max_chunk_size = max_chunk_size
        self.strict_offsets = strict_offsets
        self.timeout = timeout
        self.show_progress = show_progress

    def close(self) -> None:
        self.http.close()

    # ------------------------------------------------------------------
    def create_session(
        self, file_size: int, display_name: str, placement_hint: str | None = None
    ) -> TransferSession:
        """Open a new upload on the remote for ``file_size`` bytes."""

        ticket = self.issuer.create_upload_ticket(file_size, display_name, placement_hint)
        if isinstance(ticket.mode, Unsupported):
            if ticket.mode.mode is None:
                raise SessionCreationError(
                    "Remote did not return an upload approach. Expected 'tus'."
                )
            raise ProtocolMismatchError(
                f"Unexpected upload approach: {ticket.mode.mode}. Expected 'tus'."
            )
        if not ticket.upload_link:
            raise SessionCreationError("Remote did not return a tus upload link")
        if not ticket.resource_uri:
            raise SessionCreationError("Remote did not return the video URI")
        return TransferSession(
            upload_endpoint=ticket.upload_link,
            resource_uri=ticket.resource_uri,
            total_size=file_size,
        )

    def _headers(self, extra: Dict[str, str] | None = None) -> Dict[str, str]:
        headers = {"Tus-Resumable": TUS_VERSION}
        if extra:
            headers.update(extra)
        return headers

    def query_offset(self, upload_endpoint: str) -> int:
        """Return how many bytes the remote holds for ``upload_endpoint``."""

        response = self.http.head(
            upload_endpoint, headers=self._headers(), timeout=self.timeout
        )
        if not response.ok:
            raise OffsetQueryError(
                f"Failed to get upload offset: {response.status_code} - {response.text[:400]}",
                status_code=response.status_code,
            )
        offset = _parse_offset(response)
        if offset is None:
            raise ProtocolMismatchError(
                "Offset query response carried no valid Upload-Offset header"
            )
        return offset

    def send_chunk(self, upload_endpoint: str, offset: int, data: bytes) -> int:
        """Append ``data`` at ``offset`` and return the new confirmed offset."""

        response = self.http.patch(
            upload_endpoint,
            data=data,
            headers=self._headers(
                {
                    "Upload-Offset": str(offset),
                    "Content-Type": OFFSET_CONTENT_TYPE,
                }
            ),
            timeout=self.timeout,
        )
        if not response.ok:
            raise ChunkUploadError(
                f"Failed to upload chunk at offset {offset}: "
                f"{response.status_code} - {response.text[:400]}",
                status_code=response.status_code,
                offset=offset,
            )

        new_offset = _parse_offset(response)
        if new_offset is None:
            if self.strict_offsets:
                raise ProtocolMismatchError(
                    f"Append at offset {offset} was not acknowledged with an Upload-Offset"
                )
            new_offset = offset + len(data)
            LOGGER.warning(
                "No Upload-Offset in append response at %d; assuming %d", offset, new_offset
            )
        if new_offset < offset or new_offset > offset + len(data):
            raise ProtocolMismatchError(
                f"Remote reported offset {new_offset} after appending "
                f"{len(data)} bytes at {offset}"
            )
        return new_offset

    # ------------------------------------------------------------------
    def upload(self, local_path: Path | str, session: TransferSession) -> str:
        """Send ``local_path`` to ``session`` and return the resource URI.

        Resumes from whatever offset the remote reports, including the case
        where a previous run already delivered every byte.
        """

        path = Path(local_path)
        size = path.stat().st_size
        if size != session.total_size:
            raise TransferError(
                f"{path.name} is {size} bytes but the upload was opened for "
                f"{session.total_size} bytes"
            )

        endpoint = session.upload_endpoint
        offset = self.query_offset(endpoint)
        if offset > size:
            raise ProtocolMismatchError(
                f"Remote holds {offset} bytes for a {size} byte file"
            )
        session.current_offset = offset
        if offset:
            LOGGER.info("Resuming upload of %s from byte %d / %d", path.name, offset, size)
        else:
            LOGGER.info("Starting upload of %s (%d bytes)", path.name, size)

        with path.open("rb") as fh, tqdm(
            total=size,
            initial=offset,
            unit="B",
            unit_scale=True,
            unit_divisor=1024,
            desc=path.name,
            disable=not self.show_progress,
        ) as bar:
            while offset < size:
                fh.seek(offset)
                chunk = fh.read(self.chunk_size)
                if not chunk:
                    break
                new_offset = self.send_chunk(endpoint, offset, chunk)
                if new_offset == offset:
                    raise ChunkUploadError(
                        f"Remote accepted no bytes at offset {offset}",
                        status_code=None,
                        offset=offset,
                    )
                bar.update(new_offset - offset)
                offset = new_offset
                session.current_offset = offset
                LOGGER.debug("%s: %d / %d bytes confirmed", path.name, offset, size)

        confirmed = self.query_offset(endpoint)
        if confirmed < size:
            raise IncompleteTransferError(size, confirmed)
        session.current_offset = confirmed
        LOGGER.info("Upload of %s complete", path.name)
        return session.resource_uri


__all__ = ["DEFAULT_CHUNK_SIZE", "OFFSET_CONTENT_TYPE", "TUS_VERSION", "TusUploader"]
