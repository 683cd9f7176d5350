"""Drive every pending or failed job through an upload, one at a time.

Job states::

    pending --(upload succeeds)--> uploaded   (terminal)
    pending --(upload fails)-----> failed
    failed  --(retry succeeds)---> uploaded   (terminal)
    failed  --(retry fails)------> failed

A failure inside one job is written to the ledger and never stops the run;
only ledger errors abort it.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from functools import partial
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Tuple

from .config import MigrationSettings
from .discovery import iter_video_thumbnail_pairs, resolve_thumbnail
from .exceptions import LedgerError, MissingFileError
from .helpers.formatting import fail, format_bytes, ok, warn
from .helpers.logging import log_timing, run_step
from .helpers.notifications import notify_failed_jobs
from .integrations.vimeo import VimeoClient, ensure_folder, set_thumbnail, video_id_from_uri
from .ledger import JobLedger
from .models import Job
from .transfer import ResourceStatus, TusUploader, wait_until_ready
from .transfer.readiness import DEFAULT_MAX_ATTEMPTS, DEFAULT_POLL_INTERVAL

LOGGER = logging.getLogger(__name__)

FolderResolver = Callable[[], Optional[str]]
SideAssetAttacher = Callable[[str, Path], object]
StatusFetcher = Callable[[str], ResourceStatus]
FailureNotifier = Callable[[Sequence[Tuple[str, str]], Optional[str]], None]


@dataclass(frozen=True)
class RunContext:
    """Values resolved once per run and shared by every job."""

    folder_uri: Optional[str] = None


@dataclass
class RunSummary:
    uploaded: List[str] = field(default_factory=list)
    failed: List[Tuple[str, str]] = field(default_factory=list)

    @property
    def attempted(self) -> int:
        return len(self.uploaded) + len(self.failed)


class VideoMigrationService:
    """Scan the videos folder into the ledger and upload what is outstanding.

    Parameters
    ----------
    ledger:
        Durable job store.
    uploader:
        Resumable transfer client.
    videos_folder, thumbnails_folder:
        Where source videos and their ``.jpg`` companions live.
    resolve_folder:
        Returns the remote folder URI for this run, or ``None``.
    attach_side_asset:
        Optional ``(video_uri, image_path)`` callable. Its failures are
        logged and ignored.
    fetch_status:
        Required when ``wait_for_processing`` is set; reports the remote
        processing state of a video URI.
    wait_for_processing:
        Only mark a job uploaded once the remote finished processing it.
    """

    def __init__(
        self,
        ledger: JobLedger,
        uploader: TusUploader,
        *,
        videos_folder: Path,
        thumbnails_folder: Path,
        resolve_folder: Optional[FolderResolver] = None,
        attach_side_asset: Optional[SideAssetAttacher] = None,
        fetch_status: Optional[StatusFetcher] = None,
        wait_for_processing: bool = False,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        max_poll_attempts: int = DEFAULT_MAX_ATTEMPTS,
        sleep: Callable[[float], None] = time.sleep,
        notify: FailureNotifier = notify_failed_jobs,
    ) -> None:
        if wait_for_processing and fetch_status is None:
            raise ValueError("wait_for_processing requires a fetch_status callable")
        self.ledger = ledger
        self.uploader = uploader
        self.videos_folder = Path(videos_folder)
        self.thumbnails_folder = Path(thumbnails_folder)
        self.resolve_folder = resolve_folder
        self.attach_side_asset = attach_side_asset
        self.fetch_status = fetch_status
        self.wait_for_processing = wait_for_processing
        self.poll_interval = poll_interval
        self.max_poll_attempts = max_poll_attempts
        self.sleep = sleep
        self.notify = notify

    def close(self) -> None:
        self.ledger.close()
        self.uploader.close()

    # ------------------------------------------------------------------
    # Discovery
    # ------------------------------------------------------------------
    def scan(self) -> int:
        """Add a pending job for every video not yet in the ledger.

        Returns the number of jobs added.
        """

        if not self.thumbnails_folder.exists():
            LOGGER.info(
                "Thumbnails folder '%s' does not exist. Creating it...",
                self.thumbnails_folder,
            )
            self.thumbnails_folder.mkdir(parents=True, exist_ok=True)

        if not self.videos_folder.exists():
            LOGGER.info(
                "Videos folder '%s' does not exist. Creating it...", self.videos_folder
            )
            self.videos_folder.mkdir(parents=True, exist_ok=True)
            return 0

        added = 0
        found = 0
        for video, thumbnail in iter_video_thumbnail_pairs(
            self.videos_folder, self.thumbnails_folder
        ):
            found += 1
            if self.ledger.exists(video.name):
                continue
            self.ledger.upsert_new(video.name, thumbnail.name if thumbnail else None)
            added += 1
            LOGGER.info("Added '%s' to upload queue", video.name)
        LOGGER.info(
            "Found %d video file(s) in '%s', %d new", found, self.videos_folder, added
        )
        return added

    # ------------------------------------------------------------------
    # Processing
    # ------------------------------------------------------------------
    def resolve_context(self) -> RunContext:
        folder_uri = self.resolve_folder() if self.resolve_folder else None
        if folder_uri:
            LOGGER.info("Using Vimeo folder: %s", folder_uri)
        else:
            LOGGER.info("Videos will be uploaded without folder organization")
        return RunContext(folder_uri=folder_uri)

    def process(self) -> RunSummary:
        """Upload every retryable job in ledger order."""

        context = self.resolve_context()
        jobs = self.ledger.list_retryable()
        LOGGER.info("Found %d video(s) to process", len(jobs))

        summary = RunSummary()
        for job in jobs:
            self.process_job(job, context, summary)

        if summary.failed:
            self.notify(summary.failed, context.folder_uri)
        return summary

    def run(self) -> RunSummary:
        run_step("Scanning for videos", self.scan)
        return self.process()

    def process_job(self, job: Job, context: RunContext, summary: RunSummary) -> None:
        """Attempt ``job`` and record the outcome; job-local errors never escape."""

        if job.error_message:
            self.ledger.clear_error(job.id)

        try:
            with log_timing(f"Processing: {job.source_filename}"):
                remote_uri = self._migrate(job, context)
        except LedgerError:
            raise
        except Exception as exc:  # noqa: BLE001 - isolated per job, recorded below
            message = str(exc) or exc.__class__.__name__
            LOGGER.debug("Job %s failed", job.source_filename, exc_info=True)
            print(fail(f"Error processing {job.source_filename}: {message}"))
            self.ledger.mark_failed(job.id, message)
            summary.failed.append((job.source_filename, message))
            return

        self.ledger.mark_succeeded(job.id, video_id_from_uri(remote_uri), remote_uri)
        summary.uploaded.append(job.source_filename)
        print(ok(f"Successfully processed: {job.source_filename}"))

    def _migrate(self, job: Job, context: RunContext) -> str:
        video = self.videos_folder / job.source_filename
        if not video.is_file():
            raise MissingFileError(f"Video file not found: {video}")

        thumbnail: Optional[Path] = None
        if self.attach_side_asset is not None:
            thumbnail = resolve_thumbnail(
                job.source_filename, job.side_asset_filename, self.thumbnails_folder
            )
            if thumbnail is None:
                print(warn(f"Thumbnail not found for {job.source_filename}, proceeding without thumbnail"))

        size = video.stat().st_size
        LOGGER.info("Uploading %s (%s) to Vimeo", video.name, format_bytes(size))
        session = self.uploader.create_session(size, video.stem, context.folder_uri)
        remote_uri = self.uploader.upload(video, session)
        LOGGER.info("Video uploaded. Video ID: %s", video_id_from_uri(remote_uri))

        if self.wait_for_processing:
            assert self.fetch_status is not None
            wait_until_ready(
                self.fetch_status,
                remote_uri,
                self.poll_interval,
                self.max_poll_attempts,
                sleep=self.sleep,
            )

        if thumbnail is not None:
            self._attach(remote_uri, thumbnail)
        return remote_uri

    def _attach(self, remote_uri: str, thumbnail: Path) -> None:
        assert self.attach_side_asset is not None
        try:
            self.attach_side_asset(remote_uri, thumbnail)
        except Exception as exc:  # noqa: BLE001 - the upload itself already succeeded
            print(warn(f"Failed to set thumbnail: {exc}"))
            LOGGER.warning(
                "Thumbnail %s was not attached to %s: %s", thumbnail.name, remote_uri, exc
            )
        else:
            print(ok("Thumbnail set successfully"))


def build_service(
    settings: MigrationSettings, *, show_progress: bool = True
) -> VideoMigrationService:
    """Wire the ledger, the Vimeo client and the tus uploader from ``settings``."""

    ledger = JobLedger(settings.paths.database_path)
    client = VimeoClient(
        settings.vimeo.access_token,
        api_base=settings.vimeo.api_base,
        timeout=settings.vimeo.timeout_seconds,
        retries=settings.vimeo.retries,
    )
    uploader = TusUploader(
        client,
        client.session,
        chunk_size=settings.transfer.chunk_size,
        max_chunk_size=settings.transfer.max_chunk_size,
        strict_offsets=settings.transfer.strict_offsets,
        timeout=settings.vimeo.timeout_seconds,
        show_progress=show_progress,
    )
    return VideoMigrationService(
        ledger,
        uploader,
        videos_folder=settings.paths.videos_folder,
        thumbnails_folder=settings.paths.thumbnails_folder,
        resolve_folder=partial(ensure_folder, client, settings.vimeo.folder_name),
        attach_side_asset=partial(set_thumbnail, client),
        fetch_status=client.get_video_status,
        wait_for_processing=settings.transfer.wait_for_processing,
        poll_interval=settings.transfer.poll_interval_seconds,
        max_poll_attempts=settings.transfer.max_poll_attempts,
    )


__all__ = ["RunContext", "RunSummary", "VideoMigrationService", "build_service"]
