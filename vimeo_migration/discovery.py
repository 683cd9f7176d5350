"""Find source videos and their companion thumbnails on disk."""

from __future__ import annotations

from pathlib import Path
from typing import Iterator, Optional, Tuple

VIDEO_EXTS = {".mp4", ".mov", ".avi", ".mkv", ".wmv", ".flv", ".webm"}
THUMBNAIL_EXT = ".jpg"


def iter_videos(folder: Path) -> Iterator[Path]:
    """Yield video files directly inside ``folder`` in name order."""

    for path in sorted(folder.iterdir()):
        if path.is_file() and path.suffix.lower() in VIDEO_EXTS:
            yield path


def find_thumbnail(video_name: str, thumbnails: Path) -> Optional[Path]:
    """Return ``<thumbnails>/<video stem>.jpg`` when it exists."""

    candidate = thumbnails / Path(video_name).with_suffix(THUMBNAIL_EXT).name
    if candidate.is_file():
        return candidate
    return None


def iter_video_thumbnail_pairs(
    videos: Path, thumbnails: Path
) -> Iterator[Tuple[Path, Optional[Path]]]:
    """Yield ``(video, thumbnail)`` pairs; ``thumbnail`` may be ``None``."""

    for video in iter_videos(videos):
        yield video, find_thumbnail(video.name, thumbnails)


def resolve_thumbnail(
    video_name: str, recorded: Optional[str], thumbnails: Path
) -> Optional[Path]:
    """Return the thumbnail to attach for a job.

    The filename recorded at discovery wins; otherwise the naming convention
    is tried again in case the image was added after the scan.
    """

    if recorded:
        path = thumbnails / recorded
        if path.is_file():
            return path
    return find_thumbnail(video_name, thumbnails)


__all__ = [
    "THUMBNAIL_EXT",
    "VIDEO_EXTS",
    "find_thumbnail",
    "iter_video_thumbnail_pairs",
    "iter_videos",
    "resolve_thumbnail",
]
