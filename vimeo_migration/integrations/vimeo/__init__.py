"""Vimeo hosting capability: upload tickets, status, folders and thumbnails."""

from .client import VimeoClient, build_session, video_id_from_uri
from .folders import ensure_folder
from .pictures import set_thumbnail

__all__ = [
    "VimeoClient",
    "build_session",
    "ensure_folder",
    "set_thumbnail",
    "video_id_from_uri",
]
