"""Runtime settings for the migration tool.

Values come from, in order of precedence: environment variables (a ``.env``
file is loaded first), an optional ``appsettings.json``-style JSON file, and
the defaults below.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from dotenv import load_dotenv

from .exceptions import ConfigurationError

DEFAULT_FOLDER_NAME = "Movo Academy"
DEFAULT_API_BASE = "https://api.vimeo.com"
DEFAULT_SETTINGS_FILE = Path("appsettings.json")
PLACEHOLDER_TOKEN = "YOUR_VIMEO_ACCESS_TOKEN_HERE"

# Keys of the JSON settings file mapped onto the environment variable names
SETTINGS_FILE_KEYS = {
    ("Vimeo", "AccessToken"): "VIMEO_ACCESS_TOKEN",
    ("Vimeo", "FolderName"): "VIMEO_FOLDER_NAME",
    ("Paths", "VideosFolder"): "VIDEOS_FOLDER",
    ("Paths", "ThumbnailsFolder"): "THUMBNAILS_FOLDER",
    ("Paths", "DatabasePath"): "DATABASE_PATH",
}


@dataclass(frozen=True)
class VimeoSettings:
    access_token: str
    folder_name: str
    api_base: str
    timeout_seconds: float
    retries: int


@dataclass(frozen=True)
class PathSettings:
    videos_folder: Path
    thumbnails_folder: Path
    database_path: Path


@dataclass(frozen=True)
class TransferSettings:
    chunk_size: int
    max_chunk_size: int
    strict_offsets: bool
    wait_for_processing: bool
    poll_interval_seconds: float
    max_poll_attempts: int


@dataclass(frozen=True)
class MigrationSettings:
    vimeo: VimeoSettings
    paths: PathSettings
    transfer: TransferSettings


def _read_settings_file(path: Path) -> Dict[str, str]:
    try:
        parsed = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise ConfigurationError(f"Cannot read settings file {path}: {exc}") from exc
    if not isinstance(parsed, dict):
        raise ConfigurationError(f"Settings file {path} must contain a JSON object")

    values: Dict[str, str] = {}
    for (section, key), env_name in SETTINGS_FILE_KEYS.items():
        block = parsed.get(section)
        if isinstance(block, dict) and block.get(key) not in (None, ""):
            values[env_name] = str(block[key])
    return values


class _Source:
    def __init__(self, env: Mapping[str, str], file_values: Mapping[str, str]) -> None:
        self.env = env
        self.file_values = file_values

    def get(self, name: str, default: Any = None) -> Any:
        value = self.env.get(name)
        if value is None or value == "":
            value = self.file_values.get(name)
        return default if value is None or value == "" else value

    def integer(self, name: str, default: int) -> int:
        raw = self.get(name, default)
        try:
            return int(raw)
        except (TypeError, ValueError) as exc:
            raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from exc

    def number(self, name: str, default: float) -> float:
        raw = self.get(name, default)
        try:
            return float(raw)
        except (TypeError, ValueError) as exc:
            raise ConfigurationError(f"{name} must be a number, got {raw!r}") from exc

    def flag(self, name: str, default: bool) -> bool:
        raw = self.get(name)
        if raw is None:
            return default
        return str(raw).strip().lower() in ("1", "true", "yes", "y", "on")


def load_settings(
    env_file: Path | str | None = None,
    settings_file: Path | str | None = None,
    *,
    environ: Optional[Mapping[str, str]] = None,
    require_token: bool = True,
) -> MigrationSettings:
    """Build :class:`MigrationSettings` from the environment and optional files.

    Raises :class:`ConfigurationError` when the access token is missing or
    still the placeholder (unless ``require_token`` is false), or when a
    numeric setting cannot be parsed.
    """

    if environ is None:
        load_dotenv(dotenv_path=env_file, override=False)
        environ = os.environ

    if settings_file is None:
        settings_file = environ.get("MIGRATION_SETTINGS_FILE") or DEFAULT_SETTINGS_FILE
        file_path = Path(settings_file)
        file_values = _read_settings_file(file_path) if file_path.exists() else {}
    else:
        file_values = _read_settings_file(Path(settings_file))

    source = _Source(environ, file_values)

    token = source.get("VIMEO_ACCESS_TOKEN", "")
    if token == PLACEHOLDER_TOKEN:
        token = ""
    if require_token and not token:
        raise ConfigurationError(
            "Please configure your Vimeo access token (VIMEO_ACCESS_TOKEN)"
        )

    vimeo = VimeoSettings(
        access_token=token,
        folder_name=source.get("VIMEO_FOLDER_NAME", DEFAULT_FOLDER_NAME),
        api_base=source.get("VIMEO_API_BASE", DEFAULT_API_BASE),
        timeout_seconds=source.number("VIMEO_TIMEOUT_SECONDS", 1800.0),
        retries=source.integer("VIMEO_RETRIES", 3),
    )
    paths = PathSettings(
        videos_folder=Path(source.get("VIDEOS_FOLDER", "videos")),
        thumbnails_folder=Path(source.get("THUMBNAILS_FOLDER", "thumbnails")),
        database_path=Path(source.get("DATABASE_PATH", "uploads.db")),
    )
    transfer = TransferSettings(
        chunk_size=source.integer("TUS_CHUNK_SIZE", 5 * 1024 * 1024),
        max_chunk_size=source.integer("TUS_MAX_CHUNK_SIZE", 128 * 1024 * 1024),
        strict_offsets=source.flag("TUS_STRICT_OFFSETS", False),
        wait_for_processing=source.flag("WAIT_FOR_PROCESSING", False),
        poll_interval_seconds=source.number("PROCESSING_POLL_SECONDS", 5.0),
        max_poll_attempts=source.integer("PROCESSING_MAX_ATTEMPTS", 60),
    )
    if transfer.chunk_size <= 0:
        raise ConfigurationError("TUS_CHUNK_SIZE must be positive")
    if transfer.chunk_size > transfer.max_chunk_size:
        raise ConfigurationError(
            f"TUS_CHUNK_SIZE ({transfer.chunk_size}) exceeds TUS_MAX_CHUNK_SIZE "
            f"({transfer.max_chunk_size})"
        )
    if transfer.max_poll_attempts < 1:
        raise ConfigurationError("PROCESSING_MAX_ATTEMPTS must be at least 1")

    return MigrationSettings(vimeo=vimeo, paths=paths, transfer=transfer)


__all__ = [
    "MigrationSettings",
    "PathSettings",
    "TransferSettings",
    "VimeoSettings",
    "load_settings",
]
