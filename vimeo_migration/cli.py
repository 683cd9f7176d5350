from __future__ import annotations

import argparse
import logging
from dataclasses import replace
from pathlib import Path

import requests

from .config import MigrationSettings, load_settings
from .exceptions import MigrationError
from .helpers.formatting import fail, ok, warn
from .ledger import JobLedger
from .migration import build_service

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_JOBS_FAILED = 2


def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Migrate a folder of videos (and thumbnails) to Vimeo"
    )
    parser.add_argument(
        "command",
        nargs="?",
        choices=["run", "scan", "status"],
        default="run",
        help="run: scan then upload (default); scan: only queue new videos; "
        "status: show job counts",
    )
    parser.add_argument("--env-file", help="Path to a .env file to load")
    parser.add_argument("--settings-file", help="Path to an appsettings.json file")
    parser.add_argument("--videos", help="Folder holding the source videos")
    parser.add_argument("--thumbnails", help="Folder holding <video name>.jpg thumbnails")
    parser.add_argument("--database", help="Path to the SQLite ledger")
    parser.add_argument("--folder-name", help="Vimeo folder receiving the uploads")
    parser.add_argument(
        "--wait-for-processing",
        action="store_true",
        help="Only mark a video uploaded once Vimeo finished processing it",
    )
    parser.add_argument(
        "--no-progress", action="store_true", help="Hide the upload progress bar"
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Enable debug logging"
    )
    return parser


def _apply_overrides(settings: MigrationSettings, args: argparse.Namespace) -> MigrationSettings:
    paths = settings.paths
    if args.videos:
        paths = replace(paths, videos_folder=Path(args.videos))
    if args.thumbnails:
        paths = replace(paths, thumbnails_folder=Path(args.thumbnails))
    if args.database:
        paths = replace(paths, database_path=Path(args.database))

    vimeo = settings.vimeo
    if args.folder_name:
        vimeo = replace(vimeo, folder_name=args.folder_name)

    transfer = settings.transfer
    if args.wait_for_processing:
        transfer = replace(transfer, wait_for_processing=True)
    return replace(settings, vimeo=vimeo, paths=paths, transfer=transfer)


def _show_status(settings: MigrationSettings) -> int:
    ledger = JobLedger(settings.paths.database_path)
    try:
        counts = ledger.status_counts()
    finally:
        ledger.close()
    print(f"Ledger: {settings.paths.database_path}")
    for status, count in counts.items():
        print(f"  {status.value:<9} {count}")
    return EXIT_OK


def _execute(command: str, settings: MigrationSettings, show_progress: bool) -> int:
    if command == "status":
        return _show_status(settings)

    service = build_service(settings, show_progress=show_progress)
    try:
        if command == "scan":
            added = service.scan()
            print(ok(f"{added} new video(s) queued"))
            return EXIT_OK
        summary = service.run()
    finally:
        service.close()

    print(
        f"Migration finished: {len(summary.uploaded)} uploaded, "
        f"{len(summary.failed)} failed"
    )
    if summary.failed:
        for filename, error in summary.failed:
            print(warn(f"{filename}: {error}"))
        return EXIT_JOBS_FAILED
    return EXIT_OK


def main(argv: list[str] | None = None) -> int:
    args = create_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        settings = _apply_overrides(
            load_settings(
                args.env_file,
                args.settings_file,
                require_token=args.command == "run",
            ),
            args,
        )
        return _execute(args.command, settings, show_progress=not args.no_progress)
    except MigrationError as exc:
        print(fail(f"Error: {exc}"))
        return EXIT_ERROR
    except requests.RequestException as exc:
        print(fail(f"Network error: {exc}"))
        return EXIT_ERROR


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
