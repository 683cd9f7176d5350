from pathlib import Path

from vimeo_migration.discovery import (
    find_thumbnail,
    iter_video_thumbnail_pairs,
    resolve_thumbnail,
)


def test_iter_video_thumbnail_pairs(tmp_path: Path) -> None:
    videos = tmp_path / "videos"
    thumbs = tmp_path / "thumbnails"
    videos.mkdir()
    thumbs.mkdir()
    for name in ("b.mkv", "a.mp4", "c.webm", "readme.md"):
        (videos / name).write_bytes(b"x")
    (videos / "sub.mp4").mkdir()
    (thumbs / "a.jpg").write_bytes(b"j")
    (thumbs / "c.png").write_bytes(b"p")

    pairs = list(iter_video_thumbnail_pairs(videos, thumbs))

    assert pairs == [
        (videos / "a.mp4", thumbs / "a.jpg"),
        (videos / "b.mkv", None),
        (videos / "c.webm", None),
    ]


def test_find_thumbnail_missing_folder(tmp_path: Path) -> None:
    assert find_thumbnail("a.mp4", tmp_path / "missing") is None


def test_resolve_thumbnail_prefers_recorded_name(tmp_path: Path) -> None:
    (tmp_path / "custom.jpg").write_bytes(b"j")
    (tmp_path / "a.jpg").write_bytes(b"j")

    assert resolve_thumbnail("a.mp4", "custom.jpg", tmp_path) == tmp_path / "custom.jpg"
    assert resolve_thumbnail("a.mp4", "deleted.jpg", tmp_path) == tmp_path / "a.jpg"
    assert resolve_thumbnail("b.mp4", None, tmp_path) is None
