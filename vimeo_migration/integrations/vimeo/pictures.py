"""Attach a custom thumbnail image to an uploaded video."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Optional

from requests import RequestException

from ...exceptions import SideAssetError, VimeoApiError
from .client import VimeoClient, describe_error, video_id_from_uri

LOGGER = logging.getLogger(__name__)

IMAGE_CONTENT_TYPES = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".gif": "image/gif",
}


def image_content_type(path: Path) -> str:
    return IMAGE_CONTENT_TYPES.get(path.suffix.lower(), "image/jpeg")


def _find_upload_link(payload: Dict[str, Any]) -> Optional[str]:
    upload = payload.get("upload") if isinstance(payload.get("upload"), dict) else {}
    for candidate in (
        payload.get("link"),
        payload.get("upload_link"),
        upload.get("upload_link"),
        payload.get("upload_link_secure"),
    ):
        if isinstance(candidate, str) and candidate:
            return candidate
    return None


def _create_picture(client: VimeoClient, video_id: str) -> Dict[str, Any]:
    response = client.request(
        "POST", f"/videos/{video_id}/pictures", json={"active": True}
    )
    if not response.ok:
        raise SideAssetError(describe_error("Failed to create picture record", response))
    payload = client.json_body(response)
    if not payload.get("uri"):
        raise SideAssetError(f"Vimeo returned no picture URI for video {video_id}")
    return payload


def _put_image(client: VimeoClient, upload_link: str, image: Path) -> None:
    response = client.request(
        "PUT",
        upload_link,
        data=image.read_bytes(),
        headers={"Content-Type": image_content_type(image)},
    )
    if not response.ok:
        raise SideAssetError(describe_error("Failed to upload image file", response))


def _post_multipart(client: VimeoClient, video_id: str, image: Path) -> Optional[str]:
    with image.open("rb") as fh:
        response = client.request(
            "POST",
            f"/videos/{video_id}/pictures",
            files={"file": (image.name, fh, image_content_type(image))},
        )
    if not response.ok:
        raise SideAssetError(
            describe_error("Failed to upload thumbnail via multipart", response)
        )
    return client.json_body(response).get("uri")


def _activate(client: VimeoClient, picture_uri: str) -> bool:
    response = client.request("PATCH", picture_uri, json={"active": True})
    if not response.ok:
        # The picture may already be active
        LOGGER.warning(
            "Could not set thumbnail as active: %s",
            describe_error("activation failed", response),
        )
        return False
    return True


def _confirm_active(client: VimeoClient, video_id: str, picture_uri: str) -> bool:
    try:
        response = client.request("GET", f"/videos/{video_id}/pictures")
        if not response.ok:
            LOGGER.warning(
                "Could not verify thumbnail status: %s",
                describe_error("pictures lookup failed", response),
            )
            return False
        pictures = client.json_body(response).get("data") or []
    except VimeoApiError as exc:
        LOGGER.warning("Could not verify thumbnail status: %s", exc)
        return False
    for picture in pictures:
        if isinstance(picture, dict) and picture.get("uri") == picture_uri:
            if picture.get("active"):
                return True
            break
    LOGGER.warning("Thumbnail %s is not active on video %s", picture_uri, video_id)
    return False


def set_thumbnail(client: VimeoClient, video_uri: str, image_path: Path | str) -> str:
    """Upload ``image_path`` and make it the active thumbnail of ``video_uri``.

    Returns the picture URI. Every failure is raised as
    :class:`SideAssetError` so callers can treat the attachment as optional.
    """

    image = Path(image_path)
    video_id = video_id_from_uri(video_uri)
    LOGGER.info("Uploading thumbnail %s for video %s", image.name, video_id)
    try:
        picture = _create_picture(client, video_id)
        picture_uri: str = picture["uri"]
        upload_link = _find_upload_link(picture)
        if upload_link:
            _put_image(client, upload_link, image)
        else:
            LOGGER.info("No upload link in picture response, using multipart upload")
            picture_uri = _post_multipart(client, video_id, image) or picture_uri
        if _activate(client, picture_uri) and _confirm_active(client, video_id, picture_uri):
            LOGGER.info("Thumbnail %s set as active", picture_uri)
    except (RequestException, VimeoApiError, OSError) as exc:
        raise SideAssetError(f"Failed to set thumbnail for {video_uri}: {exc}") from exc
    return picture_uri


__all__ = ["image_content_type", "set_thumbnail"]
