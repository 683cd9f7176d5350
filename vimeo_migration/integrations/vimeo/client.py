"""Thin client for the Vimeo REST API.

Covers what the migration needs: token verification, opening tus uploads,
reading a video's processing status and the generic request helper used by
the folder and thumbnail modules.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Dict, Optional

import requests
from requests import Response, Session
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from ...exceptions import SessionCreationError, VimeoApiError
from ...transfer.models import ResourceStatus, UploadTicket, parse_upload_mode

API_BASE = "https://api.vimeo.com"
ACCEPT_HEADER = "application/vnd.vimeo.*+json;version=3.4"
DEFAULT_TIMEOUT = 30 * 60
DEFAULT_RETRIES = 3

READY_STATES = {"available"}
ERROR_STATES = {
    "error",
    "uploading_error",
    "transcoding_error",
    "quota_exceeded",
    "total_cap_exceeded",
}


def build_session(access_token: str, retries: int = DEFAULT_RETRIES) -> Session:
    """Return a session authorised for the Vimeo API.

    Only idempotent reads are retried by the adapter; uploads and other
    writes are never replayed behind the caller's back.
    """

    session = requests.Session()
    retry = Retry(
        total=retries,
        backoff_factor=0.5,
        status_forcelist=(429, 500, 502, 503, 504),
        allowed_methods=("GET", "HEAD"),
        raise_on_status=False,
    )
    adapter = HTTPAdapter(max_retries=retry)
    session.mount("http://", adapter)
    session.mount("https://", adapter)
    session.headers.update(
        {
            "Authorization": f"Bearer {access_token}",
            "Accept": ACCEPT_HEADER,
        }
    )
    return session


def video_id_from_uri(uri: str) -> str:
    """Return the trailing id of a ``/videos/<id>`` URI."""

    return uri.rstrip("/").split("/")[-1]


def describe_error(prefix: str, response: Response) -> str:
    """Build a readable message from a Vimeo error payload."""

    status = response.status_code
    try:
        payload = response.json()
    except ValueError:
        payload = None
    if not isinstance(payload, dict):
        return f"{prefix}: {status} - {response.text[:400]}"

    message = f"{prefix}: {status}"
    error_code = payload.get("error_code")
    if error_code:
        message += f" (Error Code: {error_code})"
    message += f" - {payload.get('error') or response.text[:400]}"
    invalid = payload.get("invalid_parameters")
    if invalid:
        message += f"\nInvalid Parameters: {invalid}"
    developer = payload.get("developer_message")
    if developer:
        message += f"\nDeveloper Message: {developer}"
    return message


def map_video_status(raw: object) -> ResourceStatus:
    if not isinstance(raw, str):
        return ResourceStatus.PROCESSING
    value = raw.strip().lower()
    if value in READY_STATES:
        return ResourceStatus.READY
    if value in ERROR_STATES or value.endswith("_error"):
        return ResourceStatus.ERROR
    return ResourceStatus.PROCESSING


class VimeoClient:
    """Authenticated access to ``api.vimeo.com``."""

    def __init__(
        self,
        access_token: str,
        *,
        api_base: str = API_BASE,
        timeout: float = DEFAULT_TIMEOUT,
        retries: int = DEFAULT_RETRIES,
        session: Optional[Session] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.api_base = api_base.rstrip("/")
        self.timeout = timeout
        self.session = session or build_session(access_token, retries)
        self.logger = logger or logging.getLogger(__name__)

    def close(self) -> None:
        self.session.close()

    # ------------------------------------------------------------------
    # HTTP helpers
    # ------------------------------------------------------------------
    def url(self, path: str) -> str:
        if path.startswith(("http://", "https://")):
            return path
        return f"{self.api_base}/{path.lstrip('/')}"

    def request(self, method: str, path: str, **kwargs: Any) -> Response:
        kwargs.setdefault("timeout", self.timeout)
        url = self.url(path)
        start = time.perf_counter()
        try:
            response = self.session.request(method, url, **kwargs)
        except requests.RequestException as exc:
            raise VimeoApiError(f"Vimeo request {method} {url} failed: {exc}") from exc
        self.logger.debug(
            "vimeo %s %s status=%s elapsed=%.2fs",
            method,
            url,
            response.status_code,
            time.perf_counter() - start,
        )
        return response

    @staticmethod
    def json_body(response: Response) -> Dict[str, Any]:
        try:
            data = response.json()
        except ValueError as exc:
            raise VimeoApiError(
                f"Vimeo returned a non-JSON body ({response.status_code})",
                status_code=response.status_code,
            ) from exc
        if not isinstance(data, dict):
            raise VimeoApiError(
                "Vimeo returned an unexpected JSON payload",
                status_code=response.status_code,
            )
        return data

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def verify_token(self) -> Dict[str, Any]:
        """Return the token owner's details, failing when the token is unusable."""

        response = self.request("GET", "/oauth/verify")
        if response.ok:
            return self.json_body(response)
        response = self.request("GET", "/me")
        if response.ok:
            return self.json_body(response)
        raise VimeoApiError(
            describe_error("Token verification failed", response),
            status_code=response.status_code,
        )

    def create_upload_ticket(
        self, size: int, name: str, folder_uri: str | None = None
    ) -> UploadTicket:
        """Create a video entry and ask for a tus upload of ``size`` bytes."""

        body: Dict[str, Any] = {
            "upload": {"approach": "tus", "size": size},
            "name": name,
        }
        if folder_uri:
            body["folder_uri"] = folder_uri

        response = self.request("POST", "/me/videos", json=body)
        if not response.ok:
            raise SessionCreationError(
                describe_error("Failed to create upload ticket", response)
            )
        try:
            data = self.json_body(response)
        except VimeoApiError as exc:
            raise SessionCreationError(str(exc)) from exc

        upload = data.get("upload") if isinstance(data.get("upload"), dict) else {}
        return UploadTicket(
            upload_link=upload.get("upload_link"),
            resource_uri=data.get("uri"),
            mode=parse_upload_mode(upload.get("approach")),
        )

    def get_video_status(self, video_uri: str) -> ResourceStatus:
        response = self.request("GET", video_uri, params={"fields": "status"})
        if not response.ok:
            raise VimeoApiError(
                describe_error(f"Failed to read status of {video_uri}", response),
                status_code=response.status_code,
            )
        return map_video_status(self.json_body(response).get("status"))


__all__ = [
    "API_BASE",
    "VimeoClient",
    "build_session",
    "describe_error",
    "map_video_status",
    "video_id_from_uri",
]
