"""Locate or create the Vimeo folder (project) that receives the uploads."""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterator, Optional

from ...exceptions import VimeoApiError
from .client import VimeoClient, describe_error

LOGGER = logging.getLogger(__name__)

PROJECTS_PATH = "/me/projects"
PER_PAGE = 25

# Accounts without the Projects feature reject folder creation with one of these
UNAVAILABLE_STATUSES = (400, 403)


class ProjectsUnavailable(Exception):
    """Internal signal that the account cannot use folders."""


def _iter_projects(client: VimeoClient, per_page: int) -> Iterator[Dict[str, Any]]:
    page = 1
    while True:
        response = client.request(
            "GET", PROJECTS_PATH, params={"per_page": per_page, "page": page}
        )
        if not response.ok:
            raise ProjectsUnavailable(
                describe_error("Failed to fetch projects from Vimeo", response)
            )
        payload = client.json_body(response)
        for project in payload.get("data") or []:
            if isinstance(project, dict):
                yield project
        paging = payload.get("paging")
        if not isinstance(paging, dict) or not paging.get("next"):
            return
        page += 1


def find_folder(client: VimeoClient, name: str, per_page: int = PER_PAGE) -> Optional[str]:
    """Return the URI of the project called ``name`` or ``None``."""

    for project in _iter_projects(client, per_page):
        if project.get("name") == name:
            return project.get("uri")
    return None


def create_folder(client: VimeoClient, name: str) -> str:
    response = client.request("POST", PROJECTS_PATH, json={"name": name})
    if response.status_code in UNAVAILABLE_STATUSES:
        raise ProjectsUnavailable(describe_error("Cannot create folder", response))
    if not response.ok:
        raise VimeoApiError(
            describe_error(f"Failed to create folder '{name}' on Vimeo", response),
            status_code=response.status_code,
        )
    uri = client.json_body(response).get("uri")
    if not uri:
        raise VimeoApiError("Failed to get folder URI after creation")
    return uri


def ensure_folder(client: VimeoClient, name: str) -> Optional[str]:
    """Return the URI of folder ``name``, creating it when missing.

    ``None`` means the account has no Projects feature; videos are then
    uploaded without folder placement.
    """

    owner = client.verify_token()
    LOGGER.info("Token verified. Connected as: %s", owner.get("name") or "Unknown")

    try:
        uri = find_folder(client, name)
        if uri:
            LOGGER.info("Found existing folder: %s", name)
            return uri
        LOGGER.info("Creating folder '%s' on Vimeo", name)
        uri = create_folder(client, name)
    except ProjectsUnavailable as exc:
        LOGGER.warning(
            "Projects API is not available for this account, "
            "videos will be uploaded without folder organization (%s)",
            exc,
        )
        return None
    LOGGER.info("Folder '%s' created: %s", name, uri)
    return uri


__all__ = ["create_folder", "ensure_folder", "find_folder"]
