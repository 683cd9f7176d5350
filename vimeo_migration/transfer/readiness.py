"""Wait for the remote to finish processing an uploaded video."""

from __future__ import annotations

import logging
import time
from typing import Callable

from ..exceptions import ReadinessTimeoutError, RemoteProcessingError
from .models import ResourceStatus

LOGGER = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 5.0
DEFAULT_MAX_ATTEMPTS = 60  # 5 minutes at the default interval


def wait_until_ready(
    fetch_status: Callable[[str], ResourceStatus],
    resource_uri: str,
    poll_interval: float = DEFAULT_POLL_INTERVAL,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    *,
    sleep: Callable[[float], None] = time.sleep,
) -> None:
    """Poll ``fetch_status`` until ``resource_uri`` is ready.

    Exactly ``max_attempts`` polls are made before giving up with
    :class:`ReadinessTimeoutError`; the wait between polls is
    ``poll_interval`` seconds and there is no wait after the last one.
    A remote ``error`` state raises :class:`RemoteProcessingError`.
    """

    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")

    for attempt in range(1, max_attempts + 1):
        status = fetch_status(resource_uri)
        if status is ResourceStatus.READY:
            LOGGER.info("%s is ready after %d poll(s)", resource_uri, attempt)
            return
        if status is ResourceStatus.ERROR:
            raise RemoteProcessingError(f"Video processing failed for {resource_uri}")
        LOGGER.debug(
            "%s still %s (poll %d/%d)", resource_uri, status.value, attempt, max_attempts
        )
        if attempt < max_attempts:
            sleep(poll_interval)

    raise ReadinessTimeoutError(resource_uri, max_attempts)


__all__ = ["DEFAULT_MAX_ATTEMPTS", "DEFAULT_POLL_INTERVAL", "wait_until_ready"]
