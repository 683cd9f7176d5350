from __future__ import annotations

from typing import List

import pytest

from vimeo_migration.exceptions import ReadinessTimeoutError, RemoteProcessingError
from vimeo_migration.transfer import ResourceStatus, wait_until_ready


class StatusSequence:
    def __init__(self, *statuses: ResourceStatus) -> None:
        self.statuses = list(statuses)
        self.polls: List[str] = []

    def __call__(self, uri: str) -> ResourceStatus:
        self.polls.append(uri)
        if len(self.statuses) > 1:
            return self.statuses.pop(0)
        return self.statuses[0]


def test_returns_once_ready() -> None:
    fetch = StatusSequence(ResourceStatus.PROCESSING, ResourceStatus.READY)
    sleeps: List[float] = []

    wait_until_ready(fetch, "/videos/1", 2.5, 10, sleep=sleeps.append)

    assert fetch.polls == ["/videos/1", "/videos/1"]
    assert sleeps == [2.5]


def test_ready_on_first_poll_never_sleeps() -> None:
    sleeps: List[float] = []

    wait_until_ready(StatusSequence(ResourceStatus.READY), "/videos/1", sleep=sleeps.append)

    assert sleeps == []


def test_error_state_raises() -> None:
    fetch = StatusSequence(ResourceStatus.PROCESSING, ResourceStatus.ERROR)

    with pytest.raises(RemoteProcessingError):
        wait_until_ready(fetch, "/videos/1", sleep=lambda _: None)


def test_times_out_after_exactly_max_attempts() -> None:
    fetch = StatusSequence(ResourceStatus.PROCESSING)
    sleeps: List[float] = []

    with pytest.raises(ReadinessTimeoutError) as excinfo:
        wait_until_ready(fetch, "/videos/1", 1.0, 3, sleep=sleeps.append)

    assert len(fetch.polls) == 3
    assert sleeps == [1.0, 1.0]
    assert excinfo.value.attempts == 3
    assert excinfo.value.resource_uri == "/videos/1"


def test_rejects_non_positive_attempts() -> None:
    with pytest.raises(ValueError):
        wait_until_ready(StatusSequence(ResourceStatus.READY), "/videos/1", max_attempts=0)
