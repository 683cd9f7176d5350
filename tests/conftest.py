"""Test configuration helpers for import path setup."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
TESTS_ROOT = ROOT / "tests"

for path in (str(ROOT), str(TESTS_ROOT)):
    if path not in sys.path:
        sys.path.insert(0, path)


@pytest.fixture(autouse=True)
def _no_alert_email(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep a developer's SMTP settings from sending mail during tests."""
    monkeypatch.delenv("SMTP_HOST", raising=False)
    monkeypatch.delenv("ALERT_EMAIL_TO", raising=False)
