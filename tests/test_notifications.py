from __future__ import annotations

import pytest

from vimeo_migration.helpers import notifications


class FakeSMTP:
    sent: list = []

    def __init__(self, host, port) -> None:
        self.host = host
        self.port = port
        self.logged_in = None

    def __enter__(self):
        return self

    def __exit__(self, *exc) -> None:
        return None

    def starttls(self) -> None:
        pass

    def login(self, user, password) -> None:
        self.logged_in = (user, password)

    def send_message(self, msg) -> None:
        FakeSMTP.sent.append((self.host, self.port, msg))


@pytest.fixture
def smtp(monkeypatch: pytest.MonkeyPatch):
    FakeSMTP.sent = []
    monkeypatch.setattr(notifications.smtplib, "SMTP", FakeSMTP)
    return FakeSMTP


def test_email_skipped_without_configuration(smtp) -> None:
    notifications.send_failure_email("subject", "body")

    assert smtp.sent == []


def test_failed_jobs_email_lists_each_failure(smtp, monkeypatch) -> None:
    monkeypatch.setenv("SMTP_HOST", "smtp.example.com")
    monkeypatch.setenv("SMTP_PORT", "2525")
    monkeypatch.setenv("ALERT_EMAIL_TO", "ops@example.com")
    monkeypatch.setenv("ALERT_EMAIL_FROM", "bot@example.com")

    notifications.notify_failed_jobs(
        [("a.mp4", "boom"), ("b.mp4", "Upload incomplete")], "/users/1/projects/7"
    )

    assert len(smtp.sent) == 1
    host, port, msg = smtp.sent[0]
    assert (host, port) == ("smtp.example.com", 2525)
    assert "2 upload(s) failed" in msg["Subject"]
    body = msg.get_content()
    assert "Time:" in body
    assert "Folder: /users/1/projects/7" in body
    assert "Video: a.mp4" in body
    assert "Error: Upload incomplete" in body


def test_no_email_when_nothing_failed(smtp, monkeypatch) -> None:
    monkeypatch.setenv("SMTP_HOST", "smtp.example.com")
    monkeypatch.setenv("ALERT_EMAIL_TO", "ops@example.com")

    notifications.notify_failed_jobs([])

    assert smtp.sent == []


def test_smtp_errors_are_logged_not_raised(monkeypatch, caplog) -> None:
    class BrokenSMTP(FakeSMTP):
        def __init__(self, host, port) -> None:
            raise OSError("connection refused")

    monkeypatch.setattr(notifications.smtplib, "SMTP", BrokenSMTP)
    monkeypatch.setenv("SMTP_HOST", "smtp.example.com")
    monkeypatch.setenv("ALERT_EMAIL_TO", "ops@example.com")

    notifications.send_failure_email("subject", "body")

    assert "connection refused" in caplog.text


def test_smtp_settings_from_env(monkeypatch) -> None:
    monkeypatch.setenv("SMTP_HOST", "smtp.example.com")
    monkeypatch.setenv("ALERT_EMAIL_TO", "ops@example.com, dev@example.com")
    monkeypatch.setenv("SMTP_USERNAME", "bot")
    monkeypatch.delenv("ALERT_EMAIL_FROM", raising=False)
    monkeypatch.delenv("SMTP_PORT", raising=False)

    settings = notifications.SmtpSettings.from_env()

    assert settings.recipients == ("ops@example.com", "dev@example.com")
    assert settings.sender == "bot"
    assert settings.port == 587
