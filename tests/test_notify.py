"""Tests for resticboot.notify."""

from __future__ import annotations

import smtplib
from email.message import EmailMessage
from typing import Callable

from resticboot.config import Configuration, EmailChannel, PushoverChannel
from resticboot.notify import PUSHOVER_URL, Notifier, split_server

FULL = Configuration(
    pushover=PushoverChannel(token="pt", user="pu"),
    email=EmailChannel(
        server="smtp.example:25",
        user="eu",
        password="ep",
        sender="from@example.com",
        recipient="to@example.com",
    ),
)


class MailRecorder:
    def __init__(self, error: Exception | None = None) -> None:
        self.error = error
        self.sent: list[tuple[str, int, str, str, EmailMessage]] = []

    def __call__(self, host: str, port: int, user: str, password: str, message: EmailMessage) -> None:
        self.sent.append((host, port, user, password, message))
        if self.error is not None:
            raise self.error


def test_split_server() -> None:
    assert split_server("smtp.example:25") == ("smtp.example", 25)
    assert split_server("smtp.example") == ("smtp.example", 587)


def test_notify_all_channels(make_session: Callable) -> None:
    session = make_session({PUSHOVER_URL: {"status": 1}})
    mail = MailRecorder()
    results = Notifier(session, send_mail=mail).notify(FULL, "title", "body")

    assert [r.name for r in results] == ["pushover", "email"]
    assert all(r.ok for r in results)

    method, url, data = session.calls[0]
    assert (method, url) == ("POST", PUSHOVER_URL)
    assert data == {"token": "pt", "user": "pu", "message": "body", "title": "title"}

    host, port, user, password, message = mail.sent[0]
    assert (host, port, user, password) == ("smtp.example", 25, "eu", "ep")
    assert message["Subject"] == "title"
    assert message["From"] == "from@example.com"
    assert message["To"] == "to@example.com"
    assert "body" in message.get_content()


def test_pushover_without_title(make_session: Callable) -> None:
    session = make_session({PUSHOVER_URL: {"status": 1}})
    config = Configuration(pushover=PushoverChannel("pt", "pu"))
    Notifier(session).notify(config, "", "body")
    _method, _url, data = session.calls[0]
    assert "title" not in data


def test_unconfigured_channels_are_skipped(make_session: Callable) -> None:
    session = make_session()
    mail = MailRecorder()
    config = Configuration(
        pushover=PushoverChannel(token="pt"),
        email=EmailChannel(server="s", user="u", password="p", sender="f"),
    )
    assert Notifier(session, send_mail=mail).notify(config, "t", "b") == []
    assert session.calls == []
    assert mail.sent == []


def test_failures_are_reported_not_raised(make_session: Callable) -> None:
    session = make_session({PUSHOVER_URL: 500})
    mail = MailRecorder(error=smtplib.SMTPAuthenticationError(535, b"bad credentials"))
    results = Notifier(session, send_mail=mail).notify(FULL, "t", "b")
    assert [(r.name, r.ok) for r in results] == [("pushover", False), ("email", False)]
    assert "500" in results[0].error


def test_unreachable_smtp_server(make_session: Callable) -> None:
    mail = MailRecorder(error=ConnectionRefusedError("refused"))
    config = Configuration(email=FULL.email)
    (result,) = Notifier(make_session(), send_mail=mail).notify(config, "t", "b")
    assert not result.ok
    assert "refused" in result.error
