"""Send status notifications through Pushover and e-mail."""

from __future__ import annotations

import smtplib
from email.message import EmailMessage
from typing import TYPE_CHECKING, Callable

import requests

from .utils import REQUEST_TIMEOUT, SideEffectResult, log

if TYPE_CHECKING:
    from .config import Configuration, EmailChannel, PushoverChannel

PUSHOVER_URL = "https://api.pushover.net/1/messages.json"
DEFAULT_SMTP_PORT = 587

SendMail = Callable[[str, int, str, str, EmailMessage], None]


def split_server(server: str) -> tuple[str, int]:
    """Split ``host[:port]``, defaulting to the submission port."""
    host, sep, port = server.rpartition(":")
    if sep and port.isdigit():
        return host, int(port)
    return server, DEFAULT_SMTP_PORT


def smtp_send_mail(host: str, port: int, user: str, password: str, message: EmailMessage) -> None:
    """Deliver ``message`` over SMTP, upgrading to TLS when the server offers it."""
    with smtplib.SMTP(host, port, timeout=REQUEST_TIMEOUT) as smtp:
        smtp.ehlo()
        if smtp.has_extn("starttls"):
            smtp.starttls()
            smtp.ehlo()
        smtp.login(user, password)
        smtp.send_message(message)


class Notifier:
    """Best-effort delivery to every configured channel."""

    def __init__(
        self,
        session: requests.Session,
        send_mail: SendMail = smtp_send_mail,
        pushover_url: str = PUSHOVER_URL,
    ) -> None:
        self.session = session
        self.send_mail = send_mail
        self.pushover_url = pushover_url

    def notify(self, config: Configuration, subject: str, body: str) -> list[SideEffectResult]:
        """Send ``subject``/``body`` to each configured channel.

        Failures are logged and returned, never raised.
        """
        results = []
        if config.pushover.configured:
            results.append(self.send_pushover(config.pushover, subject, body))
        if config.email.configured:
            results.append(self.send_email(config.email, subject, body))
        for result in results:
            if not result.ok:
                log(f"Notification via {result.name} failed: {result.error}", "warning")
        return results

    def send_pushover(self, channel: PushoverChannel, title: str, message: str) -> SideEffectResult:
        data = {"token": channel.token, "user": channel.user, "message": message}
        if title:
            data["title"] = title
        try:
            response = self.session.post(self.pushover_url, data=data, timeout=REQUEST_TIMEOUT)
            response.raise_for_status()
        except requests.RequestException as e:
            return SideEffectResult("pushover", ok=False, error=str(e))
        return SideEffectResult("pushover", ok=True)

    def send_email(self, channel: EmailChannel, subject: str, body: str) -> SideEffectResult:
        host, port = split_server(channel.server)
        message = EmailMessage()
        message["Subject"] = subject
        message["From"] = channel.sender
        message["To"] = channel.recipient
        message.set_content(body)
        try:
            self.send_mail(host, port, channel.user, channel.password, message)
        except (smtplib.SMTPException, OSError) as e:
            return SideEffectResult("email", ok=False, error=str(e))
        return SideEffectResult("email", ok=True)
