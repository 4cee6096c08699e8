# core/notifier.py
import asyncio
import logging
from typing import Iterable, List, Sequence

from . import emailer
from .backend import Notifier
from .logger import get_logger
from .models import Severity
from .report_html import build_html_notification, build_plaintext_notification

logger = get_logger(__name__)

_LEVELS = {
    Severity.INFO: logging.INFO,
    Severity.SUCCESS: logging.INFO,
    Severity.ERROR: logging.ERROR,
}


class LoggingNotifier:
    """Writes every notification to the log."""

    def __init__(self, name: str = "catalog.notifications"):
        self._logger = get_logger(name)

    def notify(self, title: str, message: str, severity: Severity) -> None:
        self._logger.log(_LEVELS.get(severity, logging.INFO), "%s: %s", title, message)


class EmailNotifier:
    """
    Mails notifications of the chosen severities. Sending happens on the
    default executor when an event loop is running, so notify() never blocks
    the loop.
    """

    def __init__(
        self,
        recipients: Sequence[str] | None = None,
        severities: Iterable[Severity] = (Severity.SUCCESS, Severity.ERROR),
        settings: emailer.SmtpSettings | None = None,
    ):
        self.settings = settings or emailer.SmtpSettings.from_env()
        self.recipients: List[str] = list(recipients or self.settings.default_recipients)
        self.severities = frozenset(severities)

    def _send(self, title: str, message: str, severity: Severity) -> None:
        html_body = build_html_notification(title, message, severity)
        text_body = build_plaintext_notification(title, message, severity)
        try:
            emailer.send_email(self.settings, title, html_body, text_body, self.recipients)
        except Exception as e:
            logger.exception("Failed to send notification email '%s': %s", title, e)

    def notify(self, title: str, message: str, severity: Severity) -> None:
        if severity not in self.severities:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self._send(title, message, severity)
            return
        loop.run_in_executor(None, self._send, title, message, severity)


class CompositeNotifier:
    def __init__(self, *notifiers: Notifier):
        self.notifiers = list(notifiers)

    def notify(self, title: str, message: str, severity: Severity) -> None:
        for n in self.notifiers:
            try:
                n.notify(title, message, severity)
            except Exception as e:
                logger.exception("Notifier %r failed: %s", n, e)
