# core/emailer.py
import os
import smtplib
from dataclasses import dataclass, field
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

from .logger import get_logger

logger = get_logger(__name__)


def parse_recipients(raw: str) -> list[str]:
    """Split a comma or semicolon separated address list."""
    parts = [p.strip() for p in raw.replace(";", ",").split(",")]
    return [p for p in parts if p]


@dataclass(frozen=True)
class SmtpSettings:
    sender: str = ""
    host: str = ""
    port: int = 587
    user: str = ""
    password: str = ""
    use_ssl: bool = False
    subject_prefix: str = "[Catalog Importer]"
    default_recipients: list[str] = field(default_factory=list)

    @classmethod
    def from_env(cls) -> "SmtpSettings":
        return cls(
            sender=os.getenv("EMAIL_FROM", "").strip(),
            host=os.getenv("SMTP_HOST", "").strip(),
            port=int(os.getenv("SMTP_PORT", "587")),
            user=os.getenv("SMTP_USER", "").strip(),
            password=os.getenv("SMTP_PASS", "").strip(),
            use_ssl=os.getenv("SMTP_USE_SSL", "false").lower() == "true",
            subject_prefix=os.getenv("EMAIL_SUBJECT_PREFIX", "[Catalog Importer]").strip(),
            default_recipients=parse_recipients(os.getenv("EMAIL_TO", "")),
        )

    @property
    def configured(self) -> bool:
        return bool(self.sender and self.host)


def build_message(
    settings: SmtpSettings,
    subject: str,
    html_body: str,
    text_body: str | None,
    recipients: list[str],
) -> MIMEMultipart:
    msg = MIMEMultipart("alternative")
    msg["From"] = settings.sender
    msg["To"] = ", ".join(recipients)
    msg["Subject"] = f"{settings.subject_prefix} {subject}".strip()

    msg.attach(MIMEText(text_body or "HTML capable email client required to view this notification.", "plain", "utf-8"))
    msg.attach(MIMEText(html_body, "html", "utf-8"))
    return msg


def send_email(
    settings: SmtpSettings,
    subject: str,
    html_body: str,
    text_body: str | None,
    recipients: list[str],
) -> bool:
    """Send one notification mail. Returns False when sending was skipped."""
    if not recipients:
        logger.warning("No recipients for notification '%s'; skipping send.", subject)
        return False

    if not settings.configured:
        logger.warning(
            "Email not fully configured (EMAIL_FROM/SMTP_HOST); skipping notification: %s",
            subject,
        )
        return False

    msg = build_message(settings, subject, html_body, text_body, recipients)
    smtp_cls = smtplib.SMTP_SSL if settings.use_ssl else smtplib.SMTP
    server = smtp_cls(settings.host, settings.port, timeout=30)

    try:
        if not settings.use_ssl:
            server.starttls()
        if settings.user:
            server.login(settings.user, settings.password)
        server.sendmail(settings.sender, recipients, msg.as_string())
        logger.info("Notification sent to %s: %s", recipients, subject)
    finally:
        try:
            server.quit()
        except smtplib.SMTPException:
            pass
    return True
