from __future__ import annotations

import logging
import smtplib
import ssl
from dataclasses import dataclass, field
from email import encoders
from email.mime.base import MIMEBase
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Any, Dict, List, Optional, Protocol

logger = logging.getLogger(__name__)


@dataclass
class EmailMessage:
    to: List[str]
    subject: str
    body_text: str
    body_html: Optional[str] = None
    attachments: List[Dict[str, Any]] = field(default_factory=list)


@dataclass(frozen=True)
class SmtpConfig:
    host: Optional[str] = None
    port: int = 587
    user: Optional[str] = None
    password: Optional[str] = None
    use_tls: bool = True
    sender: str = "payroll@example.com"

    @staticmethod
    def from_dict(data: Optional[Dict[str, Any]]) -> "SmtpConfig":
        data = data or {}
        return SmtpConfig(
            host=data.get("host") or None,
            port=int(data.get("port") or 587),
            user=data.get("user") or None,
            password=data.get("password") or None,
            use_tls=bool(data.get("use_tls", True)),
            sender=data.get("sender") or "payroll@example.com",
        )


class EmailSender(Protocol):
    def send(self, message: EmailMessage) -> bool:
        """Return True when the message was handed to the mail server."""

        raise NotImplementedError


class SmtpEmailSender(EmailSender):
    def __init__(self, config: SmtpConfig):
        self._config = config

    def _build(self, message: EmailMessage) -> MIMEMultipart:
        msg = MIMEMultipart("mixed")
        msg["Subject"] = message.subject
        msg["From"] = self._config.sender
        msg["To"] = ", ".join(message.to)

        body = MIMEMultipart("alternative")
        body.attach(MIMEText(message.body_text, "plain"))
        if message.body_html:
            body.attach(MIMEText(message.body_html, "html"))
        msg.attach(body)

        for attachment in message.attachments:
            part = MIMEBase("application", attachment.get("mimetype", "octet-stream"))
            part.set_payload(attachment["content"])
            encoders.encode_base64(part)
            part.add_header("Content-Disposition", f'attachment; filename="{attachment["filename"]}"')
            msg.attach(part)
        return msg

    def send(self, message: EmailMessage) -> bool:
        if not self._config.host:
            logger.error("SMTP host is not configured; cannot send '%s'", message.subject)
            return False

        try:
            msg = self._build(message)
            with smtplib.SMTP(self._config.host, self._config.port) as server:
                if self._config.use_tls:
                    server.starttls(context=ssl.create_default_context())
                if self._config.user and self._config.password:
                    server.login(self._config.user, self._config.password)
                server.sendmail(self._config.sender, message.to, msg.as_string())
        except (smtplib.SMTPException, OSError) as e:
            logger.error("SMTP send to %s failed: %s", message.to, e)
            return False

        logger.info("Email sent via SMTP to %s", message.to)
        return True


class LoggingEmailSender(EmailSender):
    """Development sender: logs the message instead of delivering it."""

    def send(self, message: EmailMessage) -> bool:
        logger.info("[MOCK EMAIL] To: %s | Subject: %s", message.to, message.subject)
        logger.debug("[MOCK EMAIL] Body: %s", message.body_text[:200])
        return True


EMAIL_BACKENDS = ("smtp", "logging")


def build_sender(config: SmtpConfig, backend: str = "smtp") -> EmailSender:
    """Pick the sender for ``backend``.

    Only an explicit ``logging`` backend skips delivery. The SMTP sender reports
    failure when no host is configured, so nothing is marked as sent.
    """
    name = (backend or "smtp").strip().lower()
    if name not in EMAIL_BACKENDS:
        raise ValueError(f"Unknown email backend: {backend!r}")
    if name == "logging":
        logger.warning("Email backend is 'logging'; messages are not delivered")
        return LoggingEmailSender()
    return SmtpEmailSender(config)
