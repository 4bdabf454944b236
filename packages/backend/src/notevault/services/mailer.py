"""Outgoing mail for OTP delivery.

Learn: The OTP issuer only depends on the Mailer protocol —
send_otp(email, code) either returns or raises DeliveryError. SmtpMailer
is the production implementation; tests swap in an in-memory fake.

smtplib is blocking, so the actual SMTP conversation runs in a worker
thread. There are no retries: a single failure is reported straight
back to the caller.
"""

import asyncio
import smtplib
import ssl
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Protocol

import structlog

from notevault.config import Settings
from notevault.errors import DeliveryError

logger = structlog.get_logger()

OTP_SUBJECT = "Your NoteApp OTP"

OTP_TEXT = """Your OTP is: {code}

It expires in {minutes} minutes.
"""

OTP_HTML = """<p>Your OTP is: <strong>{code}</strong></p>
<p>Expires in {minutes} minutes</p>
"""


class Mailer(Protocol):
    async def send_otp(self, email: str, code: str) -> None:
        """Deliver a one-time code. Raises DeliveryError on failure."""
        ...


class SmtpMailer:
    """SMTP-backed mailer (STARTTLS on 587 or implicit TLS)."""

    def __init__(self, settings: Settings):
        self._settings = settings

    def _build_message(self, to_email: str, code: str) -> MIMEMultipart:
        minutes = self._settings.otp_expire_minutes
        msg = MIMEMultipart("alternative")
        msg["Subject"] = OTP_SUBJECT
        msg["From"] = (
            f"{self._settings.smtp_from_name} <{self._settings.smtp_from_email}>"
        )
        msg["To"] = to_email
        msg.attach(MIMEText(OTP_TEXT.format(code=code, minutes=minutes), "plain"))
        msg.attach(MIMEText(OTP_HTML.format(code=code, minutes=minutes), "html"))
        return msg

    def _deliver(self, message: MIMEMultipart) -> None:
        s = self._settings
        password = s.smtp_password.get_secret_value() if s.smtp_password else ""
        context = ssl.create_default_context()

        if s.smtp_starttls:
            with smtplib.SMTP(s.smtp_host, s.smtp_port) as server:
                server.starttls(context=context)
                if s.smtp_user:
                    server.login(s.smtp_user, password)
                server.send_message(message)
        else:
            with smtplib.SMTP_SSL(s.smtp_host, s.smtp_port, context=context) as server:
                if s.smtp_user:
                    server.login(s.smtp_user, password)
                server.send_message(message)

    async def send_otp(self, email: str, code: str) -> None:
        if not self._settings.smtp_enabled:
            # Development: no transport configured, surface the code in logs.
            logger.warning("mailer.disabled", to=email, otp=code)
            return

        if not self._settings.smtp_host:
            logger.error("mailer.not_configured")
            raise DeliveryError()

        message = self._build_message(email, code)
        try:
            await asyncio.to_thread(self._deliver, message)
        except (smtplib.SMTPException, OSError) as e:
            logger.error("mailer.failed", to=email, error=str(e))
            raise DeliveryError() from e

        logger.info("mailer.sent", to=email)
