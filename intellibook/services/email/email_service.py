# ===== intellibook/services/email/email_service.py =====
import smtplib
from dataclasses import dataclass
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
from typing import Optional
import logging
import re

import httpx

from intellibook.config.settings import Settings, get_settings

logger = logging.getLogger(__name__)


@dataclass
class EmailResult:
    ok: bool
    provider: Optional[str] = None
    error: Optional[str] = None


def sanitize_subject(subject: str) -> str:
    """Strip CR/LF so a subject can't inject headers"""
    return re.sub(r"[\r\n]+", " ", str(subject or "")).strip()


class EmailService:
    """
    Outbound email with provider fallback:
    Resend HTTP API, then SMTP, then a logged simulation.
    """

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()

    @property
    def provider(self) -> str:
        if self.settings.RESEND_API_KEY and self.settings.EMAIL_FROM_ADDRESS:
            return "resend"
        if self.settings.EMAIL_HOST and self.settings.EMAIL_FROM_ADDRESS:
            return "smtp"
        return "simulation"

    @property
    def from_header(self) -> str:
        return f"{self.settings.EMAIL_FROM_NAME} <{self.settings.EMAIL_FROM_ADDRESS}>"

    def _get_smtp_connection(self):
        """Create and return SMTP connection"""
        try:
            if self.settings.EMAIL_USE_TLS:
                server = smtplib.SMTP(self.settings.EMAIL_HOST, self.settings.EMAIL_PORT)
                server.starttls()
            else:
                server = smtplib.SMTP_SSL(self.settings.EMAIL_HOST, self.settings.EMAIL_PORT)

            if self.settings.EMAIL_USERNAME and self.settings.EMAIL_PASSWORD:
                server.login(self.settings.EMAIL_USERNAME, self.settings.EMAIL_PASSWORD)

            return server
        except Exception as e:
            logger.error(f"Failed to connect to SMTP server: {e}")
            raise

    def _send_resend(self, to_email: str, subject: str, html_content: str, plain_text: Optional[str]) -> EmailResult:
        try:
            response = httpx.post(
                self.settings.RESEND_API_URL,
                headers={"Authorization": f"Bearer {self.settings.RESEND_API_KEY}"},
                json={
                    "from": self.from_header,
                    "to": [to_email],
                    "subject": subject,
                    "html": html_content,
                    "text": plain_text,
                },
                timeout=self.settings.EMAIL_TIMEOUT_SECONDS,
            )
        except httpx.HTTPError as e:
            logger.error(f"Resend request failed for {to_email}: {e}")
            return EmailResult(ok=False, provider="resend", error=str(e))

        if response.status_code >= 400:
            logger.error(f"Resend rejected email to {to_email}: {response.status_code} {response.text}")
            return EmailResult(ok=False, provider="resend", error=response.text)

        logger.info(f"Email sent successfully to {to_email} via resend")
        return EmailResult(ok=True, provider="resend")

    def _send_smtp(self, to_email: str, subject: str, html_content: str, plain_text: Optional[str]) -> EmailResult:
        try:
            # Create message
            msg = MIMEMultipart('alternative')
            msg['Subject'] = subject
            msg['From'] = self.from_header
            msg['To'] = to_email

            # Attach plain text version
            if plain_text:
                msg.attach(MIMEText(plain_text, 'plain'))

            # Attach HTML version
            msg.attach(MIMEText(html_content, 'html'))

            server = self._get_smtp_connection()
            server.sendmail(self.settings.EMAIL_FROM_ADDRESS, [to_email], msg.as_string())
            server.quit()

            logger.info(f"Email sent successfully to {to_email} via smtp")
            return EmailResult(ok=True, provider="smtp")

        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"Failed to send email to {to_email}: {e}")
            return EmailResult(ok=False, provider="smtp", error=str(e))

    def send_email(
            self,
            to_email: Optional[str],
            subject: str,
            html_content: str,
            plain_text: Optional[str] = None
    ) -> EmailResult:
        """
        Send an email through the configured provider

        Args:
            to_email: Recipient email address
            subject: Email subject (CR/LF stripped)
            html_content: HTML content of the email
            plain_text: Plain text version (fallback for non-HTML clients)

        Returns:
            EmailResult: ok flag and the provider that handled it
        """
        if not to_email:
            return EmailResult(ok=False, error="missing-to")

        safe_subject = sanitize_subject(subject)
        provider = self.provider

        if provider == "resend":
            return self._send_resend(to_email, safe_subject, html_content, plain_text)
        if provider == "smtp":
            return self._send_smtp(to_email, safe_subject, html_content, plain_text)

        preview = (plain_text or "")[:120]
        logger.info(f"[EMAIL_SIMULATION] to={to_email} subject={safe_subject!r} preview={preview!r}")
        return EmailResult(ok=True, provider="simulation")
