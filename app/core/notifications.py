"""
Email notifications.

Outgoing mail is rendered from jinja2 templates under
``app/templates/emails`` and delivered over SMTP with aiosmtplib.
"""
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from pathlib import Path
from typing import Any, Dict, Optional

import aiosmtplib
from jinja2 import Template

from app.core.utils import LoggerMixin, mask_email


TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates" / "emails"


class EmailService(LoggerMixin):
    """Service for sending emails."""

    def __init__(
        self,
        smtp_host: str,
        smtp_port: int,
        smtp_user: str,
        smtp_password: str,
        from_email: str,
        from_name: str,
        enabled: bool = True,
        timeout: float = 10,
        template_dir: Path = TEMPLATE_DIR,
    ):
        super().__init__()
        self.smtp_host = smtp_host
        self.smtp_port = smtp_port
        self.smtp_user = smtp_user
        self.smtp_password = smtp_password
        self.from_email = from_email
        self.from_name = from_name
        self.enabled = enabled
        self.timeout = timeout
        self.template_dir = template_dir

    @classmethod
    def from_settings(cls, settings) -> "EmailService":
        return cls(
            smtp_host=settings.SMTP_HOST,
            smtp_port=settings.SMTP_PORT,
            smtp_user=settings.SMTP_USER,
            smtp_password=settings.SMTP_PASSWORD,
            from_email=settings.FROM_EMAIL,
            from_name=settings.FROM_NAME,
            enabled=settings.EMAIL_ENABLED,
            timeout=settings.SMTP_TIMEOUT_SECONDS,
        )

    async def send(
        self, to: str, subject: str, html_body: str, text_body: Optional[str] = None
    ) -> bool:
        """
        Send a single email.

        Returns:
            bool: True if the message was handed to the SMTP server, or if
            delivery is disabled and the message was only logged.
        """
        if not self.enabled:
            self.log_info(
                {
                    "event_type": "email_delivery_disabled",
                    "to": mask_email(to),
                    "subject": subject,
                }
            )
            return True

        try:
            message = MIMEMultipart("alternative")
            message["Subject"] = subject
            message["From"] = f"{self.from_name} <{self.from_email}>"
            message["To"] = to

            message.attach(MIMEText(text_body or "", "plain"))
            message.attach(MIMEText(html_body, "html"))

            await aiosmtplib.send(
                message,
                hostname=self.smtp_host,
                port=self.smtp_port,
                username=self.smtp_user or None,
                password=self.smtp_password or None,
                start_tls=True,
                timeout=self.timeout,
            )

            self.log_info(
                {"event_type": "email_sent", "to": mask_email(to), "subject": subject}
            )
            return True

        except (aiosmtplib.SMTPException, OSError) as e:
            self.log_error(
                {
                    "event_type": "email_send_failed",
                    "to": mask_email(to),
                    "subject": subject,
                    "error": str(e),
                    "error_type": type(e).__name__,
                },
                exc_info=True,
            )
            return False

    def render(self, template_name: str, context: Dict[str, Any]) -> Dict[str, Optional[str]]:
        """Render the html and text variants of a template."""
        html_path = self.template_dir / f"{template_name}.html"
        txt_path = self.template_dir / f"{template_name}.txt"

        html = Template(html_path.read_text(encoding="utf-8")).render(**context)
        text = None
        if txt_path.exists():
            text = Template(txt_path.read_text(encoding="utf-8")).render(**context)
        return {"html": html, "text": text}

    async def send_template_email(
        self, to: str, subject: str, template_name: str, context: Dict[str, Any]
    ) -> bool:
        rendered = self.render(template_name, context)
        return await self.send(to, subject, rendered["html"], rendered["text"])

    async def send_otp(
        self,
        to: str,
        name: str,
        otp_code: str,
        purpose: str,
        expires_in_minutes: int,
    ) -> bool:
        return await self.send_template_email(
            to=to,
            subject="Your Lael Hospital verification code",
            template_name="otp",
            context={
                "name": name or "there",
                "otp_code": otp_code,
                "purpose": purpose,
                "expires_in_minutes": expires_in_minutes,
            },
        )

    async def send_welcome(self, to: str, name: str) -> bool:
        return await self.send_template_email(
            to=to,
            subject="Welcome to Lael Hospital",
            template_name="welcome",
            context={"name": name or "there"},
        )

    async def send_password_reset_confirmation(self, to: str, name: str) -> bool:
        return await self.send_template_email(
            to=to,
            subject="Your Lael Hospital password was changed",
            template_name="password_reset",
            context={"name": name or "there"},
        )
