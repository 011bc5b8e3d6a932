"""
Outbound email

The core only needs "send this template to this address"; delivery is the
Mailer implementation's concern.
- SmtpMailer: real delivery over SMTP (smtplib, run in a worker thread)
- ConsoleMailer: logs the rendered message; used when no SMTP host is configured
"""
import asyncio
import logging
import smtplib
from abc import ABC, abstractmethod
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from pathlib import Path
from typing import Any, Dict

from jinja2 import Environment, FileSystemLoader, StrictUndefined, TemplateError

from gemquest.config import Settings
from gemquest.core.errors import NotificationFailure

logger = logging.getLogger("uvicorn.error")

TEMPLATE_DIR = Path(__file__).resolve().parents[1] / "templates" / "email"

# One HTML file per template name; every variable is HTML-escaped
_env = Environment(
    loader=FileSystemLoader(TEMPLATE_DIR),
    autoescape=True,
    undefined=StrictUndefined,
)


def render_template(template: str, variables: Dict[str, Any]) -> str:
    """
    Render templates/email/<template>.html.

    Raises:
        NotificationFailure: unknown template or missing variable
    """
    try:
        return _env.get_template(f"{template}.html").render(**variables)
    except TemplateError as exc:
        raise NotificationFailure(f"Could not render email template {template}") from exc


class Mailer(ABC):
    """Mailer Abstract Base Class"""

    @abstractmethod
    async def send(self, to: str, subject: str, template: str, variables: Dict[str, Any]) -> None:
        """
        Render `template` with `variables` and deliver it to `to`.

        Raises:
            NotificationFailure: rendering or delivery failed
        """
        pass


class ConsoleMailer(Mailer):
    async def send(self, to: str, subject: str, template: str, variables: Dict[str, Any]) -> None:
        html = render_template(template, variables)
        logger.info("[mailer] (console) to=%s subject=%r\n%s", to, subject, html)


class SmtpMailer(Mailer):
    def __init__(self, settings: Settings):
        self.host = settings.smtp_host
        self.port = settings.smtp_port
        self.user = settings.smtp_user
        self.password = settings.smtp_password
        self.from_email = settings.smtp_from or settings.smtp_user
        self.starttls = settings.smtp_starttls

    def _deliver(self, msg: MIMEMultipart) -> None:
        with smtplib.SMTP(self.host, self.port, timeout=30) as server:
            if self.starttls:
                server.starttls()
            if self.user and self.password:
                server.login(self.user, self.password)
            server.send_message(msg)

    async def send(self, to: str, subject: str, template: str, variables: Dict[str, Any]) -> None:
        html = render_template(template, variables)

        msg = MIMEMultipart()
        msg["From"] = f'"GemQuest" <{self.from_email}>'
        msg["To"] = to
        msg["Subject"] = subject
        msg.attach(MIMEText(html, "html"))

        try:
            await asyncio.to_thread(self._deliver, msg)
        except (smtplib.SMTPException, OSError) as exc:
            raise NotificationFailure(f"Error sending email to {to}") from exc
        logger.info('[mailer] email sent to %s with subject "%s"', to, subject)


def build_mailer(settings: Settings) -> Mailer:
    if settings.smtp_host:
        return SmtpMailer(settings)
    return ConsoleMailer()
