"""Outbound mail: templated verification and password-reset emails.

Learn: Callers hand over a MailMessage (recipient, subject, template
kind, template params); the Mailer renders a plain-text and an HTML
part and delivers over SMTP in the thread pool, with a bounded timeout.

Mail is not critical to the business flow. Delivery failures are logged
and swallowed, never raised to the caller. Template params carry links
with single-use tokens, so they are never logged either.
"""

import enum
import smtplib
from dataclasses import dataclass, field
from email.message import EmailMessage
from html import escape

import structlog
from starlette.concurrency import run_in_threadpool

from socialnet.config import Settings

logger = structlog.get_logger()


class TemplateKind(str, enum.Enum):
    EMAIL_VERIFICATION = "email_verification"
    PASSWORD_RESET = "password_reset"


@dataclass
class MailMessage:
    recipient: str
    subject: str
    template_kind: TemplateKind
    template_params: dict = field(default_factory=dict)


# kind → (intro, instructions, button text); params: username, link
_TEMPLATES = {
    TemplateKind.EMAIL_VERIFICATION: (
        "Welcome! We're very excited to have you on board.",
        "To verify your email please click on the following button:",
        "Verify your email",
    ),
    TemplateKind.PASSWORD_RESET: (
        "We got a request to reset the password of your account.",
        "To reset your password click on the following button or link:",
        "Reset password",
    ),
}

_OUTRO = "Need help, or have questions? Just reply to this email, we'd love to help."


def render(message: MailMessage, product_name: str) -> tuple[str, str]:
    """Render (text, html) bodies for a message."""
    intro, instructions, button = _TEMPLATES[message.template_kind]
    username = message.template_params.get("username", "")
    link = message.template_params["link"]

    text = (
        f"Hi {username},\n\n{intro}\n\n{instructions}\n{link}\n\n{_OUTRO}\n\n— {product_name}\n"
    )
    html = (
        f"<p>Hi {escape(username)},</p>"
        f"<p>{escape(intro)}</p>"
        f"<p>{escape(instructions)}</p>"
        f'<p><a href="{escape(link, quote=True)}" '
        f'style="background:#22BC66;color:#fff;padding:10px 16px;text-decoration:none">'
        f"{escape(button)}</a></p>"
        f"<p>{escape(_OUTRO)}</p>"
        f"<p>— {escape(product_name)}</p>"
    )
    return text, html


class Mailer:
    """SMTP mail dispatch configured from Settings."""

    def __init__(self, settings: Settings):
        self.settings = settings

    async def send(self, message: MailMessage) -> bool:
        """Deliver a message. Returns False (and logs) instead of raising."""
        if not self.settings.smtp_host:
            logger.info(
                "mail.delivery_disabled",
                recipient=message.recipient,
                template=message.template_kind.value,
            )
            return False

        try:
            email = self._build(message)
            await run_in_threadpool(self._deliver, email)
        except Exception as e:
            logger.error(
                "mail.send_failed",
                recipient=message.recipient,
                template=message.template_kind.value,
                error=str(e),
            )
            return False

        logger.info("mail.sent", recipient=message.recipient, template=message.template_kind.value)
        return True

    def _build(self, message: MailMessage) -> EmailMessage:
        text, html = render(message, self.settings.product_name)
        email = EmailMessage()
        email["From"] = self.settings.mail_from
        email["To"] = message.recipient
        email["Subject"] = message.subject
        email.set_content(text)
        email.add_alternative(html, subtype="html")
        return email

    def _deliver(self, email: EmailMessage) -> None:
        s = self.settings
        with smtplib.SMTP(s.smtp_host, s.smtp_port, timeout=s.smtp_timeout_seconds) as server:
            if s.smtp_use_tls:
                server.starttls()
            if s.smtp_username:
                server.login(s.smtp_username, s.smtp_password)
            server.send_message(email)
