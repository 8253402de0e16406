import logging
import smtplib
from dataclasses import dataclass
from datetime import datetime
from email.message import EmailMessage
from html import escape
from typing import Literal

import httpx

from app.core.config import settings
from app.core.observability import log_event

EmailDeliveryStatus = Literal["sent", "not_configured", "failed"]

RESEND_API_URL = "https://api.resend.com/emails"
SENDGRID_API_URL = "https://api.sendgrid.com/v3/mail/send"


@dataclass(frozen=True)
class EmailDeliveryResult:
    status: EmailDeliveryStatus
    detail: str | None = None


@dataclass(frozen=True)
class InviteEmail:
    recipient_email: str
    business_name: str
    role: str
    invite_link: str
    expires_at: datetime

    @property
    def subject(self) -> str:
        return f"You're invited to {self.business_name} on TalkServe"

    def text_body(self) -> str:
        lines = [
            f"You have been invited to join {self.business_name} on TalkServe.",
            "",
            f"Role: {self.role.capitalize()}",
            f"Expires: {self.expires_at.isoformat()}",
            "",
            f"Accept invitation: {self.invite_link}",
            "",
            "If you were not expecting this invitation, you can ignore this email.",
        ]
        return "\n".join(lines)

    def html_body(self) -> str:
        link = escape(self.invite_link, quote=True)
        return (
            "<!DOCTYPE html><html><body>"
            f"<h2>Join {escape(self.business_name)} on TalkServe</h2>"
            f"<p>You have been invited as <strong>{escape(self.role.capitalize())}</strong>.</p>"
            f'<p><a href="{link}">Accept invitation</a></p>'
            f"<p>This invitation expires on {escape(self.expires_at.date().isoformat())}.</p>"
            "</body></html>"
        )


def _send_via_smtp(invite: InviteEmail) -> EmailDeliveryResult:
    if not settings.smtp_host:
        return EmailDeliveryResult(status="not_configured", detail="SMTP not configured")

    message = EmailMessage()
    message["Subject"] = invite.subject
    message["From"] = settings.email_from
    message["To"] = invite.recipient_email
    if settings.smtp_reply_to_email:
        message["Reply-To"] = settings.smtp_reply_to_email
    message.set_content(invite.text_body())
    message.add_alternative(invite.html_body(), subtype="html")

    if settings.smtp_use_ssl:
        with smtplib.SMTP_SSL(settings.smtp_host, settings.smtp_port, timeout=20) as server:
            if settings.smtp_username:
                server.login(settings.smtp_username, settings.smtp_password or "")
            server.send_message(message)
    else:
        with smtplib.SMTP(settings.smtp_host, settings.smtp_port, timeout=20) as server:
            if settings.smtp_use_starttls:
                server.starttls()
            if settings.smtp_username:
                server.login(settings.smtp_username, settings.smtp_password or "")
            server.send_message(message)
    return EmailDeliveryResult(status="sent")


def _send_via_resend(invite: InviteEmail) -> EmailDeliveryResult:
    if not settings.resend_api_key:
        return EmailDeliveryResult(status="not_configured", detail="RESEND_API_KEY not configured")

    response = httpx.post(
        RESEND_API_URL,
        headers={"Authorization": f"Bearer {settings.resend_api_key}"},
        json={
            "from": settings.email_from,
            "to": invite.recipient_email,
            "subject": invite.subject,
            "html": invite.html_body(),
            "text": invite.text_body(),
        },
        timeout=settings.email_http_timeout_seconds,
    )
    response.raise_for_status()
    return EmailDeliveryResult(status="sent")


def _send_via_sendgrid(invite: InviteEmail) -> EmailDeliveryResult:
    if not settings.sendgrid_api_key:
        return EmailDeliveryResult(status="not_configured", detail="SENDGRID_API_KEY not configured")

    response = httpx.post(
        SENDGRID_API_URL,
        headers={"Authorization": f"Bearer {settings.sendgrid_api_key}"},
        json={
            "personalizations": [{"to": [{"email": invite.recipient_email}]}],
            "from": {"email": settings.email_from},
            "subject": invite.subject,
            "content": [
                {"type": "text/plain", "value": invite.text_body()},
                {"type": "text/html", "value": invite.html_body()},
            ],
        },
        timeout=settings.email_http_timeout_seconds,
    )
    response.raise_for_status()
    return EmailDeliveryResult(status="sent")


_SENDERS = {
    "smtp": _send_via_smtp,
    "resend": _send_via_resend,
    "sendgrid": _send_via_sendgrid,
}


def send_invite_email(invite: InviteEmail) -> EmailDeliveryResult:
    """Deliver an invite email through the configured EMAIL_SERVICE.

    Never raises: delivery problems come back as a ``failed`` status so the
    invite itself is still issued.
    """
    service = settings.email_service.strip().lower()
    sender = _SENDERS.get(service)
    if sender is None:
        log_event("invite_email_skipped", service=service, recipient=invite.recipient_email)
        return EmailDeliveryResult(status="not_configured", detail="Email service not configured")

    try:
        result = sender(invite)
    except (smtplib.SMTPException, httpx.HTTPError, OSError) as exc:
        log_event(
            "invite_email_failed",
            level=logging.WARNING,
            service=service,
            recipient=invite.recipient_email,
            error=str(exc),
        )
        return EmailDeliveryResult(status="failed", detail=str(exc))

    log_event("invite_email_delivered", service=service, status=result.status)
    return result
