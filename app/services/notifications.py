"""Notification service (Mailgun/SendGrid email)."""
import logging

import httpx

from app.config import get_settings
from app.services.errors import DependencyFailure

logger = logging.getLogger("uvicorn.error")

MAILGUN_US_BASE = "https://api.mailgun.net"
MAILGUN_EU_BASE = "https://api.eu.mailgun.net"


def send_email(to_email: str, subject: str, html_content: str, text_content: str | None = None) -> bool:
    """Send email via Mailgun (preferred) or SendGrid. Returns True if sent, False otherwise."""
    settings = get_settings()
    has_key = bool(settings.mailgun_api_key)
    has_domain = bool(settings.mailgun_domain)
    if has_key and has_domain:
        logger.info("[Email] Calling Mailgun API: to=%s subject=%s domain=%s", to_email, subject, settings.mailgun_domain)
        return _send_email_mailgun(to_email, subject, html_content, text_content=text_content, settings=settings)
    if settings.sendgrid_api_key:
        return _send_email_sendgrid(to_email, subject, html_content, text_content=text_content, settings=settings)
    logger.warning(
        "[Email] NOT SENT: to=%s subject=%s. MAILGUN_API_KEY=%s MAILGUN_DOMAIN=%s. Set both in .env and restart the server.",
        to_email,
        subject,
        "set" if has_key else "MISSING",
        "set" if has_domain else "MISSING",
    )
    return False


def _send_email_mailgun(to_email: str, subject: str, html_content: str, text_content: str | None = None, settings=None) -> bool:
    if settings is None:
        settings = get_settings()
    base = (settings.mailgun_base_url or MAILGUN_US_BASE).strip().rstrip("/")
    domain = (settings.mailgun_domain or "").strip().lower()
    from_addr = (settings.mailgun_from_email or "").strip()
    from_domain = from_addr.split("@")[-1].lower() if "@" in from_addr else ""
    if domain and from_domain != domain:
        from_addr = f"noreply@{domain}"
        logger.info("[Mailgun] Using from=%s (must match domain %s for delivery)", from_addr, domain)
    data = {
        "from": f"{settings.mailgun_from_name} <{from_addr}>",
        "to": to_email,
        "subject": subject,
        "text": text_content or "",
        "html": html_content or "",
    }
    try:
        with httpx.Client(timeout=10.0) as client:
            r = client.post(f"{base}/v3/{domain}/messages", auth=("api", settings.mailgun_api_key), data=data)
            if 200 <= r.status_code < 300:
                logger.info("[Mailgun] API success: to=%s status=%s", to_email, r.status_code)
                return True
            if r.status_code == 401 and base == MAILGUN_US_BASE:
                logger.info("[Mailgun] 401 with US endpoint. Retrying with EU endpoint...")
                r2 = client.post(
                    f"{MAILGUN_EU_BASE}/v3/{domain}/messages",
                    auth=("api", settings.mailgun_api_key),
                    data=data,
                )
                if 200 <= r2.status_code < 300:
                    logger.info("[Mailgun] API success (EU): to=%s", to_email)
                    return True
                logger.warning("[Mailgun] EU request failed: status=%s body=%s", r2.status_code, r2.text[:500])
                return False
            logger.warning("[Mailgun] API failed: status=%s to=%s body=%s", r.status_code, to_email, r.text[:500])
            return False
    except httpx.HTTPError as e:
        logger.warning("[Mailgun] Exception: to=%s error=%s: %s", to_email, type(e).__name__, e)
        return False


def _send_email_sendgrid(to_email: str, subject: str, html_content: str, text_content: str | None = None, settings=None) -> bool:
    if settings is None:
        settings = get_settings()
    from sendgrid import SendGridAPIClient
    from sendgrid.helpers.mail import Mail

    message = Mail(
        from_email=(settings.sendgrid_from_email, settings.sendgrid_from_name),
        to_emails=to_email,
        subject=subject,
        html_content=html_content,
        plain_text_content=text_content or "",
    )
    try:
        SendGridAPIClient(settings.sendgrid_api_key).send(message)
        return True
    except Exception as e:  # sendgrid raises python_http_client errors of many types
        logger.warning("[SendGrid] Exception: to=%s error=%s: %s", to_email, type(e).__name__, e)
        return False


def _text_to_html(body: str) -> str:
    escaped = body.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")
    return "".join(f"<p>{line}</p>" for line in escaped.split("\n\n"))


class EmailNotifier:
    """send(recipient, subject, body). Raises DependencyFailure when delivery fails."""

    def send(self, recipient: str, subject: str, body: str) -> None:
        if not send_email(recipient, subject, _text_to_html(body), text_content=body):
            raise DependencyFailure("The email service failed. Please try again later.")


def get_notifier() -> EmailNotifier:
    return EmailNotifier()


def share_invitation_message(filename: str, sign_url: str, expire_hours: int) -> tuple[str, str]:
    """(subject, body) for a share-link invitation."""
    subject = f"Invitation to sign: {filename}"
    body = (
        "You have been invited to sign a document. Please use the following link, "
        f"which is valid for {expire_hours} hours:\n\n{sign_url}"
    )
    return subject, body


def document_shared_message(filename: str, owner_name: str, frontend_url: str) -> tuple[str, str]:
    """(subject, body) for a grant-list share with a registered user."""
    subject = f"{owner_name} shared a document with you: {filename}"
    body = (
        f"{owner_name} shared \"{filename}\" with you for review and signing.\n\n"
        f"Sign in to see it under Shared with me: {frontend_url}/shared"
    )
    return subject, body
