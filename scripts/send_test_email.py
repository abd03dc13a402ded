"""
Send a sample share invitation to check that Mailgun or SendGrid is configured.
Usage: python scripts/send_test_email.py <to_email>
"""
import os
import sys

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from app.config import get_settings
from app.services.errors import DependencyFailure
from app.services.notifications import get_notifier, share_invitation_message


def main():
    to_email = (sys.argv[1] if len(sys.argv) > 1 else "").strip()
    if not to_email:
        print("Usage: python scripts/send_test_email.py <to_email>")
        sys.exit(1)

    settings = get_settings()
    provider = "Mailgun" if settings.mailgun_api_key and settings.mailgun_domain else (
        "SendGrid" if settings.sendgrid_api_key else None
    )
    if not provider:
        print("No mail provider configured. Set MAILGUN_API_KEY + MAILGUN_DOMAIN or SENDGRID_API_KEY in .env")
        sys.exit(1)

    subject, body = share_invitation_message(
        "example.pdf", f"{settings.frontend_url}/sign/example-token", settings.share_token_expire_hours
    )
    print(f"Sending test invitation to {to_email} via {provider}")
    try:
        get_notifier().send(to_email, subject, "[Test] " + body)
    except DependencyFailure:
        print("Failed. Check the server log lines above for the provider response.")
        sys.exit(1)
    print("Sent.")


if __name__ == "__main__":
    main()
