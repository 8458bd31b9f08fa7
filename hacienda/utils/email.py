import logging

from sendgrid import SendGridAPIClient
from sendgrid.helpers.mail import Mail

from hacienda.core.config import settings

logger = logging.getLogger("hacienda-files")


def email_enabled() -> bool:
    return bool(settings.SENDGRID_API_KEY)


def send_email(to_email: str, subject: str, body: str) -> bool:
    """Send an HTML e-mail through SendGrid. Returns True when accepted (202)."""
    try:
        message = Mail(
            from_email=(settings.EMAIL_FROM, settings.EMAIL_FROM_NAME),
            to_emails=to_email,
            subject=subject,
            html_content=body
        )

        sg = SendGridAPIClient(settings.SENDGRID_API_KEY)
        response = sg.send(message)

        if response.status_code == 202:
            return True
        logger.error("SendGrid API error: %s, %s", response.status_code, response.body)
        return False

    except Exception as e:
        logger.exception("Failed to send e-mail to %s: %s", to_email, e)
        return False
