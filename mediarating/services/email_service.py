"""
Email service for sending test invitations.

Invitations carry the respondent's one-time link. When SMTP is not configured
(development, tests) the link is logged instead of sent.
"""
import logging
import smtplib
from datetime import datetime
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formataddr
from html import escape
from typing import Optional

from mediarating.core.config import settings
from mediarating.middleware.request_logging import redact_path

# SMTP connection timeout in seconds
SMTP_TIMEOUT_SECONDS = 10

logger = logging.getLogger(__name__)

INVITATION_HTML_TEMPLATE = """
<!DOCTYPE html>
<html>
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>You're invited to a rating test</title>
</head>
<body style="font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Helvetica, Arial, sans-serif; line-height: 1.6; color: #333; max-width: 600px; margin: 0 auto; padding: 20px;">
    <div style="background-color: #f8f9fa; border-radius: 8px; padding: 30px; margin-bottom: 20px;">
        <h1 style="color: #1a1a1a; margin-top: 0;">{test_name}</h1>
        {description_block}
        <p style="font-size: 16px; margin-bottom: 20px;">
            You have been invited to rate a set of media items. The link below is
            personal and works until you submit your answers.
        </p>
        <div style="text-align: center; margin: 30px 0;">
            <a href="{link}" style="background-color: #007AFF; color: white; padding: 14px 28px; text-decoration: none; border-radius: 8px; display: inline-block; font-weight: 600; font-size: 16px;">
                Start the test
            </a>
        </div>
        <p style="font-size: 14px; color: #666; margin-top: 10px;">
            If the button above doesn't work, copy and paste this link into your browser:
        </p>
        <p style="font-size: 14px; color: #007AFF; word-break: break-all;">
            {link}
        </p>
    </div>
    <div style="font-size: 12px; color: #999; text-align: center; margin-top: 20px;">
        <p>This is an automated email. Please do not reply to this message.</p>
        <p>&copy; {year} {from_name}</p>
    </div>
</body>
</html>
"""

INVITATION_TEXT_TEMPLATE = """
{test_name}

{description}You have been invited to rate a set of media items. The link below is
personal and works until you submit your answers:

{link}

---
This is an automated email. Please do not reply to this message.
"""


def _is_smtp_configured() -> bool:
    """
    Check if SMTP is properly configured.

    Returns:
        True if all required SMTP settings are configured, False otherwise.
    """
    return bool(
        settings.SMTP_HOST
        and settings.SMTP_PORT
        and settings.SMTP_USERNAME
        and settings.SMTP_PASSWORD
        and settings.SMTP_FROM_EMAIL
    )


def send_test_invitation_email(
    email: str,
    test_name: str,
    test_description: Optional[str],
    link: str,
) -> bool:
    """
    Send a test invitation with the respondent's one-time link.

    Runs as a FastAPI background task, after the session has been committed.

    Returns:
        True if the email was sent or logged, False on error
    """
    if not settings.INVITATION_EMAILS_ENABLED:
        logger.debug(f"Invitation emails disabled; not sending to {email}")
        return True

    if not _is_smtp_configured():
        logger.info(
            f"SMTP not configured. Invitation for test '{test_name}' to {email}: "
            f"{redact_path(link)}"
        )
        return True

    try:
        msg = MIMEMultipart("alternative")
        msg["Subject"] = f"Invitation: {test_name}"
        msg["From"] = formataddr((settings.SMTP_FROM_NAME, settings.SMTP_FROM_EMAIL))
        msg["To"] = formataddr(
            ("", email)
        )  # Properly encode email to prevent header injection

        text_content = INVITATION_TEXT_TEMPLATE.format(
            test_name=test_name,
            description=f"{test_description}\n\n" if test_description else "",
            link=link,
        )
        description_block = (
            f'<p style="font-size: 16px; margin-bottom: 20px;">{escape(test_description)}</p>'
            if test_description
            else ""
        )
        html_content = INVITATION_HTML_TEMPLATE.format(
            test_name=escape(test_name),
            description_block=description_block,
            link=escape(link, quote=True),
            year=datetime.now().year,
            from_name=escape(settings.SMTP_FROM_NAME),
        )

        msg.attach(MIMEText(text_content, "plain"))
        msg.attach(MIMEText(html_content, "html"))

        # Send email via SMTP with timeout to prevent hanging
        with smtplib.SMTP(
            settings.SMTP_HOST, settings.SMTP_PORT, timeout=SMTP_TIMEOUT_SECONDS
        ) as server:
            server.starttls()  # Upgrade to secure connection
            server.login(settings.SMTP_USERNAME, settings.SMTP_PASSWORD)
            server.send_message(msg)

        logger.info(f"Invitation email sent successfully to {email}")
        return True

    except smtplib.SMTPException as e:
        logger.error(f"SMTP error sending invitation email to {email}: {e}")
        return False
    except Exception as e:
        logger.error(
            f"Unexpected error sending invitation email to {email}: {e}",
            exc_info=True,
        )
        return False
