"""
Email alerts for failed RPC checks.
Sent through Gmail SMTP when GMAIL_USER, GMAIL_APP_PASSWORD and EMAIL_TO are set.
"""

import logging
import smtplib
from email.message import EmailMessage
from email.utils import formatdate

import config

logger = logging.getLogger(__name__)

SMTP_HOST = "smtp.gmail.com"
SMTP_PORT = 465


def build_message(rpc_url, error_context, error_message, user_agent="Unknown"):
    msg = EmailMessage()
    msg["From"] = f'"ChainDoctor Alert" <{config.GMAIL_USER}>'
    msg["To"] = config.EMAIL_TO
    msg["Subject"] = f"ChainDoctor Alert: RPC Failure for {rpc_url}"
    msg.set_content(
        "An RPC check failed on ChainDoctor.\n"
        "\n"
        "Details:\n"
        f"- Timestamp: {formatdate(usegmt=True)}\n"
        f"- RPC Endpoint: {rpc_url}\n"
        f"- Failing Function: {error_context}\n"
        f"- Error Message: {error_message}\n"
        f"- User Agent: {user_agent}\n"
    )
    return msg


def send_failure_report(rpc_url: str, error_context: str, error_message: str,
                        user_agent: str = "Unknown") -> bool:
    """Send the alert. Returns False if email is not configured or delivery failed."""
    if not (config.GMAIL_USER and config.GMAIL_APP_PASSWORD and config.EMAIL_TO):
        logger.error(
            "Failure report email could not be sent. Missing GMAIL_USER, "
            "GMAIL_APP_PASSWORD, or EMAIL_TO environment variables."
        )
        return False

    msg = build_message(rpc_url, error_context, error_message, user_agent)
    try:
        with smtplib.SMTP_SSL(SMTP_HOST, SMTP_PORT, timeout=15) as smtp:
            smtp.login(config.GMAIL_USER, config.GMAIL_APP_PASSWORD)
            smtp.send_message(msg)
    except (smtplib.SMTPException, OSError) as e:
        logger.error("Failed to send failure report email for %s: %s", rpc_url, e)
        return False
    return True
