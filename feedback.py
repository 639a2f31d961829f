"""
User feedback, delivered by email through Resend.
"""

import logging
from typing import Optional

import resend
from resend.exceptions import ResendError

import config

logger = logging.getLogger(__name__)

# Resend's free tier only sends from its onboarding address
FROM_ADDRESS = "onboarding@resend.dev"
SUBJECT = "New Feedback from ChainDoctor"

MIN_LENGTH = 10
MAX_LENGTH = 2000

DISABLED_MESSAGE = "Server configuration error: Feedback is currently disabled."


class FeedbackError(Exception):
    """Carries a message that is safe to show the person giving feedback."""


def validate_feedback(text: Optional[str]) -> Optional[str]:
    """Return the validation message for `text`, or None when it is acceptable."""
    if text is None or len(text) < MIN_LENGTH:
        return f"Feedback must be at least {MIN_LENGTH} characters long."
    if len(text) > MAX_LENGTH:
        return f"Feedback must be less than {MAX_LENGTH} characters."
    return None


def send_feedback(text: str) -> None:
    if not config.RESEND_API_KEY:
        logger.error("RESEND_API_KEY is not set; feedback is disabled")
        raise FeedbackError(DISABLED_MESSAGE)
    if not config.FEEDBACK_EMAIL_TO:
        logger.error("FEEDBACK_EMAIL_TO is not set; feedback is disabled")
        raise FeedbackError(DISABLED_MESSAGE)

    resend.api_key = config.RESEND_API_KEY
    try:
        resend.Emails.send({
            "from": FROM_ADDRESS,
            "to": config.FEEDBACK_EMAIL_TO,
            "subject": SUBJECT,
            "text": text,
        })
    except ResendError as e:
        logger.error("Resend rejected feedback email: %s", e)
        raise FeedbackError("Failed to send feedback.") from e
    except OSError as e:
        logger.exception("Could not reach Resend")
        raise FeedbackError("An unexpected error occurred.") from e
    logger.info("Feedback sent to %s", config.FEEDBACK_EMAIL_TO)
