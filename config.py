"""
Runtime configuration for Chain Doctor.
Values come from the environment, with .env.local loaded first for local dev.
"""

import os

from dotenv import load_dotenv

load_dotenv(".env.local")


def _env_float(name: str, default: float) -> float:
    try:
        value = float(os.environ.get(name, default))
    except ValueError:
        return default
    return value if value > 0 else default


def _env_int(name: str, default: int) -> int:
    try:
        value = int(os.environ.get(name, default))
    except ValueError:
        return default
    return value if value > 0 else default


def _env_flag(name: str) -> bool:
    return os.environ.get(name, "").lower() in ("1", "true", "yes")


# Probing
PROBE_TIMEOUT_SECONDS = _env_float("PROBE_TIMEOUT_SECONDS", 5.0)
INSECURE_SSL = _env_flag("INSECURE_SSL")

# Measurement defaults
CUPS_INTERVAL_SECONDS = _env_float("CUPS_INTERVAL_SECONDS", 5.0)
EFFECTIVE_RPS_REQUESTS = _env_int("EFFECTIVE_RPS_REQUESTS", 20)
BURST_BATCH_SIZE = _env_int("BURST_BATCH_SIZE", 20)

# API server
ALLOWED_ORIGINS = [o.strip() for o in os.environ.get("ALLOWED_ORIGINS", "*").split(",") if o.strip()]
ALLOW_PRIVATE_RPC = _env_flag("ALLOW_PRIVATE_RPC")

# Failure report email
GMAIL_USER = os.environ.get("GMAIL_USER")
GMAIL_APP_PASSWORD = os.environ.get("GMAIL_APP_PASSWORD")
EMAIL_TO = os.environ.get("EMAIL_TO")

# Feedback email (Resend)
RESEND_API_KEY = os.environ.get("RESEND_API_KEY")
FEEDBACK_EMAIL_TO = os.environ.get("FEEDBACK_EMAIL_TO")

# Troubleshooting suggestions
OPENAI_API_KEY = os.environ.get("OPENAI_API_KEY")
OPENAI_MODEL = os.environ.get("OPENAI_MODEL", "gpt-4o-mini")

LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()
