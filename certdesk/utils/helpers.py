"""
utils/helpers.py
Shared utility functions used across services.
"""
import uuid
import logging
from datetime import datetime, timezone

from certdesk.core.config import settings

# Configure module logger
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)

def get_logger(name: str) -> logging.Logger:
    """Return a named logger."""
    return logging.getLogger(name)


def generate_request_id() -> str:
    """Generate a unique request ID."""
    return str(uuid.uuid4())


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def to_title_case(text: str) -> str:
    """Normalize a display name: 'ana MARIA pop' -> 'Ana Maria Pop'."""
    return " ".join(word.capitalize() for word in text.split())


def format_signing_date(moment: datetime) -> str:
    """Date as printed on the certificate, e.g. '07 Mar 2026'."""
    return moment.strftime("%d %b %Y")
