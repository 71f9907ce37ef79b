"""Outbound transactional email."""

from functools import lru_cache

from ..config.settings import get_settings
from .sender import ResendEmailSender


@lru_cache
def get_email_sender() -> ResendEmailSender:
    """Get the process-wide email sender."""
    settings = get_settings()
    return ResendEmailSender(
        api_key=settings.RESEND_API_KEY,
        from_address=settings.EMAIL_FROM,
        api_url=settings.RESEND_API_URL,
        timeout=settings.EMAIL_TIMEOUT_SECONDS,
    )


__all__ = ["ResendEmailSender", "get_email_sender"]
