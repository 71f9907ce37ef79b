"""Outbound notifications about analysed documents."""

from typing import Optional

from ...infrastructure.email import ResendEmailSender
from ...infrastructure.logging import get_logger
from ..analysis.summary import clean_summary, first_paragraph
from ..common.exceptions import DomainError
from .templates import render_completion_email, render_share_email

logger = get_logger(__name__)

PENDING_SUMMARY = "Analysis is still pending."


class NotificationService:
    """Builds and sends the portal's emails.

    Args:
        sender: Email sender used for delivery
        app_url: Public base URL of the portal, used for report links
        app_name: Product name shown in email headers and subjects
    """

    def __init__(self, sender: ResendEmailSender, app_url: str, app_name: str = "Client Analysis Portal"):
        self.sender = sender
        self.app_url = app_url.rstrip("/")
        self.app_name = app_name

    def document_link(self, document_id) -> str:
        return f"{self.app_url}/documents/{document_id}"

    def share_link(self, share_token: str) -> str:
        return f"{self.app_url}/shared/{share_token}"

    async def notify_analysis_complete(
        self, to: Optional[str], document_id, client_name: Optional[str], summary: str
    ) -> bool:
        """Send the completion email to the document owner.

        Never raises: a failed or skipped notification is logged and
        reported through the return value only.

        Returns:
            True if the email was accepted by the provider
        """
        if not to:
            logger.info("No owner email on document, skipping completion email")
            return False

        name = client_name or "your client"
        html = render_completion_email(self.app_name, name, first_paragraph(summary), self.document_link(document_id))
        try:
            await self.sender.send(to=to, subject=f"Analysis Complete: {name}", html=html)
        except DomainError as e:
            logger.warning("Could not send completion email", extra={"error": str(e)})
            return False
        except Exception as e:
            logger.warning("Completion email failed unexpectedly", extra={"error_type": type(e).__name__})
            return False

        logger.info("Completion email sent")
        return True

    async def send_share_email(
        self, to: str, share_token: str, client_name: Optional[str], summary: Optional[str]
    ) -> Optional[str]:
        """Email a report link and its summary to a recipient.

        Raises:
            EmailDeliveryError: If the provider rejects the email
        """
        name = client_name or "Unknown Client"
        body = clean_summary(summary) if summary else PENDING_SUMMARY
        html = render_share_email(self.app_name, name, body, self.share_link(share_token))
        return await self.sender.send(to=to, subject=f"Analysis Report: {name}", html=html)
