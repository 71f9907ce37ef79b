"""Transactional email delivery through the Resend HTTP API."""

from typing import List, Optional, Union

import httpx

from ...modules.common.exceptions import EmailDeliveryError
from ..logging import get_logger

logger = get_logger(__name__)


class ResendEmailSender:
    """Sends HTML email with the Resend ``POST /emails`` endpoint."""

    def __init__(
        self,
        api_key: str,
        from_address: str,
        api_url: str = "https://api.resend.com/emails",
        timeout: float = 15.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_url = api_url
        self.from_address = from_address
        self.client = httpx.AsyncClient(
            headers={"Authorization": f"Bearer {api_key}"},
            timeout=timeout,
            transport=transport,
        )

    async def send(self, to: Union[str, List[str]], subject: str, html: str) -> Optional[str]:
        """Send one email.

        Args:
            to: Recipient address or addresses
            subject: Subject line
            html: HTML body

        Returns:
            The provider's message id, when it returns one

        Raises:
            EmailDeliveryError: If the request fails or is rejected
        """
        recipients = [to] if isinstance(to, str) else list(to)
        payload = {"from": self.from_address, "to": recipients, "subject": subject, "html": html}

        try:
            response = await self.client.post(self.api_url, json=payload)
        except httpx.HTTPError as e:
            logger.error("Email request failed", extra={"error": str(e)})
            raise EmailDeliveryError("Failed to send email") from e

        if response.status_code >= 400:
            logger.error(
                "Email rejected by provider",
                extra={"status_code": response.status_code, "body": response.text[:500]},
            )
            raise EmailDeliveryError("Failed to send email")

        try:
            return response.json().get("id")
        except ValueError:
            return None

    async def aclose(self) -> None:
        await self.client.aclose()
