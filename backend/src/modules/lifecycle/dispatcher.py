"""Hand-off of new uploads to the lifecycle controller.

Delivery is at-most-once. In ``background`` mode the run executes in this
process after the response is sent; if the process dies the run is lost and
the document stays in ``uploading`` or ``analysing`` until it is triggered
again or swept. In ``http`` mode the trigger endpoint is called once and a
failed call is logged, not retried.

The in-process dedupe entry is cleared when the run finishes. Starlette skips
background tasks when sending the response fails, so an entry older than
``stale_after`` seconds is treated as a lost hand-off and no longer blocks a
new dispatch.
"""

import time
import uuid
from typing import Optional

import httpx
from fastapi import BackgroundTasks

from ...infrastructure.logging import get_logger
from ..common.exceptions import AnalysisInProgressError, DocumentNotFoundError
from .controller import DocumentLifecycleController

logger = get_logger(__name__)

DISPATCH_MODES = ("background", "http")


class AnalysisDispatcher:
    """Submits lifecycle runs for new documents.

    Args:
        controller: Controller used for in-process runs
        mode: ``background`` or ``http``
        base_url: Base URL the API is served under, for ``http`` mode
        api_prefix: Path prefix of the versioned API
        trigger_token: Shared secret sent as ``X-Trigger-Token``
        timeout: Seconds to wait for the trigger endpoint to accept the request
        stale_after: Seconds after which an unfinished hand-off stops counting as in flight
        transport: Optional httpx transport, for tests
    """

    def __init__(
        self,
        controller: DocumentLifecycleController,
        mode: str = "background",
        base_url: str = "",
        api_prefix: str = "/api/v1",
        trigger_token: str = "",
        timeout: float = 5.0,
        stale_after: float = 600.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        if mode not in DISPATCH_MODES:
            raise ValueError(f"Unknown dispatch mode: {mode}. Available: {', '.join(DISPATCH_MODES)}")
        self.controller = controller
        self.mode = mode
        self.trigger_base = f"{base_url.rstrip('/')}{api_prefix}"
        self.trigger_token = trigger_token
        self.timeout = timeout
        self.stale_after = stale_after
        self.transport = transport
        self._in_flight: dict[uuid.UUID, float] = {}

    def is_in_flight(self, document_id: uuid.UUID) -> bool:
        dispatched_at = self._in_flight.get(document_id)
        if dispatched_at is None:
            return False
        if time.monotonic() - dispatched_at >= self.stale_after:
            logger.warning("Dropping stale in-flight entry", extra={"document_id": str(document_id)})
            self._in_flight.pop(document_id, None)
            return False
        return True

    def dispatch(self, document_id: uuid.UUID, user_id: str, background_tasks: BackgroundTasks) -> bool:
        """Schedule one analysis run of a document.

        Returns:
            False if a run for this document is already scheduled in this process
        """
        if self.is_in_flight(document_id):
            logger.info("Analysis already in flight, not dispatching", extra={"document_id": str(document_id)})
            return False

        self._in_flight[document_id] = time.monotonic()
        if self.mode == "http":
            background_tasks.add_task(self.trigger_remote, document_id, user_id)
        else:
            background_tasks.add_task(self.run_local, document_id)
        return True

    async def run_local(self, document_id: uuid.UUID) -> None:
        try:
            result = await self.controller.run(document_id)
            logger.info(
                "Background analysis finished",
                extra={"document_id": str(document_id), "status": result.status.value},
            )
        except (AnalysisInProgressError, DocumentNotFoundError) as e:
            logger.info("Background analysis skipped", extra={"document_id": str(document_id), "reason": e.code})
        except Exception:
            logger.exception("Background analysis crashed", extra={"document_id": str(document_id)})
        finally:
            self._in_flight.pop(document_id, None)

    async def trigger_remote(self, document_id: uuid.UUID, user_id: str) -> None:
        """POST to the trigger endpoint and return once it has been accepted."""
        url = f"{self.trigger_base}/documents/{document_id}/analyse"
        headers = {"X-User-Id": user_id}
        if self.trigger_token:
            headers["X-Trigger-Token"] = self.trigger_token

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(url, headers=headers)
            if response.status_code >= 400:
                logger.warning(
                    "Analysis trigger returned an error",
                    extra={"document_id": str(document_id), "status_code": response.status_code},
                )
        except httpx.ReadTimeout:
            # the endpoint accepted the request and keeps running
            logger.info("Analysis trigger still running remotely", extra={"document_id": str(document_id)})
        except httpx.HTTPError as e:
            logger.error(
                "Could not trigger analysis", extra={"document_id": str(document_id), "error": str(e)}
            )
        finally:
            self._in_flight.pop(document_id, None)
