"""Script to move documents stuck in ``analysing`` to ``error``.

Run it periodically (cron, scheduled job) to recover documents whose
analysis run was killed before it could record a result.

Usage:
    python scripts/reconcile_documents.py [--older-than SECONDS]
"""

import argparse
import asyncio
import sys
from datetime import timedelta
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from src.infrastructure.config.settings import get_settings  # noqa: E402
from src.infrastructure.database.session import local_session  # noqa: E402
from src.infrastructure.logging import get_logger  # noqa: E402
from src.modules.document.services import DocumentService  # noqa: E402

logger = get_logger(__name__)


async def main(older_than_seconds: int) -> int:
    """Fail stale analysis runs and return how many were found."""
    service = DocumentService()
    async with local_session() as db:
        stale_ids = await service.fail_stale_analyses(db, timedelta(seconds=older_than_seconds))

    for document_id in stale_ids:
        logger.info("Marked stale document as error", extra={"document_id": str(document_id)})
    logger.info(f"Reconciliation finished, {len(stale_ids)} document(s) updated")
    return len(stale_ids)


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Fail documents stuck in the analysing state")
    parser.add_argument(
        "--older-than",
        type=int,
        default=get_settings().ANALYSIS_STALE_AFTER_SECONDS,
        help="Seconds a document may stay in analysing before it is failed",
    )
    args = parser.parse_args()

    try:
        asyncio.run(main(args.older_than))
    except Exception as e:
        logger.error(f"Reconciliation failed: {str(e)}", exc_info=True)
        sys.exit(1)
