from ..infrastructure.app_factory import create_application
from ..infrastructure.config.settings import get_settings
from ..interfaces.api import router as api_router

settings = get_settings()

app = create_application(
    router=api_router,
    settings=settings,
    summary="Client onboarding document analysis",
    description="""
    # Client Analysis Portal API

    Agencies upload client onboarding forms and receive a structured review
    of every answer plus an executive summary.

    * **Upload**: PDF and DOCX intake forms, grouped by client
    * **Analysis**: question and answer extraction, rewrites, recommendations
      and clarification flags, versioned per document
    * **Sharing**: public report links and share-by-email

    ## Identity

    Owner-scoped endpoints expect the `X-User-Id` (and optionally
    `X-User-Email`) headers set by the upstream identity proxy.
    """,
)
