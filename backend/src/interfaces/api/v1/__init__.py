from fastapi import APIRouter

from .clients import router as clients_router
from .documents import router as documents_router
from .share import router as share_router

router = APIRouter(prefix="/v1")
router.include_router(clients_router)
router.include_router(documents_router)
router.include_router(share_router)


@router.get(
    "/health",
    summary="API Health Check",
    description="Simple health check endpoint for monitoring and container orchestration.",
    responses={
        200: {"description": "API is healthy and responding"},
    },
)
async def health_check():
    """Health check endpoint for Docker health checks."""
    return {"status": "healthy", "message": "Client Analysis Portal API is running"}
