"""Health check endpoints."""

from fastapi import APIRouter

from cratedocs import __version__
from web.deps import Pool, Queue

router = APIRouter()


@router.get("/health")
async def health(queue: Queue, pool: Pool) -> dict[str, str | int]:
    """Health check endpoint.

    Returns:
        Health status with version and pending queue size.
    """
    return {
        "status": "ok",
        "version": __version__,
        "queued": await pool.run(queue.pending_count),
    }
