from datetime import datetime, timezone

from fastapi import APIRouter

from .. import __version__

router = APIRouter(tags=["health"])

@router.get("/health")
def health():
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "version": __version__,
    }
