"""System API — health check and scheduler status."""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends

from tradevault.api.deps import get_current_user

router = APIRouter(prefix="/api/system", tags=["system"])


@router.get("/health")
def health_check():
    return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}


@router.get("/scheduler", dependencies=[Depends(get_current_user)])
def scheduler_status():
    """Current scheduler state with job details."""
    from tradevault.engine.scheduler import get_scheduler_status
    return get_scheduler_status()
