"""Health check endpoint."""

from typing import Optional

from fastapi import APIRouter, Depends

from stockwatch.dependencies import get_scheduler, get_store
from stockwatch.scheduler import PollScheduler
from stockwatch.schemas import HealthCheckResponse
from stockwatch.services.store import Store

router = APIRouter()


@router.get("/health", response_model=HealthCheckResponse)
async def health_check(
    store: Store = Depends(get_store),
    scheduler: Optional[PollScheduler] = Depends(get_scheduler),
):
    """Report store size and poll scheduler state."""
    if scheduler is None:
        scheduler_status = "disabled"
        poll_job = None
    else:
        scheduler_status = "running" if scheduler.is_running() else "stopped"
        poll_job = scheduler.get_job_status() or None

    overall_status = "ok" if scheduler_status != "stopped" else "degraded"

    return HealthCheckResponse(
        status=overall_status,
        tracked_products=len(store),
        scheduler=scheduler_status,
        poll_job=poll_job,
    )
