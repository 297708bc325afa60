"""FastAPI dependency providers.

Long-lived services are created in the application lifespan and kept on
``app.state``; these providers hand them to request handlers.
"""

from typing import Optional

from fastapi import Request

from stockwatch.scheduler import PollScheduler
from stockwatch.services.store import Store
from stockwatch.services.tracking_service import TrackingService


def get_store(request: Request) -> Store:
    return request.app.state.store


def get_tracking_service(request: Request) -> TrackingService:
    return request.app.state.tracking


def get_scheduler(request: Request) -> Optional[PollScheduler]:
    return getattr(request.app.state, "scheduler", None)
