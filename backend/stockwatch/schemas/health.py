"""Health check schemas."""

from typing import Dict, Optional

from pydantic import BaseModel


class HealthCheckResponse(BaseModel):
    """Health check response schema."""

    status: str
    tracked_products: int
    scheduler: str
    poll_job: Optional[Dict[str, Optional[str]]] = None
