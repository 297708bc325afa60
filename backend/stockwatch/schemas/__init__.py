"""Pydantic schemas for the stockwatch API."""

from stockwatch.schemas.common import ApiResponse, ListMeta
from stockwatch.schemas.health import HealthCheckResponse
from stockwatch.schemas.product import ResolveRequest, TrackedProductResponse

__all__ = [
    "ApiResponse",
    "ListMeta",
    "HealthCheckResponse",
    "ResolveRequest",
    "TrackedProductResponse",
]
