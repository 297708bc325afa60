"""Product tracking endpoints."""

from typing import List

from fastapi import APIRouter, Depends
from fastapi.responses import PlainTextResponse

from stockwatch.dependencies import get_store, get_tracking_service
from stockwatch.schemas import ApiResponse, ListMeta, ResolveRequest, TrackedProductResponse
from stockwatch.services.export_service import export_csv
from stockwatch.services.store import Store
from stockwatch.services.tracking_service import TrackingService

router = APIRouter()


@router.post("/resolve-add", response_model=ApiResponse[List[TrackedProductResponse]])
async def resolve_add(
    request: ResolveRequest,
    tracking: TrackingService = Depends(get_tracking_service),
):
    """Resolve inputs and start tracking them.

    Results follow input order; inputs that could not be resolved are
    omitted rather than reported.
    """
    records = await tracking.track_many(request.inputs)
    return ApiResponse(data=records, meta=ListMeta(total=len(records)))


@router.get("/products", response_model=ApiResponse[List[TrackedProductResponse]])
async def list_products(store: Store = Depends(get_store)):
    """Return every tracked product."""
    records = store.records()
    return ApiResponse(data=records, meta=ListMeta(total=len(records)))


@router.get("/products/export.csv", response_class=PlainTextResponse)
async def export_products(store: Store = Depends(get_store)):
    """Tracked products as CSV, one row per variant."""
    return PlainTextResponse(
        export_csv(store.records()),
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="products.csv"'},
    )
