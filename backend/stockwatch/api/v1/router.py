"""API v1 router -- aggregates all v1 endpoint routers."""

from fastapi import APIRouter

from stockwatch.api.v1 import health, products

api_v1_router = APIRouter()

api_v1_router.include_router(health.router, tags=["health"])
api_v1_router.include_router(products.router, tags=["products"])
