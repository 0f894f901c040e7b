"""Top-level API router."""

from fastapi import APIRouter

from demand_matrix.api.routes.health import router as health_router
from demand_matrix.api.routes.matrix import router as matrix_router

api_router = APIRouter()
api_router.include_router(health_router, tags=["health"])
api_router.include_router(matrix_router)
