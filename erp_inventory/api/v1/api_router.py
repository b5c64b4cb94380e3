"""
Main API Router - Consolidates inventory routes
"""

from fastapi import APIRouter
from erp_inventory.api.v1 import inventory
from erp_inventory.schemas.common import ErrorResponse

api_router = APIRouter()

# Domain errors share one payload shape, see main.inventory_exception_handler
error_responses = {
    404: {"model": ErrorResponse},
    409: {"model": ErrorResponse},
    422: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
}

# Quantity normalization routes
api_router.include_router(inventory.normalization.router, prefix="/inventory",
                          tags=["inventory-normalization"], responses=error_responses)

# Transformation order routes
api_router.include_router(inventory.transformations.router, prefix="/transformations",
                          tags=["transformations"], responses=error_responses)
