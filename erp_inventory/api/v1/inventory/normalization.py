"""Quantity Normalization API endpoints"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List
from decimal import Decimal

from erp_inventory.api import deps
from erp_inventory.schemas.normalization import (
    PackageConversionInput, PackageConversionResult, BatchNormalizationRequest,
    NormalizedStockTransactionItem, DenormalizedQuantity
)
from erp_inventory.services.inventory.normalization import NormalizationService, denormalize_quantity

router = APIRouter()


@router.post("/normalize", response_model=PackageConversionResult)
async def normalize_quantity(
    conversion: PackageConversionInput,
    db: Session = Depends(deps.get_db),
    company_id: int = Depends(deps.get_company_id),
):
    """
    Convert a quantity entered in one of the item's packages into base units.

    Omitting packaging_id means the quantity is already in the base package.
    """
    service = NormalizationService(db)
    return service.normalize(company_id, conversion)


@router.post("/normalize/batch", response_model=List[NormalizedStockTransactionItem])
async def normalize_batch(
    request: BatchNormalizationRequest,
    db: Session = Depends(deps.get_db),
    company_id: int = Depends(deps.get_company_id),
):
    """Normalize transaction lines. The whole batch fails on the first bad line."""
    service = NormalizationService(db)
    return service.normalize_batch(company_id, request.items)


@router.get("/denormalize", response_model=DenormalizedQuantity)
async def denormalize(
    base_qty: Decimal = Query(..., description="Quantity in base units"),
    conversion_factor: Decimal = Query(..., description="Base units per package"),
):
    """Display helper: whole packages plus base-unit remainder."""
    return denormalize_quantity(base_qty, conversion_factor)
