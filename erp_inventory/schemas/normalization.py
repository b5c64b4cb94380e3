"""Package-to-base-unit normalization schemas"""

from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import date
from decimal import Decimal


class PackageConversionInput(BaseModel):
    """What the user provides: an item, the package they picked and a quantity in it"""
    item_id: int
    packaging_id: Optional[int] = Field(None, description="None = item's base package")
    input_qty: Decimal


class PackageConversionMetadata(BaseModel):
    input_package_name: str
    input_package_type: str
    base_package_name: str


class PackageConversionResult(BaseModel):
    normalized_qty: Decimal
    conversion_factor: Decimal
    input_qty: Decimal
    input_packaging_id: int
    base_package_id: int
    metadata: PackageConversionMetadata


class StockTransactionItemInput(BaseModel):
    item_id: int
    packaging_id: Optional[int] = None
    input_qty: Decimal
    unit_cost: Decimal = Field(default=Decimal("0"))
    notes: Optional[str] = None
    batch_no: Optional[str] = None
    serial_no: Optional[str] = None
    expiry_date: Optional[date] = None


class NormalizedStockTransactionItem(BaseModel):
    """Transaction line ready for the ledger, with full conversion metadata"""
    item_id: int
    input_qty: Decimal
    input_packaging_id: int
    conversion_factor: Decimal
    normalized_qty: Decimal
    base_package_id: int
    unit_cost: Decimal
    total_cost: Decimal
    notes: Optional[str] = None
    batch_no: Optional[str] = None
    serial_no: Optional[str] = None
    expiry_date: Optional[date] = None


class BatchNormalizationRequest(BaseModel):
    items: List[StockTransactionItemInput] = Field(..., min_length=1)


class DenormalizedQuantity(BaseModel):
    """Display-only view of a base quantity in package units"""
    package_qty: Decimal
    whole_packages: int
    remainder: Decimal


class StockAvailability(BaseModel):
    is_available: bool
    current_stock: Decimal
    shortfall: Decimal
