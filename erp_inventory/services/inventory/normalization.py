"""
Inventory Normalization Service
Converts quantities entered in any package of an item into the item's base
storage unit. All stock bookkeeping happens in base units; the package a
user picked is kept only as conversion metadata for the audit trail.
"""
from decimal import Decimal, ROUND_FLOOR
from typing import List, Union
from sqlalchemy.orm import Session
import logging

from erp_inventory.core.exceptions import (
    ItemNotFound, InvalidPackage, InvalidConversionFactor, InvalidQuantity,
    MissingUnitOfMeasure
)
from erp_inventory.schemas.normalization import (
    PackageConversionInput, PackageConversionResult, PackageConversionMetadata,
    StockTransactionItemInput, NormalizedStockTransactionItem, DenormalizedQuantity,
    StockAvailability
)
from erp_inventory.services.stores import CatalogStore, StockStore

logger = logging.getLogger(__name__)

Number = Union[Decimal, int, float, str]


def to_decimal(value: Number) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def validate_conversion_factor(conversion_factor: Number) -> Decimal:
    factor = to_decimal(conversion_factor)
    if not factor.is_finite() or factor <= 0:
        raise InvalidConversionFactor(
            f"Invalid conversion factor: {conversion_factor}. Must be a positive number.",
            details={'conversion_factor': str(conversion_factor)},
        )
    return factor


def validate_quantity(quantity: Number) -> Decimal:
    qty = to_decimal(quantity)
    if not qty.is_finite() or qty < 0:
        raise InvalidQuantity(
            f"Invalid input quantity: {quantity}. Must be a non-negative number.",
            details={'input_qty': str(quantity)},
        )
    return qty


def convert_quantity(input_qty: Number, conversion_factor: Number) -> Decimal:
    """
    Multiply a package quantity into base units.

    The factor is checked first, so a bad factor is reported whatever the
    quantity. No rounding is applied.
    """
    factor = validate_conversion_factor(conversion_factor)
    qty = validate_quantity(input_qty)
    return qty * factor


def denormalize_quantity(base_qty: Number, conversion_factor: Number) -> DenormalizedQuantity:
    """
    Express a base quantity in package units for display.

    Returns the package-equivalent quantity, the number of whole packages
    and the base-unit remainder. Never feed the result back into stock.
    """
    factor = validate_conversion_factor(conversion_factor)
    base = to_decimal(base_qty)

    package_qty = base / factor
    whole_packages = package_qty.to_integral_value(rounding=ROUND_FLOOR)
    remainder = base - whole_packages * factor

    return DenormalizedQuantity(
        package_qty=package_qty,
        whole_packages=int(whole_packages),
        remainder=remainder,
    )


class NormalizationService:
    """
    Package-to-base-unit quantity normalizer

    Read-only: looks up the item catalog and computes, never writes.
    """

    def __init__(self, db: Session):
        self.db = db
        self.catalog = CatalogStore(db)
        self.stock = StockStore(db)

    def normalize(self, company_id: int, conversion: PackageConversionInput) -> PackageConversionResult:
        """
        Normalize a quantity from the selected package to base units

        Resolution:
        1. Item must belong to the company, be active and set up
        2. Item must have a base package
        3. Selected package (or the base package when none is given) supplies the factor
        4. normalized_qty = input_qty x conversion_factor
        """
        item = self.catalog.get_item(conversion.item_id, company_id)
        if item is None or not item.is_active or not item.setup_complete:
            raise ItemNotFound(conversion.item_id)

        base_package = self.catalog.get_base_package(item)
        if base_package is None:
            raise MissingUnitOfMeasure(item.id)

        if conversion.packaging_id is None or conversion.packaging_id == base_package.id:
            package = base_package
            conversion_factor = Decimal("1")
        else:
            package = self.catalog.get_package(conversion.packaging_id)
            if package is None or package.item_id != item.id or not package.is_active:
                raise InvalidPackage(
                    f"Package {conversion.packaging_id} is not an active package of item {item.id}",
                    details={'item_id': item.id, 'packaging_id': conversion.packaging_id},
                )
            conversion_factor = package.qty_per_pack

        normalized_qty = convert_quantity(conversion.input_qty, conversion_factor)

        return PackageConversionResult(
            normalized_qty=normalized_qty,
            conversion_factor=to_decimal(conversion_factor),
            input_qty=conversion.input_qty,
            input_packaging_id=package.id,
            base_package_id=base_package.id,
            metadata=PackageConversionMetadata(
                input_package_name=package.pack_name,
                input_package_type=package.pack_type,
                base_package_name=base_package.pack_name,
            ),
        )

    def normalize_batch(self, company_id: int,
                        items: List[StockTransactionItemInput]) -> List[NormalizedStockTransactionItem]:
        """
        Normalize transaction lines in order.

        All-or-nothing: the first failing line raises and no result is returned.
        """
        normalized_items = []

        for line in items:
            conversion = self.normalize(company_id, PackageConversionInput(
                item_id=line.item_id,
                packaging_id=line.packaging_id,
                input_qty=line.input_qty,
            ))

            normalized_items.append(NormalizedStockTransactionItem(
                item_id=line.item_id,
                input_qty=line.input_qty,
                input_packaging_id=conversion.input_packaging_id,
                conversion_factor=conversion.conversion_factor,
                normalized_qty=conversion.normalized_qty,
                base_package_id=conversion.base_package_id,
                unit_cost=line.unit_cost,
                total_cost=conversion.normalized_qty * line.unit_cost,
                notes=line.notes,
                batch_no=line.batch_no,
                serial_no=line.serial_no,
                expiry_date=line.expiry_date,
            ))

        logger.debug(f"Normalized {len(normalized_items)} transaction line(s) for company {company_id}")
        return normalized_items

    def check_stock_availability(self, item_id: int, warehouse_id: int,
                                 required_qty: Number) -> StockAvailability:
        """Compare on-hand stock (base units) against a required base quantity"""
        balance = self.stock.get_item_warehouse(item_id, warehouse_id)
        current_stock = to_decimal(balance.current_stock) if balance else Decimal("0")
        required = to_decimal(required_qty)

        is_available = current_stock >= required
        return StockAvailability(
            is_available=is_available,
            current_stock=current_stock,
            shortfall=Decimal("0") if is_available else required - current_stock,
        )


def normalize_line(service: NormalizationService, company_id: int, item_id: int,
                   quantity: Number, packaging_id=None) -> PackageConversionResult:
    """Normalize one order line quantity, keeping the conversion for the ledger audit fields"""
    return service.normalize(company_id, PackageConversionInput(
        item_id=item_id,
        packaging_id=packaging_id,
        input_qty=to_decimal(quantity),
    ))
