"""
Location Service
Default warehouse locations and per-location stock sub-balances
"""
from decimal import Decimal
from typing import Optional
from sqlalchemy.orm import Session
import logging

from erp_inventory.core.config import settings
from erp_inventory.core.exceptions import InsufficientStockError, ValidationFailure
from erp_inventory.models.warehouse import ItemLocation, WarehouseLocation
from erp_inventory.services.inventory.normalization import to_decimal
from erp_inventory.services.stores import StockStore

logger = logging.getLogger(__name__)


class LocationService:

    def __init__(self, db: Session):
        self.db = db
        self.stock = StockStore(db)

    def ensure_warehouse_default_location(self, company_id: int, warehouse_id: int,
                                          user_id: Optional[int] = None) -> int:
        """Return the id of the warehouse's default location, creating it on first use"""
        existing = self.stock.get_location_by_code(company_id, warehouse_id, settings.DEFAULT_LOCATION_CODE)
        if existing is not None:
            return existing.id

        location = self.stock.add(WarehouseLocation(
            company_id=company_id,
            warehouse_id=warehouse_id,
            code=settings.DEFAULT_LOCATION_CODE,
            name=settings.DEFAULT_LOCATION_NAME,
            location_type='bin',
            is_pickable=True,
            is_storable=True,
            is_active=True,
            created_by=user_id,
            updated_by=user_id,
        ), "create default warehouse location")
        logger.info(f"Created default location {location.code} for warehouse {warehouse_id}")
        return location.id

    def resolve_item_location_id(self, company_id: int, item_id: int, warehouse_id: int,
                                 location_id: Optional[int] = None,
                                 user_id: Optional[int] = None) -> int:
        """
        Pick the location a movement should hit: the explicit one, else the
        item's default in this warehouse, else the warehouse default (which is
        then remembered on the item-warehouse row).
        """
        if location_id:
            return location_id

        balance = self.stock.get_item_warehouse(item_id, warehouse_id)
        if balance is not None and balance.default_location_id:
            return balance.default_location_id

        default_location_id = self.ensure_warehouse_default_location(company_id, warehouse_id, user_id)

        if balance is not None:
            balance.default_location_id = default_location_id
            balance.updated_by = user_id
            self.stock.flush("set item default location")

        return default_location_id

    def adjust_item_location(self, company_id: int, item_id: int, warehouse_id: int,
                             location_id: Optional[int] = None, user_id: Optional[int] = None,
                             qty_on_hand_delta=Decimal("0"),
                             qty_reserved_delta=Decimal("0")) -> int:
        """Apply signed deltas to an item's sub-balance at one location"""
        resolved_location_id = self.resolve_item_location_id(
            company_id, item_id, warehouse_id, location_id, user_id
        )

        on_hand_delta = to_decimal(qty_on_hand_delta)
        reserved_delta = to_decimal(qty_reserved_delta)
        if on_hand_delta == 0 and reserved_delta == 0:
            return resolved_location_id

        existing = self.stock.get_item_location(item_id, warehouse_id, resolved_location_id, for_update=True)
        current_on_hand = to_decimal(existing.qty_on_hand or 0) if existing else Decimal("0")
        current_reserved = to_decimal(existing.qty_reserved or 0) if existing else Decimal("0")
        next_on_hand = current_on_hand + on_hand_delta
        next_reserved = current_reserved + reserved_delta

        if next_on_hand < 0:
            raise InsufficientStockError(
                "Insufficient on-hand quantity at the selected location.",
                items=[{
                    'item_id': item_id,
                    'location_id': resolved_location_id,
                    'required': str(-on_hand_delta),
                    'available': str(current_on_hand),
                }],
            )

        if next_reserved < 0 or next_reserved > next_on_hand:
            raise ValidationFailure(
                "Invalid reserved quantity for the selected location.",
                code="INVALID_RESERVATION",
                details={'item_id': item_id, 'location_id': resolved_location_id},
            )

        if existing is not None:
            existing.qty_on_hand = next_on_hand
            existing.qty_reserved = next_reserved
            existing.updated_by = user_id
            self.stock.flush("update item location")
        else:
            self.stock.add(ItemLocation(
                company_id=company_id,
                item_id=item_id,
                warehouse_id=warehouse_id,
                location_id=resolved_location_id,
                qty_on_hand=next_on_hand,
                qty_reserved=next_reserved,
                created_by=user_id,
                updated_by=user_id,
            ), "create item location")

        return resolved_location_id
