"""
ERP Inventory Warehouse Models
Warehouses, storage locations and per-warehouse / per-location balances
"""
from decimal import Decimal
from sqlalchemy import (
    Column, String, Integer, Numeric, DateTime, Boolean,
    ForeignKey, UniqueConstraint
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from erp_inventory.core.database import Base


class Warehouse(Base):
    """Warehouse master"""
    __tablename__ = "warehouses"

    id = Column(Integer, primary_key=True, autoincrement=True, doc="Warehouse ID")
    company_id = Column(Integer, nullable=False, doc="Owning company")
    warehouse_code = Column(String(10), nullable=False, doc="Warehouse code")
    warehouse_name = Column(String(50), nullable=False, doc="Warehouse name")
    is_active = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.current_timestamp())

    locations = relationship("WarehouseLocation", back_populates="warehouse")

    __table_args__ = (
        UniqueConstraint('company_id', 'warehouse_code', name='uq_warehouses_company_code'),
    )


class WarehouseLocation(Base):
    """
    Warehouse Location - bin/zone within a warehouse
    """
    __tablename__ = "warehouse_locations"

    id = Column(Integer, primary_key=True, autoincrement=True, doc="Location ID")
    company_id = Column(Integer, nullable=False)
    warehouse_id = Column(Integer, ForeignKey("warehouses.id", ondelete="CASCADE"), nullable=False)

    code = Column(String(20), nullable=False, doc="Location code")
    name = Column(String(50), nullable=False, doc="Location name")
    location_type = Column(String(20), default='bin', doc="Location type")

    is_pickable = Column(Boolean, default=True, nullable=False)
    is_storable = Column(Boolean, default=True, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)

    created_by = Column(Integer, doc="Created by user")
    updated_by = Column(Integer, doc="Updated by user")
    created_at = Column(DateTime(timezone=True), server_default=func.current_timestamp())
    updated_at = Column(DateTime(timezone=True), server_default=func.current_timestamp(), onupdate=func.current_timestamp())

    warehouse = relationship("Warehouse", back_populates="locations")

    __table_args__ = (
        UniqueConstraint('warehouse_id', 'code', name='uq_warehouse_locations_code'),
    )


class ItemWarehouse(Base):
    """
    Item Warehouse - stock balance per item per warehouse, in base units
    """
    __tablename__ = "item_warehouse"

    id = Column(Integer, primary_key=True, autoincrement=True)
    company_id = Column(Integer, nullable=False)
    item_id = Column(Integer, ForeignKey("items.id", ondelete="RESTRICT"), nullable=False)
    warehouse_id = Column(Integer, ForeignKey("warehouses.id", ondelete="RESTRICT"), nullable=False)

    current_stock = Column(Numeric(20, 4), nullable=False, default=0, doc="Quantity on hand")
    reserved_stock = Column(Numeric(20, 4), nullable=False, default=0, doc="Quantity reserved")
    default_location_id = Column(Integer, ForeignKey("warehouse_locations.id", ondelete="SET NULL"), doc="Default storage location")

    created_by = Column(Integer)
    updated_by = Column(Integer)
    created_at = Column(DateTime(timezone=True), server_default=func.current_timestamp())
    updated_at = Column(DateTime(timezone=True), server_default=func.current_timestamp(), onupdate=func.current_timestamp())

    item = relationship("Item")

    __table_args__ = (
        UniqueConstraint('item_id', 'warehouse_id', name='uq_item_warehouse_item_warehouse'),
    )

    @property
    def available_stock(self) -> Decimal:
        return Decimal(str(self.current_stock or 0)) - Decimal(str(self.reserved_stock or 0))


class ItemLocation(Base):
    """
    Item Location - per-location sub-balance of an item within a warehouse
    """
    __tablename__ = "item_location"

    id = Column(Integer, primary_key=True, autoincrement=True)
    company_id = Column(Integer, nullable=False)
    item_id = Column(Integer, ForeignKey("items.id", ondelete="RESTRICT"), nullable=False)
    warehouse_id = Column(Integer, ForeignKey("warehouses.id", ondelete="RESTRICT"), nullable=False)
    location_id = Column(Integer, ForeignKey("warehouse_locations.id", ondelete="RESTRICT"), nullable=False)

    qty_on_hand = Column(Numeric(20, 4), nullable=False, default=0)
    qty_reserved = Column(Numeric(20, 4), nullable=False, default=0)

    created_by = Column(Integer)
    updated_by = Column(Integer)
    created_at = Column(DateTime(timezone=True), server_default=func.current_timestamp())
    updated_at = Column(DateTime(timezone=True), server_default=func.current_timestamp(), onupdate=func.current_timestamp())

    __table_args__ = (
        UniqueConstraint('item_id', 'warehouse_id', 'location_id', name='uq_item_location_item_location'),
    )
