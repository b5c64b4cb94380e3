"""
ERP Inventory Item Models
SQLAlchemy models for items and their package (unit-of-measure) variants
"""
from sqlalchemy import (
    Column, String, Integer, Numeric, DateTime, Boolean,
    ForeignKey, Index, UniqueConstraint
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from erp_inventory.core.database import Base


class Item(Base):
    """
    Item - stock-keeping unit

    All stock quantities for an item are stored in the unit of its base
    package (package_id).
    """
    __tablename__ = "items"

    id = Column(Integer, primary_key=True, autoincrement=True, doc="Item ID")
    company_id = Column(Integer, nullable=False, doc="Owning company")

    # Identity
    item_code = Column(String(30), nullable=False, doc="Item code")
    item_name = Column(String(100), nullable=False, doc="Item name")
    item_type = Column(String(20), default='raw_material', doc="raw_material, finished_good, asset, service")

    # Base storage package (item_packaging.id). Kept as a plain column to
    # avoid a circular foreign key with item_packaging.item_id.
    package_id = Column(Integer, nullable=True, doc="Base storage package")

    # Costing
    standard_cost = Column(Numeric(20, 4), default=0, doc="Standard unit cost per base unit")
    list_price = Column(Numeric(20, 4), default=0, doc="List price")

    # Status
    is_active = Column(Boolean, default=True, nullable=False, doc="Active flag")
    setup_complete = Column(Boolean, default=True, nullable=False, doc="Ready for transactions")

    # Audit Trail
    created_at = Column(DateTime(timezone=True), server_default=func.current_timestamp())
    updated_at = Column(DateTime(timezone=True), server_default=func.current_timestamp(), onupdate=func.current_timestamp())

    packages = relationship("ItemPackage", back_populates="item", cascade="all, delete-orphan")

    __table_args__ = (
        UniqueConstraint('company_id', 'item_code', name='uq_items_company_code'),
        Index('idx_items_company', 'company_id'),
    )

    def __repr__(self):
        return f"<Item {self.item_code}>"


class ItemPackage(Base):
    """
    Item Package - named multiplier over an item's base unit (e.g. box of 24)
    """
    __tablename__ = "item_packaging"

    id = Column(Integer, primary_key=True, autoincrement=True, doc="Package ID")
    company_id = Column(Integer, nullable=False, doc="Owning company")
    item_id = Column(Integer, ForeignKey("items.id", ondelete="CASCADE"), nullable=False, doc="Owning item")

    pack_type = Column(String(20), nullable=False, default='base', doc="base, box, carton, bag...")
    pack_name = Column(String(60), nullable=False, doc="Display name")
    qty_per_pack = Column(Numeric(20, 4), nullable=False, default=1, doc="Base units per one package unit")
    barcode = Column(String(30), doc="Package barcode")

    is_base = Column(Boolean, default=False, nullable=False, doc="Base storage package flag")
    is_active = Column(Boolean, default=True, nullable=False, doc="Active flag")

    created_at = Column(DateTime(timezone=True), server_default=func.current_timestamp())
    updated_at = Column(DateTime(timezone=True), server_default=func.current_timestamp(), onupdate=func.current_timestamp())

    item = relationship("Item", back_populates="packages")

    __table_args__ = (
        Index('idx_item_packaging_item', 'item_id'),
    )

    def __repr__(self):
        return f"<ItemPackage {self.pack_name} x{self.qty_per_pack}>"
