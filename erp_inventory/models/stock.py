"""
ERP Inventory Stock Ledger Models
Append-only stock transaction headers and line items
"""
import enum
from sqlalchemy import (
    Column, String, Integer, Numeric, DateTime, Date, Time, Text,
    ForeignKey, CheckConstraint, Index
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from erp_inventory.core.database import Base


class TransactionType(str, enum.Enum):
    IN = "in"
    OUT = "out"


class TransactionPurpose(str, enum.Enum):
    """Why a movement was posted; waste rows are cost-only and never touch real stock"""
    CONSUMPTION = "consumption"
    PRODUCTION = "production"
    WASTE = "waste"


class StockTransaction(Base):
    """
    Stock Transaction - header of a single inventory movement
    """
    __tablename__ = "stock_transactions"

    id = Column(Integer, primary_key=True, autoincrement=True, doc="Transaction ID")
    company_id = Column(Integer, nullable=False)
    transaction_code = Column(String(60), unique=True, nullable=False, doc="Transaction code")

    transaction_type = Column(String(10), nullable=False, doc="in / out")
    purpose = Column(String(20), nullable=False, doc="consumption / production / waste")
    transaction_date = Column(Date, nullable=False, doc="Transaction date")

    warehouse_id = Column(Integer, ForeignKey("warehouses.id", ondelete="RESTRICT"), nullable=False)
    from_location_id = Column(Integer, ForeignKey("warehouse_locations.id"), doc="Source location")
    to_location_id = Column(Integer, ForeignKey("warehouse_locations.id"), doc="Destination location")

    # Document References
    reference_type = Column(String(30), doc="Source document type")
    reference_id = Column(Integer, doc="Source document ID")
    reference_code = Column(String(30), doc="Source document code")

    status = Column(String(10), nullable=False, default='posted')
    notes = Column(Text)

    created_by = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.current_timestamp())

    items = relationship("StockTransactionItem", back_populates="transaction")

    __table_args__ = (
        CheckConstraint("transaction_type IN ('in', 'out')", name='valid_type'),
        CheckConstraint("purpose IN ('consumption', 'production', 'waste')", name='valid_purpose'),
        Index('idx_stock_transactions_reference', 'reference_type', 'reference_id'),
    )


class StockTransactionItem(Base):
    """
    Stock Transaction Item - quantity, cost and before/after snapshot
    """
    __tablename__ = "stock_transaction_items"

    id = Column(Integer, primary_key=True, autoincrement=True)
    company_id = Column(Integer, nullable=False)
    transaction_id = Column(Integer, ForeignKey("stock_transactions.id", ondelete="CASCADE"), nullable=False)
    item_id = Column(Integer, ForeignKey("items.id", ondelete="RESTRICT"), nullable=False)
    package_id = Column(Integer, doc="Base package the quantity is expressed in")

    # Conversion audit: the quantity as entered and how it became `quantity`
    input_qty = Column(Numeric(20, 4), doc="Quantity as entered, in the selected package")
    input_packaging_id = Column(Integer, doc="Package the quantity was entered in")
    conversion_factor = Column(Numeric(20, 4), doc="Base units per selected package")
    normalized_qty = Column(Numeric(20, 4), doc="input_qty x conversion_factor")
    base_package_id = Column(Integer, doc="Item base package at posting time")

    quantity = Column(Numeric(20, 4), nullable=False, doc="Quantity in base units")
    unit_cost = Column(Numeric(20, 4), default=0)
    total_cost = Column(Numeric(20, 4), default=0)

    # Snapshot
    qty_before = Column(Numeric(20, 4), default=0)
    qty_after = Column(Numeric(20, 4), default=0)
    valuation_rate = Column(Numeric(20, 4), default=0)
    stock_value_before = Column(Numeric(20, 4), default=0)
    stock_value_after = Column(Numeric(20, 4), default=0)

    posting_date = Column(Date, nullable=False)
    posting_time = Column(Time, nullable=False)

    created_by = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.current_timestamp())

    transaction = relationship("StockTransaction", back_populates="items")
