"""
ERP Inventory Transformation Models
Templates, orders, order lines and cost lineage for manufacturing/repackaging
"""
from sqlalchemy import (
    Column, String, Integer, Numeric, DateTime, Date, Boolean, Text,
    ForeignKey, CheckConstraint, Index, UniqueConstraint
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from erp_inventory.core.database import Base


class TransformationTemplate(Base):
    """
    Transformation Template - reusable recipe of inputs and outputs

    Structure is locked once usage_count > 0.
    """
    __tablename__ = "transformation_templates"

    id = Column(Integer, primary_key=True, autoincrement=True)
    company_id = Column(Integer, nullable=False)
    template_code = Column(String(30), nullable=False)
    template_name = Column(String(100), nullable=False)
    description = Column(Text)
    is_active = Column(Boolean, default=True, nullable=False)
    usage_count = Column(Integer, default=0, nullable=False, doc="Number of orders using this template")

    created_by = Column(Integer)
    created_at = Column(DateTime(timezone=True), server_default=func.current_timestamp())
    updated_at = Column(DateTime(timezone=True), server_default=func.current_timestamp(), onupdate=func.current_timestamp())

    inputs = relationship("TransformationTemplateInput", back_populates="template",
                          order_by="TransformationTemplateInput.sequence", cascade="all, delete-orphan")
    outputs = relationship("TransformationTemplateOutput", back_populates="template",
                           order_by="TransformationTemplateOutput.sequence", cascade="all, delete-orphan")

    __table_args__ = (
        UniqueConstraint('company_id', 'template_code', name='uq_transformation_templates_code'),
    )


class TransformationTemplateInput(Base):
    __tablename__ = "transformation_template_inputs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    template_id = Column(Integer, ForeignKey("transformation_templates.id", ondelete="CASCADE"), nullable=False)
    item_id = Column(Integer, ForeignKey("items.id", ondelete="RESTRICT"), nullable=False)
    quantity = Column(Numeric(20, 4), nullable=False, doc="Quantity per unit of order")
    sequence = Column(Integer, default=0)
    notes = Column(Text)

    template = relationship("TransformationTemplate", back_populates="inputs")

    __table_args__ = (
        CheckConstraint("quantity > 0", name='positive_quantity'),
    )


class TransformationTemplateOutput(Base):
    __tablename__ = "transformation_template_outputs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    template_id = Column(Integer, ForeignKey("transformation_templates.id", ondelete="CASCADE"), nullable=False)
    item_id = Column(Integer, ForeignKey("items.id", ondelete="RESTRICT"), nullable=False)
    quantity = Column(Numeric(20, 4), nullable=False, doc="Quantity per unit of order")
    is_scrap = Column(Boolean, default=False, nullable=False, doc="Scrap output carries no allocated cost")
    sequence = Column(Integer, default=0)
    notes = Column(Text)

    template = relationship("TransformationTemplate", back_populates="outputs")

    __table_args__ = (
        CheckConstraint("quantity > 0", name='positive_quantity'),
    )


class TransformationOrder(Base):
    """
    Transformation Order - one execution of a template

    State: DRAFT -> PREPARING -> COMPLETED, CANCELLED from any non-terminal state
    """
    __tablename__ = "transformation_orders"

    id = Column(Integer, primary_key=True, autoincrement=True)
    company_id = Column(Integer, nullable=False)
    order_code = Column(String(30), unique=True, nullable=False)
    template_id = Column(Integer, ForeignKey("transformation_templates.id", ondelete="RESTRICT"))
    source_warehouse_id = Column(Integer, ForeignKey("warehouses.id", ondelete="RESTRICT"), nullable=False)

    status = Column(String(20), nullable=False, default='DRAFT')
    planned_quantity = Column(Numeric(20, 4), nullable=False)
    actual_quantity = Column(Numeric(20, 4), doc="Sum of produced quantities after execution")

    # Costing
    total_input_cost = Column(Numeric(20, 4), default=0)
    total_output_cost = Column(Numeric(20, 4), default=0)
    cost_variance = Column(Numeric(20, 4), default=0, doc="Cost of wasted output")
    variance_notes = Column(Text)

    # Dates
    order_date = Column(Date)
    planned_date = Column(Date)
    execution_date = Column(DateTime(timezone=True))
    completion_date = Column(DateTime(timezone=True))

    notes = Column(Text)
    reference_type = Column(String(30))
    reference_id = Column(Integer)

    created_by = Column(Integer)
    updated_by = Column(Integer)
    created_at = Column(DateTime(timezone=True), server_default=func.current_timestamp())
    updated_at = Column(DateTime(timezone=True), server_default=func.current_timestamp(), onupdate=func.current_timestamp())

    template = relationship("TransformationTemplate")
    inputs = relationship("TransformationOrderInput", back_populates="order",
                          order_by="TransformationOrderInput.sequence", cascade="all, delete-orphan")
    outputs = relationship("TransformationOrderOutput", back_populates="order",
                           order_by="TransformationOrderOutput.sequence", cascade="all, delete-orphan")

    __table_args__ = (
        CheckConstraint("status IN ('DRAFT', 'PREPARING', 'COMPLETED', 'CANCELLED')", name='valid_status'),
        CheckConstraint("planned_quantity > 0", name='positive_planned_quantity'),
        Index('idx_trans_orders_status', 'status'),
    )


class TransformationOrderInput(Base):
    __tablename__ = "transformation_order_inputs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    order_id = Column(Integer, ForeignKey("transformation_orders.id", ondelete="CASCADE"), nullable=False)
    item_id = Column(Integer, ForeignKey("items.id", ondelete="RESTRICT"), nullable=False)
    warehouse_id = Column(Integer, ForeignKey("warehouses.id", ondelete="RESTRICT"), nullable=False)

    planned_quantity = Column(Numeric(20, 4), nullable=False)
    consumed_quantity = Column(Numeric(20, 4))
    unit_cost = Column(Numeric(20, 4), default=0)
    total_cost = Column(Numeric(20, 4), default=0)
    stock_transaction_id = Column(Integer, ForeignKey("stock_transactions.id"))

    sequence = Column(Integer, default=0)
    notes = Column(Text)
    created_by = Column(Integer)
    updated_by = Column(Integer)

    order = relationship("TransformationOrder", back_populates="inputs")
    item = relationship("Item")


class TransformationOrderOutput(Base):
    __tablename__ = "transformation_order_outputs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    order_id = Column(Integer, ForeignKey("transformation_orders.id", ondelete="CASCADE"), nullable=False)
    item_id = Column(Integer, ForeignKey("items.id", ondelete="RESTRICT"), nullable=False)
    warehouse_id = Column(Integer, ForeignKey("warehouses.id", ondelete="RESTRICT"), nullable=False)

    planned_quantity = Column(Numeric(20, 4), nullable=False)
    produced_quantity = Column(Numeric(20, 4))
    wasted_quantity = Column(Numeric(20, 4), default=0)
    waste_reason = Column(Text)

    is_scrap = Column(Boolean, default=False, nullable=False)
    allocated_cost_per_unit = Column(Numeric(20, 4), default=0)
    total_allocated_cost = Column(Numeric(20, 4), default=0)
    stock_transaction_id = Column(Integer, ForeignKey("stock_transactions.id"))
    stock_transaction_waste_id = Column(Integer, ForeignKey("stock_transactions.id"))

    sequence = Column(Integer, default=0)
    notes = Column(Text)
    created_by = Column(Integer)
    updated_by = Column(Integer)

    order = relationship("TransformationOrder", back_populates="outputs")
    item = relationship("Item")


class TransformationLineage(Base):
    """
    Transformation Lineage - cost/quantity edge from one input line to one output line
    """
    __tablename__ = "transformation_lineage"

    id = Column(Integer, primary_key=True, autoincrement=True)
    order_id = Column(Integer, ForeignKey("transformation_orders.id", ondelete="CASCADE"), nullable=False)
    input_line_id = Column(Integer, ForeignKey("transformation_order_inputs.id", ondelete="CASCADE"), nullable=False)
    output_line_id = Column(Integer, ForeignKey("transformation_order_outputs.id", ondelete="CASCADE"), nullable=False)

    input_quantity_used = Column(Numeric(20, 4), nullable=False)
    output_quantity_from = Column(Numeric(20, 4), nullable=False)
    cost_attributed = Column(Numeric(20, 4), nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), server_default=func.current_timestamp())

    __table_args__ = (
        Index('idx_lineage_order', 'order_id'),
    )
