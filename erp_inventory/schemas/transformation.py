"""Transformation Order Schemas"""

from pydantic import BaseModel, Field, ConfigDict
from typing import Optional, List
from datetime import datetime, date
from decimal import Decimal

from erp_inventory.services.inventory.state_machine import TransformationOrderStatus


# Execution payload

class ExecutionInputLine(BaseModel):
    input_line_id: int
    consumed_quantity: Decimal
    packaging_id: Optional[int] = Field(None, description="Package the quantity is entered in; None = base")


class ExecutionOutputLine(BaseModel):
    output_line_id: int
    produced_quantity: Decimal
    wasted_quantity: Decimal = Field(default=Decimal("0"))
    waste_reason: Optional[str] = None
    packaging_id: Optional[int] = Field(None, description="Package the quantities are entered in; None = base")


class ExecuteTransformationRequest(BaseModel):
    inputs: List[ExecutionInputLine]
    outputs: List[ExecutionOutputLine]
    execution_date: Optional[datetime] = None
    notes: Optional[str] = None


class StockTransactionIds(BaseModel):
    inputs: List[int] = []
    outputs: List[int] = []
    waste: List[int] = []


class TransformationExecutionResult(BaseModel):
    success: bool = True
    order_id: int
    status: TransformationOrderStatus
    actual_quantity: Decimal
    total_input_cost: Decimal
    total_output_cost: Decimal
    cost_variance: Decimal
    stock_transaction_ids: StockTransactionIds


# Validation results

class TemplateValidationResult(BaseModel):
    is_valid: bool
    error: Optional[str] = None


class InsufficientItem(BaseModel):
    item_id: int
    item_code: str
    item_name: str
    required: Decimal
    available: Decimal


class StockAvailabilityResult(BaseModel):
    is_available: bool
    error: Optional[str] = None
    insufficient_items: List[InsufficientItem] = []


class StateTransitionRequest(BaseModel):
    to_status: TransformationOrderStatus


class StateTransitionResult(BaseModel):
    is_valid: bool
    current_status: Optional[TransformationOrderStatus] = None
    error: Optional[str] = None


class TemplateLockStatus(BaseModel):
    is_locked: bool
    usage_count: Optional[int] = None


# Orders

class TransformationOrderCreate(BaseModel):
    template_id: int
    warehouse_id: int
    planned_quantity: Decimal = Field(..., gt=0)
    order_date: Optional[date] = None
    planned_date: Optional[date] = None
    notes: Optional[str] = None
    reference_type: Optional[str] = None
    reference_id: Optional[int] = None


class TransformationOrderInputRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    item_id: int
    planned_quantity: Decimal
    consumed_quantity: Optional[Decimal] = None
    unit_cost: Optional[Decimal] = None
    total_cost: Optional[Decimal] = None
    stock_transaction_id: Optional[int] = None
    sequence: int


class TransformationOrderOutputRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    item_id: int
    planned_quantity: Decimal
    produced_quantity: Optional[Decimal] = None
    wasted_quantity: Optional[Decimal] = None
    waste_reason: Optional[str] = None
    is_scrap: bool
    allocated_cost_per_unit: Optional[Decimal] = None
    total_allocated_cost: Optional[Decimal] = None
    stock_transaction_id: Optional[int] = None
    stock_transaction_waste_id: Optional[int] = None
    sequence: int


class TransformationOrderRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    company_id: int
    order_code: str
    template_id: Optional[int] = None
    source_warehouse_id: int
    status: TransformationOrderStatus
    planned_quantity: Decimal
    actual_quantity: Optional[Decimal] = None
    total_input_cost: Optional[Decimal] = None
    total_output_cost: Optional[Decimal] = None
    cost_variance: Optional[Decimal] = None
    order_date: Optional[date] = None
    planned_date: Optional[date] = None
    execution_date: Optional[datetime] = None
    completion_date: Optional[datetime] = None
    notes: Optional[str] = None
    inputs: List[TransformationOrderInputRead] = []
    outputs: List[TransformationOrderOutputRead] = []


class TransformationLineageRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    order_id: int
    input_line_id: int
    output_line_id: int
    input_quantity_used: Decimal
    output_quantity_from: Decimal
    cost_attributed: Decimal
