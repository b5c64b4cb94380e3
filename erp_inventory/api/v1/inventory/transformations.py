"""Transformation Order API endpoints"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List

from erp_inventory.api import deps
from erp_inventory.schemas.transformation import (
    TransformationOrderCreate, TransformationOrderRead, StateTransitionRequest,
    ExecuteTransformationRequest, TransformationExecutionResult, StockAvailabilityResult,
    TemplateValidationResult, TemplateLockStatus, TransformationLineageRead
)
from erp_inventory.services.inventory.transformation import TransformationService

router = APIRouter()


@router.post("/orders", response_model=TransformationOrderRead, status_code=status.HTTP_201_CREATED)
async def create_order(
    order_data: TransformationOrderCreate,
    db: Session = Depends(deps.get_db),
    company_id: int = Depends(deps.get_company_id),
    user_id: int = Depends(deps.get_current_user_id),
):
    """
    Create a DRAFT transformation order from a template.

    Line quantities are the template quantities scaled by planned_quantity.
    """
    service = TransformationService(db)
    return service.create_order_from_template(company_id, user_id, order_data)


@router.get("/orders/{order_id}", response_model=TransformationOrderRead)
async def get_order(
    order_id: int,
    db: Session = Depends(deps.get_db),
):
    """Get specific transformation order with its lines."""
    return TransformationService(db).get_order(order_id)


@router.post("/orders/{order_id}/transition", response_model=TransformationOrderRead)
async def transition_order(
    order_id: int,
    transition: StateTransitionRequest,
    db: Session = Depends(deps.get_db),
    user_id: int = Depends(deps.get_current_user_id),
):
    """
    Move an order to PREPARING or CANCELLED.

    COMPLETED is only reached through the execute endpoint.
    """
    service = TransformationService(db)
    return service.transition_order(order_id, transition.to_status, user_id)


@router.post("/orders/{order_id}/execute", response_model=TransformationExecutionResult)
async def execute_order(
    order_id: int,
    execution_data: ExecuteTransformationRequest,
    db: Session = Depends(deps.get_db),
    user_id: int = Depends(deps.get_current_user_id),
):
    """
    Execute a PREPARING order: consume inputs, produce outputs, allocate cost.

    On any failure nothing is posted and the order stays PREPARING.
    """
    service = TransformationService(db)
    return service.execute(order_id, user_id, execution_data)


@router.get("/orders/{order_id}/stock-availability", response_model=StockAvailabilityResult)
async def check_stock_availability(
    order_id: int,
    db: Session = Depends(deps.get_db),
):
    """Compare each input's planned quantity with available stock."""
    return TransformationService(db).validate_stock_availability(order_id)


@router.get("/orders/{order_id}/lineage", response_model=List[TransformationLineageRead])
async def get_order_lineage(
    order_id: int,
    db: Session = Depends(deps.get_db),
):
    return TransformationService(db).get_lineage(order_id)


@router.get("/templates/{template_id}/validate", response_model=TemplateValidationResult)
async def validate_template(
    template_id: int,
    db: Session = Depends(deps.get_db),
):
    return TransformationService(db).validate_template(template_id)


@router.get("/templates/{template_id}/lock", response_model=TemplateLockStatus)
async def check_template_lock(
    template_id: int,
    db: Session = Depends(deps.get_db),
):
    """A template used by any order can no longer change structure."""
    return TransformationService(db).check_template_lock(template_id)
