"""
Transformation Service

Handles the complete transformation order lifecycle:
- Template validation and order creation from templates
- State machine transitions
- Inventory consumption and production
- Cost allocation across outputs, including waste
- Lineage tracking
- Rollback on failures

Execution runs in the caller's session as a single transaction: either the
order reaches COMPLETED with every movement posted, or the transaction is
rolled back and the order stays PREPARING. Only the cost-only waste records
are best-effort, each inside its own savepoint.

Execution locks the order row and each balance row it rewrites
(SELECT ... FOR UPDATE), so a second execution of the same order waits and
then sees COMPLETED, and concurrent movements on one balance serialize.
"""
from dataclasses import dataclass
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Dict, List, Optional, Tuple
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError
import logging

from erp_inventory.core.config import settings
from erp_inventory.core.exceptions import (
    InventoryError, OrderNotFound, TemplateNotFound, InvalidStateError,
    InvalidLineReference, InsufficientStockError, ValidationFailure,
    PersistenceFailure
)
from erp_inventory.models.item import Item
from erp_inventory.models.stock import StockTransaction, TransactionType, TransactionPurpose
from erp_inventory.models.transformation import (
    TransformationOrder, TransformationOrderInput, TransformationOrderOutput, TransformationLineage
)
from erp_inventory.schemas.normalization import PackageConversionResult
from erp_inventory.schemas.transformation import (
    ExecuteTransformationRequest, TransformationExecutionResult, StockTransactionIds,
    TemplateValidationResult, StockAvailabilityResult, InsufficientItem,
    StateTransitionResult, TemplateLockStatus, TransformationOrderCreate
)
from erp_inventory.services.inventory.locations import LocationService
from erp_inventory.services.inventory.normalization import (
    NormalizationService, normalize_line, to_decimal
)
from erp_inventory.services.inventory.state_machine import (
    TransformationOrderStatus, parse_status, validate_transition
)
from erp_inventory.services.stores import CatalogStore, StockStore, OrderStore

logger = logging.getLogger(__name__)

ZERO = Decimal("0")
REFERENCE_TYPE = "transformation_order"


def conversion_audit(conversion: PackageConversionResult) -> dict:
    """Ledger line fields recording how an entered quantity became base units"""
    return {
        'input_qty': conversion.input_qty,
        'input_packaging_id': conversion.input_packaging_id,
        'conversion_factor': conversion.conversion_factor,
        'normalized_qty': conversion.normalized_qty,
        'base_package_id': conversion.base_package_id,
    }


@dataclass
class ResolvedInput:
    line: TransformationOrderInput
    item: Item
    conversion: PackageConversionResult
    total_cost: Decimal = ZERO

    @property
    def quantity(self) -> Decimal:
        return self.conversion.normalized_qty


@dataclass
class ResolvedOutput:
    line: TransformationOrderOutput
    item: Item
    produced_conversion: PackageConversionResult
    wasted_conversion: PackageConversionResult
    waste_reason: Optional[str] = None

    @property
    def produced(self) -> Decimal:
        return self.produced_conversion.normalized_qty

    @property
    def wasted(self) -> Decimal:
        return self.wasted_conversion.normalized_qty


class TransformationService:
    """
    Transformation order engine
    Consumes input stock, produces output stock and allocates input cost
    """

    def __init__(self, db: Session):
        self.db = db
        self.catalog = CatalogStore(db)
        self.stock = StockStore(db)
        self.orders = OrderStore(db)
        self.normalizer = NormalizationService(db)
        self.locations = LocationService(db)

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def validate_template(self, template_id: int) -> TemplateValidationResult:
        """Template must exist, be active and define at least one input and one output"""
        template = self.orders.get_template(template_id)
        if template is None:
            return TemplateValidationResult(is_valid=False, error="Template not found")

        if not template.is_active:
            return TemplateValidationResult(is_valid=False, error="Template is not active")

        input_count, output_count = self.orders.count_template_lines(template_id)
        if input_count == 0:
            return TemplateValidationResult(is_valid=False, error="Template has no inputs")
        if output_count == 0:
            return TemplateValidationResult(is_valid=False, error="Template has no outputs")

        return TemplateValidationResult(is_valid=True)

    def check_template_lock(self, template_id: int) -> TemplateLockStatus:
        """A template referenced by any order is locked against structural edits"""
        template = self.orders.get_template(template_id)
        if template is None:
            return TemplateLockStatus(is_locked=False)

        usage_count = template.usage_count or 0
        return TemplateLockStatus(is_locked=usage_count > 0, usage_count=usage_count)

    def validate_stock_availability(self, order_id: int) -> StockAvailabilityResult:
        """
        Pre-flight check of every input line against available stock

        Reports all shortfalls instead of stopping at the first one. Read-only.
        """
        order = self.orders.get_order(order_id)
        if order is None:
            raise OrderNotFound(order_id)

        items = self.catalog.get_items(line.item_id for line in order.inputs)
        insufficient_items = []

        for line in order.inputs:
            balance = self.stock.get_item_warehouse(line.item_id, order.source_warehouse_id)
            available = balance.available_stock if balance else ZERO
            required = to_decimal(line.planned_quantity)

            if available < required:
                item = items.get(line.item_id)
                insufficient_items.append(InsufficientItem(
                    item_id=line.item_id,
                    item_code=item.item_code if item else "Unknown",
                    item_name=item.item_name if item else "Unknown",
                    required=required,
                    available=available,
                ))

        if insufficient_items:
            return StockAvailabilityResult(
                is_available=False,
                error=f"Insufficient stock for {len(insufficient_items)} item(s)",
                insufficient_items=insufficient_items,
            )

        return StockAvailabilityResult(is_available=True)

    def validate_state_transition(self, order_id: int, to_status) -> StateTransitionResult:
        order = self.orders.get(order_id)
        if order is None:
            return StateTransitionResult(is_valid=False, error="Order not found")

        try:
            validate_transition(order.status, to_status)
        except (InvalidStateError, ValidationFailure) as e:
            return StateTransitionResult(is_valid=False, current_status=order.status, error=e.message)

        return StateTransitionResult(is_valid=True, current_status=order.status)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_order(self, order_id: int) -> TransformationOrder:
        order = self.orders.get_order(order_id)
        if order is None:
            raise OrderNotFound(order_id)
        return order

    def get_lineage(self, order_id: int) -> List[TransformationLineage]:
        """Cost/quantity edges from input lines to output lines, written at execution"""
        self.get_order(order_id)
        return self.orders.get_lineage(order_id)

    # ------------------------------------------------------------------
    # Order creation and status changes
    # ------------------------------------------------------------------

    def create_order_from_template(self, company_id: int, user_id: int,
                                   order_data: TransformationOrderCreate) -> TransformationOrder:
        """
        Create a DRAFT order by scaling a template by the planned quantity

        Planned input cost comes from item standard cost and is spread over
        the non-scrap planned outputs. Bumps the template's usage counter.
        """
        template = self.orders.get_template(order_data.template_id)
        if template is None or template.company_id != company_id:
            raise TemplateNotFound(order_data.template_id)

        validation = self.validate_template(template.id)
        if not validation.is_valid:
            raise ValidationFailure(validation.error, code="INVALID_TEMPLATE",
                                    details={'template_id': template.id})

        planned = to_decimal(order_data.planned_quantity)
        items = self.catalog.get_items(
            [line.item_id for line in template.inputs] + [line.item_id for line in template.outputs]
        )

        try:
            order = TransformationOrder(
                company_id=company_id,
                order_code=self.orders.next_order_code(company_id, settings.ORDER_CODE_PREFIX),
                template_id=template.id,
                source_warehouse_id=order_data.warehouse_id,
                status=TransformationOrderStatus.DRAFT.value,
                planned_quantity=planned,
                order_date=order_data.order_date or date.today(),
                planned_date=order_data.planned_date,
                notes=order_data.notes,
                reference_type=order_data.reference_type,
                reference_id=order_data.reference_id,
                created_by=user_id,
                updated_by=user_id,
            )

            total_input_cost = ZERO
            for index, template_input in enumerate(template.inputs, start=1):
                item = items.get(template_input.item_id)
                unit_cost = to_decimal(item.standard_cost or 0) if item else ZERO
                planned_qty = to_decimal(template_input.quantity) * planned
                total_input_cost += unit_cost * planned_qty

                order.inputs.append(TransformationOrderInput(
                    item_id=template_input.item_id,
                    warehouse_id=order_data.warehouse_id,
                    planned_quantity=planned_qty,
                    unit_cost=unit_cost,
                    total_cost=unit_cost * planned_qty,
                    sequence=template_input.sequence or index,
                    notes=template_input.notes,
                    created_by=user_id,
                    updated_by=user_id,
                ))

            planned_output_qty = sum(
                (to_decimal(o.quantity) * planned for o in template.outputs if not o.is_scrap), ZERO
            )
            cost_per_unit = total_input_cost / planned_output_qty if planned_output_qty > 0 else ZERO

            total_output_cost = ZERO
            for index, template_output in enumerate(template.outputs, start=1):
                planned_qty = to_decimal(template_output.quantity) * planned
                per_unit = ZERO if template_output.is_scrap else cost_per_unit
                total_output_cost += per_unit * planned_qty

                order.outputs.append(TransformationOrderOutput(
                    item_id=template_output.item_id,
                    warehouse_id=order_data.warehouse_id,
                    planned_quantity=planned_qty,
                    is_scrap=template_output.is_scrap,
                    allocated_cost_per_unit=per_unit,
                    total_allocated_cost=per_unit * planned_qty,
                    sequence=template_output.sequence or index,
                    notes=template_output.notes,
                    created_by=user_id,
                    updated_by=user_id,
                ))

            order.total_input_cost = total_input_cost
            order.total_output_cost = total_output_cost
            order.cost_variance = ZERO
            self.orders.add(order, "create transformation order")

            template.usage_count = (template.usage_count or 0) + 1
            self.orders.flush("update template usage count")
            self.db.commit()

        except InventoryError:
            self.db.rollback()
            raise
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to create transformation order from template {template.id}: {e}")
            raise PersistenceFailure(f"Failed to create transformation order: {e}") from e

        logger.info(f"Created transformation order {order.order_code} from template {template.template_code}")
        return self.orders.get_order(order.id)

    def transition_order(self, order_id: int, to_status, user_id: int) -> TransformationOrder:
        """Move an order along the state graph. COMPLETED is only reachable through execute()."""
        order = self.orders.get(order_id)
        if order is None:
            raise OrderNotFound(order_id)

        target = parse_status(to_status)
        if target == TransformationOrderStatus.COMPLETED:
            raise InvalidStateError("Orders are completed by executing them", current_status=order.status)

        validate_transition(order.status, target)
        previous = order.status

        try:
            order.status = target.value
            order.updated_by = user_id
            self.orders.flush("update order status")
            self.db.commit()
        except PersistenceFailure:
            self.db.rollback()
            raise

        logger.info(f"Transformation order {order.order_code}: {previous} -> {target.value}")
        return self.orders.get_order(order_id)

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    def execute(self, order_id: int, user_id: int,
                execution_data: ExecuteTransformationRequest) -> TransformationExecutionResult:
        """
        Execute a PREPARING order and complete it

        1. Load the order and check it is PREPARING
        2. Validate line references and normalize every quantity to base units
        3. Resolve the warehouse default location
        4. Flip the order to COMPLETED with the actual quantity
        5. Consume inputs (fails on any balance going negative)
        6. Allocate total input cost over produced + wasted quantity
        7. Produce outputs, record waste and lineage
        8. Persist order cost totals and commit

        Any error rolls the whole execution back.
        """
        order = self.orders.get_order(order_id, for_update=True)
        if order is None:
            raise OrderNotFound(order_id)

        order_code = order.order_code
        if order.status != TransformationOrderStatus.PREPARING.value:
            raise InvalidStateError(
                f"Order must be in PREPARING status. Current status: {order.status}",
                current_status=order.status,
            )

        logger.info(f"Executing transformation order {order_code} by user {user_id}")

        try:
            inputs, outputs = self._resolve_execution(order, execution_data)

            location_id = self.locations.ensure_warehouse_default_location(
                order.company_id, order.source_warehouse_id, user_id
            )

            result = self._run_execution(order, user_id, execution_data, inputs, outputs, location_id)
            self.db.commit()

        except InsufficientStockError as e:
            self.db.rollback()
            logger.warning(f"Transformation order {order_code} reverted to PREPARING: {e.message}")
            raise
        except InventoryError as e:
            self.db.rollback()
            logger.error(f"Transformation order {order_code} failed: {e}")
            raise
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Transformation order {order_code} failed in the datastore: {e}")
            raise PersistenceFailure(f"Transformation execution failed: {e}") from e

        logger.info(
            f"Transformation order {order_code} completed: input cost {result.total_input_cost}, "
            f"output cost {result.total_output_cost}, variance {result.cost_variance}"
        )
        return result

    def _resolve_execution(self, order: TransformationOrder,
                           execution_data: ExecuteTransformationRequest
                           ) -> Tuple[List[ResolvedInput], List[ResolvedOutput]]:
        """Check the payload against the order's lines and normalize quantities. No writes."""
        input_lines = {line.id: line for line in order.inputs}
        output_lines = {line.id: line for line in order.outputs}

        seen = set()
        for input_data in execution_data.inputs:
            if input_data.input_line_id not in input_lines or ('in', input_data.input_line_id) in seen:
                raise InvalidLineReference(
                    f"Invalid input line ID: {input_data.input_line_id}",
                    details={'input_line_id': input_data.input_line_id},
                )
            seen.add(('in', input_data.input_line_id))

        for output_data in execution_data.outputs:
            if output_data.output_line_id not in output_lines or ('out', output_data.output_line_id) in seen:
                raise InvalidLineReference(
                    f"Invalid output line ID: {output_data.output_line_id}",
                    details={'output_line_id': output_data.output_line_id},
                )
            seen.add(('out', output_data.output_line_id))

        items: Dict[int, Item] = self.catalog.get_items(
            [line.item_id for line in order.inputs] + [line.item_id for line in order.outputs]
        )

        inputs = []
        for input_data in execution_data.inputs:
            line = input_lines[input_data.input_line_id]
            conversion = normalize_line(self.normalizer, order.company_id, line.item_id,
                                        input_data.consumed_quantity, input_data.packaging_id)
            inputs.append(ResolvedInput(line=line, item=items[line.item_id], conversion=conversion))

        outputs = []
        for output_data in execution_data.outputs:
            line = output_lines[output_data.output_line_id]
            outputs.append(ResolvedOutput(
                line=line,
                item=items[line.item_id],
                produced_conversion=normalize_line(self.normalizer, order.company_id, line.item_id,
                                                   output_data.produced_quantity, output_data.packaging_id),
                wasted_conversion=normalize_line(self.normalizer, order.company_id, line.item_id,
                                                 output_data.wasted_quantity, output_data.packaging_id),
                waste_reason=output_data.waste_reason,
            ))

        return inputs, outputs

    def _run_execution(self, order: TransformationOrder, user_id: int,
                       execution_data: ExecuteTransformationRequest,
                       inputs: List[ResolvedInput], outputs: List[ResolvedOutput],
                       location_id: int) -> TransformationExecutionResult:
        now = datetime.now(timezone.utc)
        execution_date = execution_data.execution_date or now
        if execution_date.tzinfo is None:
            execution_date = execution_date.replace(tzinfo=timezone.utc)
        transaction_date = execution_date.date()

        actual_quantity = sum((output.produced for output in outputs), ZERO)

        order.status = TransformationOrderStatus.COMPLETED.value
        order.execution_date = execution_date
        order.completion_date = now
        order.actual_quantity = actual_quantity
        order.updated_by = user_id
        if execution_data.notes:
            order.notes = execution_data.notes
        self.orders.flush("complete transformation order")

        input_transaction_ids = []
        for index, consumed in enumerate(inputs, start=1):
            transaction = self._consume_input(order, user_id, consumed, index, location_id, transaction_date)
            input_transaction_ids.append(transaction.id)

        total_input_cost = sum((consumed.total_cost for consumed in inputs), ZERO)

        # Cost is spread over good and wasted quantity alike
        total_output_quantity = sum((output.produced + output.wasted for output in outputs), ZERO)
        cost_per_unit = total_input_cost / total_output_quantity if total_output_quantity > 0 else ZERO

        output_transaction_ids = []
        waste_transaction_ids = []
        total_output_cost = ZERO
        total_waste_cost = ZERO

        for index, produced in enumerate(outputs, start=1):
            allocated_cost = ZERO if produced.line.is_scrap else cost_per_unit * produced.produced

            transaction = self._produce_output(order, user_id, produced, index, location_id,
                                               transaction_date, cost_per_unit, allocated_cost)
            output_transaction_ids.append(transaction.id)

            if produced.wasted > 0:
                waste_transaction = self._record_waste(order, user_id, produced, index,
                                                       transaction_date, cost_per_unit)
                if waste_transaction is not None:
                    waste_transaction_ids.append(waste_transaction.id)

            self._record_lineage(order, produced, allocated_cost, inputs, total_input_cost)

            if not produced.line.is_scrap:
                total_output_cost += allocated_cost
                total_waste_cost += cost_per_unit * produced.wasted

        # Variance is the input cost that ended up as waste
        order.total_input_cost = total_input_cost
        order.total_output_cost = total_output_cost
        order.cost_variance = total_waste_cost
        self.orders.flush("update transformation order costs")

        return TransformationExecutionResult(
            success=True,
            order_id=order.id,
            status=TransformationOrderStatus.COMPLETED,
            actual_quantity=actual_quantity,
            total_input_cost=total_input_cost,
            total_output_cost=total_output_cost,
            cost_variance=total_waste_cost,
            stock_transaction_ids=StockTransactionIds(
                inputs=input_transaction_ids,
                outputs=output_transaction_ids,
                waste=waste_transaction_ids,
            ),
        )

    def _transaction_code(self, kind: str, order_code: str, index: int) -> str:
        return f"{settings.TRANSACTION_CODE_PREFIX}-{kind}-{order_code}-{index}"

    def _transaction_header(self, order: TransformationOrder, user_id: int, **fields) -> dict:
        header = {
            'company_id': order.company_id,
            'warehouse_id': order.source_warehouse_id,
            'reference_type': REFERENCE_TYPE,
            'reference_id': order.id,
            'reference_code': order.order_code,
            'created_by': user_id,
        }
        header.update(fields)
        return header

    def _consume_input(self, order: TransformationOrder, user_id: int, consumed: ResolvedInput,
                       index: int, location_id: int, transaction_date: date) -> StockTransaction:
        item = consumed.item
        warehouse_id = order.source_warehouse_id

        balance = self.stock.get_item_warehouse(item.id, warehouse_id, for_update=True)
        current_stock = to_decimal(balance.current_stock) if balance else ZERO
        new_stock = current_stock - consumed.quantity

        if new_stock < 0:
            raise InsufficientStockError(
                f"Insufficient stock for item {item.item_code}. "
                f"Available: {current_stock}, Required: {consumed.quantity}",
                items=[{
                    'item_id': item.id,
                    'item_code': item.item_code,
                    'item_name': item.item_name,
                    'required': str(consumed.quantity),
                    'available': str(current_stock),
                }],
            )

        unit_cost = to_decimal(item.standard_cost or 0)
        total_cost = unit_cost * consumed.quantity

        transaction = self.stock.create_transaction(
            header=self._transaction_header(
                order, user_id,
                transaction_code=self._transaction_code("IN", order.order_code, index),
                transaction_type=TransactionType.OUT.value,
                purpose=TransactionPurpose.CONSUMPTION.value,
                transaction_date=transaction_date,
                from_location_id=location_id,
                notes=f"Transformation input consumption - {order.order_code}",
            ),
            line={
                'item_id': item.id,
                'package_id': item.package_id,
                'quantity': consumed.quantity,
                'unit_cost': unit_cost,
                'total_cost': total_cost,
                'qty_before': current_stock,
                'qty_after': new_stock,
                'valuation_rate': unit_cost,
                'stock_value_before': current_stock * unit_cost,
                'stock_value_after': new_stock * unit_cost,
                **conversion_audit(consumed.conversion),
            },
        )

        self.locations.adjust_item_location(
            order.company_id, item.id, warehouse_id,
            location_id=(balance.default_location_id if balance else None) or location_id,
            user_id=user_id,
            qty_on_hand_delta=-consumed.quantity,
        )
        self.stock.set_item_warehouse_stock(order.company_id, item.id, warehouse_id, new_stock,
                                            user_id, default_location_id=location_id)

        line = consumed.line
        line.consumed_quantity = consumed.quantity
        line.unit_cost = unit_cost
        line.total_cost = total_cost
        line.stock_transaction_id = transaction.id
        line.updated_by = user_id
        self.orders.flush("update transformation order input")

        consumed.total_cost = total_cost
        return transaction

    def _produce_output(self, order: TransformationOrder, user_id: int, produced: ResolvedOutput,
                        index: int, location_id: int, transaction_date: date,
                        cost_per_unit: Decimal, allocated_cost: Decimal) -> StockTransaction:
        item = produced.item
        warehouse_id = order.source_warehouse_id
        unit_cost = ZERO if produced.line.is_scrap else cost_per_unit

        balance = self.stock.get_item_warehouse(item.id, warehouse_id, for_update=True)
        current_stock = to_decimal(balance.current_stock) if balance else ZERO
        new_stock = current_stock + produced.produced

        transaction = self.stock.create_transaction(
            header=self._transaction_header(
                order, user_id,
                transaction_code=self._transaction_code("OUT", order.order_code, index),
                transaction_type=TransactionType.IN.value,
                purpose=TransactionPurpose.PRODUCTION.value,
                transaction_date=transaction_date,
                to_location_id=location_id,
                notes=f"Transformation output production - {order.order_code}",
            ),
            line={
                'item_id': item.id,
                'package_id': item.package_id,
                'quantity': produced.produced,
                'unit_cost': unit_cost,
                'total_cost': allocated_cost,
                'qty_before': current_stock,
                'qty_after': new_stock,
                'valuation_rate': unit_cost,
                'stock_value_before': current_stock * unit_cost,
                'stock_value_after': new_stock * unit_cost,
                **conversion_audit(produced.produced_conversion),
            },
        )

        self.locations.adjust_item_location(
            order.company_id, item.id, warehouse_id,
            location_id=(balance.default_location_id if balance else None) or location_id,
            user_id=user_id,
            qty_on_hand_delta=produced.produced,
        )
        self.stock.set_item_warehouse_stock(order.company_id, item.id, warehouse_id, new_stock,
                                            user_id, default_location_id=location_id)

        line = produced.line
        line.produced_quantity = produced.produced
        line.wasted_quantity = produced.wasted
        line.waste_reason = produced.waste_reason
        line.allocated_cost_per_unit = unit_cost
        line.total_allocated_cost = allocated_cost
        line.stock_transaction_id = transaction.id
        line.updated_by = user_id
        self.orders.flush("update transformation order output")

        return transaction

    def _record_waste(self, order: TransformationOrder, user_id: int, produced: ResolvedOutput,
                      index: int, transaction_date: date,
                      cost_per_unit: Decimal) -> Optional[StockTransaction]:
        """
        Post a cost-only waste movement. It has no location and leaves real
        stock untouched, so before/after snapshots are zero.

        Best-effort: a failure rolls back only this record's savepoint.
        """
        reason = produced.waste_reason or "No reason provided"

        try:
            with self.db.begin_nested():
                transaction = self.stock.create_transaction(
                    header=self._transaction_header(
                        order, user_id,
                        transaction_code=self._transaction_code("WASTE", order.order_code, index),
                        transaction_type=TransactionType.OUT.value,
                        purpose=TransactionPurpose.WASTE.value,
                        transaction_date=transaction_date,
                        notes=f"Transformation waste - {reason} - {order.order_code}",
                    ),
                    line={
                        'item_id': produced.item.id,
                        'package_id': produced.item.package_id,
                        'quantity': produced.wasted,
                        'unit_cost': cost_per_unit,
                        'total_cost': cost_per_unit * produced.wasted,
                        'qty_before': ZERO,
                        'qty_after': ZERO,
                        'valuation_rate': cost_per_unit,
                        'stock_value_before': ZERO,
                        'stock_value_after': ZERO,
                        **conversion_audit(produced.wasted_conversion),
                    },
                )
        except PersistenceFailure as e:
            logger.warning(
                f"Waste record for output line {produced.line.id} of {order.order_code} not created: {e}"
            )
            return None

        produced.line.stock_transaction_waste_id = transaction.id
        self.orders.flush("link waste transaction")
        return transaction

    def _record_lineage(self, order: TransformationOrder, produced: ResolvedOutput,
                        allocated_cost: Decimal, inputs: List[ResolvedInput],
                        total_input_cost: Decimal):
        """Attribute an output's allocated cost to each input by its share of total input cost"""
        for consumed in inputs:
            share = consumed.total_cost / total_input_cost if total_input_cost > 0 else ZERO
            self.orders.add_lineage(
                order_id=order.id,
                input_line_id=consumed.line.id,
                output_line_id=produced.line.id,
                input_quantity_used=consumed.quantity,
                output_quantity_from=produced.produced,
                cost_attributed=allocated_cost * share,
            )
