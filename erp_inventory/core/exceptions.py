"""
Custom Application Exceptions
"""
from typing import Any, Dict, List, Optional


class InventoryError(Exception):
    """Base exception for the inventory core"""

    status_code = 400
    default_message = "An inventory error occurred"
    default_code = "INVENTORY_ERROR"

    def __init__(self, message: Optional[str] = None, code: Optional[str] = None,
                 details: Optional[Dict[str, Any]] = None):
        self.message = message or self.default_message
        self.code = code or self.default_code
        self.details = details or {}
        super().__init__(self.message)

    @property
    def kind(self) -> str:
        return self.__class__.__name__

    def __str__(self):
        return f"[{self.code}] {self.message}"

    def to_dict(self) -> Dict[str, Any]:
        """Convert the exception to an API error payload."""
        error_dict = {
            'error': self.kind,
            'message': self.message,
            'code': self.code,
        }
        if self.details:
            error_dict['details'] = self.details
        return error_dict


# Not found

class NotFoundError(InventoryError):
    status_code = 404
    default_message = "Record not found"
    default_code = "NOT_FOUND"


class OrderNotFound(NotFoundError):
    default_code = "ORDER_NOT_FOUND"

    def __init__(self, order_id: Any):
        super().__init__(f"Transformation order not found: {order_id}",
                         details={'order_id': order_id})


class ItemNotFound(NotFoundError):
    default_code = "ITEM_NOT_FOUND"

    def __init__(self, item_id: Any):
        super().__init__(f"Item not found or not ready for transactions: {item_id}",
                         details={'item_id': item_id})


class TemplateNotFound(NotFoundError):
    default_code = "TEMPLATE_NOT_FOUND"

    def __init__(self, template_id: Any):
        super().__init__(f"Transformation template not found: {template_id}",
                         details={'template_id': template_id})


# Lifecycle

class InvalidStateError(InventoryError):
    """Raised when an order is not in the lifecycle stage an action needs"""
    status_code = 409
    default_message = "Invalid order state"
    default_code = "INVALID_STATE"

    def __init__(self, message: Optional[str] = None, current_status: Optional[str] = None,
                 details: Optional[Dict[str, Any]] = None):
        self.current_status = current_status
        details = dict(details or {})
        if current_status is not None:
            details['current_status'] = current_status
        super().__init__(message, details=details)


# Validation

class ValidationFailure(InventoryError):
    status_code = 422
    default_message = "Validation failed"
    default_code = "VALIDATION_FAILED"


class InvalidQuantity(ValidationFailure):
    default_code = "INVALID_QUANTITY"


class InvalidConversionFactor(ValidationFailure):
    default_code = "INVALID_CONVERSION_FACTOR"


class InvalidPackage(ValidationFailure):
    default_code = "INVALID_PACKAGE"


class InvalidLineReference(ValidationFailure):
    default_code = "INVALID_LINE_REFERENCE"


class MissingUnitOfMeasure(ValidationFailure):
    default_code = "MISSING_UOM"

    def __init__(self, item_id: Any):
        super().__init__(f"Missing base unit of measure for item {item_id}",
                         details={'item_id': item_id})


# Stock

class InsufficientStockError(InventoryError):
    status_code = 409
    default_message = "Insufficient stock"
    default_code = "INSUFFICIENT_STOCK"

    def __init__(self, message: Optional[str] = None,
                 items: Optional[List[Dict[str, Any]]] = None):
        self.items = items or []
        super().__init__(message, details={'items': self.items} if self.items else None)


# Persistence

class PersistenceFailure(InventoryError):
    status_code = 500
    default_message = "The datastore rejected a write"
    default_code = "PERSISTENCE_FAILURE"


class TransactionCreationFailed(PersistenceFailure):
    default_code = "TRANSACTION_CREATION_FAILED"
