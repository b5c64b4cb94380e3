"""
ERP Inventory Common Schemas
Shared Pydantic models for common API structures
"""
from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Dict, Optional


class ErrorResponse(BaseModel):
    """
    Standard error response model

    Rendered for every InventoryError raised by the service layer
    """
    error: str = Field(..., description="Error kind")
    message: str = Field(..., description="Human-readable error message")
    code: Optional[str] = Field(None, description="Application-specific error code")
    details: Optional[Dict[str, Any]] = Field(None, description="Structured error payload")

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "error": "InsufficientStockError",
            "message": "Insufficient stock for item FLOUR-25. Available: 10, Required: 36",
            "code": "INSUFFICIENT_STOCK",
            "details": {
                "items": [
                    {"item_id": 1, "item_code": "FLOUR-25", "item_name": "Flour 25kg",
                     "required": "36", "available": "10"}
                ]
            }
        }
    })
