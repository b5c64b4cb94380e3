"""
ERP Inventory SQLAlchemy Models
"""

# Import all models to ensure they are registered with SQLAlchemy
from .item import Item, ItemPackage
from .warehouse import Warehouse, WarehouseLocation, ItemWarehouse, ItemLocation
from .stock import StockTransaction, StockTransactionItem, TransactionType, TransactionPurpose
from .transformation import (
    TransformationTemplate, TransformationTemplateInput, TransformationTemplateOutput,
    TransformationOrder, TransformationOrderInput, TransformationOrderOutput,
    TransformationLineage
)

__all__ = [
    "Item",
    "ItemPackage",
    "Warehouse",
    "WarehouseLocation",
    "ItemWarehouse",
    "ItemLocation",
    "StockTransaction",
    "StockTransactionItem",
    "TransactionType",
    "TransactionPurpose",
    "TransformationTemplate",
    "TransformationTemplateInput",
    "TransformationTemplateOutput",
    "TransformationOrder",
    "TransformationOrderInput",
    "TransformationOrderOutput",
    "TransformationLineage",
]
