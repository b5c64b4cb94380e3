"""Narrow data-access stores used by the inventory services"""

from .catalog_store import CatalogStore
from .stock_store import StockStore
from .order_store import OrderStore

__all__ = ["CatalogStore", "StockStore", "OrderStore"]
