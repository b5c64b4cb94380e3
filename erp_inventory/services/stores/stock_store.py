"""
Stock Store
Stock balances, storage locations and the append-only transaction ledger
"""
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Optional
from sqlalchemy import select

from erp_inventory.core.exceptions import TransactionCreationFailed
from erp_inventory.models.stock import StockTransaction, StockTransactionItem
from erp_inventory.models.warehouse import ItemWarehouse, ItemLocation, WarehouseLocation
from erp_inventory.services.stores.base_store import BaseStore


class StockStore(BaseStore):
    model = StockTransaction

    # Balances

    def get_item_warehouse(self, item_id: int, warehouse_id: int,
                           for_update: bool = False) -> Optional[ItemWarehouse]:
        stmt = select(ItemWarehouse).where(
            ItemWarehouse.item_id == item_id,
            ItemWarehouse.warehouse_id == warehouse_id,
        )
        return self._fetch_one(stmt, for_update)

    def set_item_warehouse_stock(self, company_id: int, item_id: int, warehouse_id: int,
                                 new_stock: Decimal, user_id: int,
                                 default_location_id: Optional[int] = None) -> ItemWarehouse:
        """Write the new on-hand quantity, inserting the balance row if it does not exist yet"""
        balance = self.get_item_warehouse(item_id, warehouse_id, for_update=True)
        if balance is None:
            balance = ItemWarehouse(
                company_id=company_id,
                item_id=item_id,
                warehouse_id=warehouse_id,
                current_stock=new_stock,
                reserved_stock=Decimal("0"),
                default_location_id=default_location_id,
                created_by=user_id,
                updated_by=user_id,
            )
            self.db.add(balance)
        else:
            balance.current_stock = new_stock
            balance.updated_by = user_id
        self.flush("update item warehouse balance")
        return balance

    # Locations

    def get_location_by_code(self, company_id: int, warehouse_id: int, code: str) -> Optional[WarehouseLocation]:
        stmt = select(WarehouseLocation).where(
            WarehouseLocation.company_id == company_id,
            WarehouseLocation.warehouse_id == warehouse_id,
            WarehouseLocation.code == code,
        )
        return self.db.execute(stmt).scalar_one_or_none()

    def get_item_location(self, item_id: int, warehouse_id: int, location_id: int,
                          for_update: bool = False) -> Optional[ItemLocation]:
        stmt = select(ItemLocation).where(
            ItemLocation.item_id == item_id,
            ItemLocation.warehouse_id == warehouse_id,
            ItemLocation.location_id == location_id,
        )
        return self._fetch_one(stmt, for_update)

    # Ledger

    def create_transaction(self, header: Dict[str, Any], line: Dict[str, Any]) -> StockTransaction:
        """
        Append a transaction header and its single line item.

        Raises TransactionCreationFailed when the store rejects either insert.
        """
        now = datetime.now()
        header = dict(header)
        transaction = StockTransaction(
            transaction_date=header.pop("transaction_date", None) or now.date(),
            status=header.pop("status", "posted"),
            **header,
        )
        self.db.add(transaction)
        self.flush(f"create stock transaction {transaction.transaction_code}", TransactionCreationFailed)

        transaction_item = StockTransactionItem(
            company_id=transaction.company_id,
            transaction_id=transaction.id,
            created_by=transaction.created_by,
            posting_date=now.date(),
            posting_time=now.time().replace(microsecond=0),
            **line,
        )
        self.db.add(transaction_item)
        self.flush(f"create stock transaction item for {transaction.transaction_code}", TransactionCreationFailed)
        return transaction
