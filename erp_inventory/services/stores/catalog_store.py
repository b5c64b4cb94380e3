"""
Catalog Store
Item and package lookups
"""
from typing import Dict, Iterable, Optional
from sqlalchemy import select

from erp_inventory.models.item import Item, ItemPackage
from erp_inventory.services.stores.base_store import BaseStore


class CatalogStore(BaseStore):
    model = Item

    def get_item(self, item_id: int, company_id: Optional[int] = None) -> Optional[Item]:
        stmt = select(Item).where(Item.id == item_id)
        if company_id is not None:
            stmt = stmt.where(Item.company_id == company_id)
        return self.db.execute(stmt).scalar_one_or_none()

    def get_items(self, item_ids: Iterable[int]) -> Dict[int, Item]:
        ids = set(item_ids)
        if not ids:
            return {}
        rows = self.db.execute(select(Item).where(Item.id.in_(ids))).scalars().all()
        return {item.id: item for item in rows}

    def get_package(self, package_id: int) -> Optional[ItemPackage]:
        return self.db.get(ItemPackage, package_id)

    def get_base_package(self, item: Item) -> Optional[ItemPackage]:
        if item.package_id is None:
            return None
        package = self.db.get(ItemPackage, item.package_id)
        if package is None or package.item_id != item.id:
            return None
        return package
