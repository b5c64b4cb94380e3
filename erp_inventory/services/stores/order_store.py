"""
Order Store
Transformation orders, templates and lineage edges
"""
from typing import List, Optional, Tuple
from sqlalchemy import select, func
from sqlalchemy.orm import selectinload

from erp_inventory.models.transformation import (
    TransformationTemplate, TransformationTemplateInput, TransformationTemplateOutput,
    TransformationOrder, TransformationLineage
)
from erp_inventory.services.stores.base_store import BaseStore


class OrderStore(BaseStore):
    model = TransformationOrder

    def get_order(self, order_id: int, for_update: bool = False) -> Optional[TransformationOrder]:
        """Fetch an order with both line collections loaded, optionally locking the order row"""
        stmt = (
            select(TransformationOrder)
            .options(
                selectinload(TransformationOrder.inputs),
                selectinload(TransformationOrder.outputs),
            )
            .where(TransformationOrder.id == order_id)
        )
        return self._fetch_one(stmt, for_update)

    def get_template(self, template_id: int) -> Optional[TransformationTemplate]:
        stmt = (
            select(TransformationTemplate)
            .options(
                selectinload(TransformationTemplate.inputs),
                selectinload(TransformationTemplate.outputs),
            )
            .where(TransformationTemplate.id == template_id)
        )
        return self.db.execute(stmt).scalar_one_or_none()

    def count_template_lines(self, template_id: int) -> Tuple[int, int]:
        """Return (input count, output count) for a template"""
        input_count = self.db.execute(
            select(func.count(TransformationTemplateInput.id))
            .where(TransformationTemplateInput.template_id == template_id)
        ).scalar_one()
        output_count = self.db.execute(
            select(func.count(TransformationTemplateOutput.id))
            .where(TransformationTemplateOutput.template_id == template_id)
        ).scalar_one()
        return input_count, output_count

    def next_order_code(self, company_id: int, prefix: str) -> str:
        count = self.db.execute(
            select(func.count(TransformationOrder.id))
            .where(TransformationOrder.company_id == company_id)
        ).scalar_one()
        return f"{prefix}-{company_id:03d}-{count + 1:06d}"

    def add_lineage(self, **fields) -> TransformationLineage:
        return self.add(TransformationLineage(**fields), "record transformation lineage")

    def get_lineage(self, order_id: int) -> List[TransformationLineage]:
        stmt = (
            select(TransformationLineage)
            .where(TransformationLineage.order_id == order_id)
            .order_by(TransformationLineage.id)
        )
        return list(self.db.execute(stmt).scalars().all())
