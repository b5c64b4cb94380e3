"""
Test Configuration and Fixtures
Shared testing infrastructure for the inventory core
"""

import os

# Must be set before erp_inventory.core.config is imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["LOG_TO_FILE"] = "false"

import pytest
from decimal import Decimal
from typing import Generator, Iterable, Tuple
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker, Session

from erp_inventory.main import app
from erp_inventory.api import deps
from erp_inventory.core.database import Base, build_engine
from erp_inventory.models import (
    Item, ItemPackage, Warehouse, ItemWarehouse, ItemLocation,
    TransformationTemplate, TransformationTemplateInput, TransformationTemplateOutput,
    TransformationOrder, TransformationOrderInput, TransformationOrderOutput
)
from erp_inventory.services.inventory.locations import LocationService

# Test database URL - in-memory SQLite shared through a StaticPool
TEST_DATABASE_URL = "sqlite://"

COMPANY_ID = 1
USER_ID = 7

# Create test engine (SAVEPOINT-capable, see build_engine)
engine = build_engine(TEST_DATABASE_URL)

# Create test session
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="function")
def db_session() -> Generator[Session, None, None]:
    """Create a fresh database session for each test"""
    Base.metadata.create_all(bind=engine)

    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db_session: Session) -> Generator[TestClient, None, None]:
    """Create a test client with database dependency override"""
    def override_get_db():
        yield db_session

    app.dependency_overrides[deps.get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def api_headers() -> dict:
    return {"X-User-Id": str(USER_ID), "X-Company-Id": str(COMPANY_ID)}


class InventoryBuilder:
    """
    Seeds catalog, stock and transformation rows.

    Every helper commits, so a service-level rollback never removes seed data.
    """

    def __init__(self, db: Session, company_id: int = COMPANY_ID, user_id: int = USER_ID):
        self.db = db
        self.company_id = company_id
        self.user_id = user_id

    def item(self, code: str, standard_cost="0", name: str = None, with_base: bool = True,
             is_active: bool = True, setup_complete: bool = True) -> Item:
        item = Item(
            company_id=self.company_id,
            item_code=code,
            item_name=name or f"{code} item",
            standard_cost=Decimal(str(standard_cost)),
            is_active=is_active,
            setup_complete=setup_complete,
        )
        self.db.add(item)
        self.db.flush()

        if with_base:
            base = ItemPackage(
                company_id=self.company_id,
                item_id=item.id,
                pack_type="base",
                pack_name="EA",
                qty_per_pack=Decimal("1"),
                is_base=True,
            )
            self.db.add(base)
            self.db.flush()
            item.package_id = base.id

        self.db.commit()
        return item

    def package(self, item: Item, name: str, factor, is_active: bool = True) -> ItemPackage:
        package = ItemPackage(
            company_id=self.company_id,
            item_id=item.id,
            pack_type="box",
            pack_name=name,
            qty_per_pack=Decimal(str(factor)),
            is_active=is_active,
        )
        self.db.add(package)
        self.db.commit()
        return package

    def warehouse(self, code: str = "W1") -> Warehouse:
        warehouse = Warehouse(company_id=self.company_id, warehouse_code=code, warehouse_name=f"Warehouse {code}")
        self.db.add(warehouse)
        self.db.commit()
        return warehouse

    def stock(self, item: Item, warehouse: Warehouse, quantity, reserved="0") -> ItemWarehouse:
        """On-hand stock in base units, mirrored at the warehouse's default location"""
        location_id = LocationService(self.db).ensure_warehouse_default_location(
            self.company_id, warehouse.id, self.user_id
        )
        balance = ItemWarehouse(
            company_id=self.company_id,
            item_id=item.id,
            warehouse_id=warehouse.id,
            current_stock=Decimal(str(quantity)),
            reserved_stock=Decimal(str(reserved)),
            default_location_id=location_id,
        )
        self.db.add(balance)
        self.db.add(ItemLocation(
            company_id=self.company_id,
            item_id=item.id,
            warehouse_id=warehouse.id,
            location_id=location_id,
            qty_on_hand=Decimal(str(quantity)),
            qty_reserved=Decimal(str(reserved)),
        ))
        self.db.commit()
        return balance

    def template(self, inputs: Iterable[Tuple[Item, str]], outputs: Iterable[tuple],
                 code: str = "TPL-1", is_active: bool = True) -> TransformationTemplate:
        """outputs are (item, quantity) or (item, quantity, is_scrap)"""
        template = TransformationTemplate(
            company_id=self.company_id,
            template_code=code,
            template_name=f"Template {code}",
            is_active=is_active,
            usage_count=0,
        )
        for sequence, (item, quantity) in enumerate(inputs, start=1):
            template.inputs.append(TransformationTemplateInput(
                item_id=item.id, quantity=Decimal(str(quantity)), sequence=sequence,
            ))
        for sequence, output in enumerate(outputs, start=1):
            item, quantity = output[0], output[1]
            is_scrap = output[2] if len(output) > 2 else False
            template.outputs.append(TransformationTemplateOutput(
                item_id=item.id, quantity=Decimal(str(quantity)), is_scrap=is_scrap, sequence=sequence,
            ))
        self.db.add(template)
        self.db.commit()
        return template

    def order(self, warehouse: Warehouse, inputs: Iterable[Tuple[Item, str]], outputs: Iterable[tuple],
              status: str = "PREPARING", code: str = "TO-001-000001") -> TransformationOrder:
        """Order with explicit lines; outputs are (item, planned) or (item, planned, is_scrap)"""
        order = TransformationOrder(
            company_id=self.company_id,
            order_code=code,
            source_warehouse_id=warehouse.id,
            status=status,
            planned_quantity=Decimal("1"),
            created_by=self.user_id,
        )
        for sequence, (item, planned) in enumerate(inputs, start=1):
            order.inputs.append(TransformationOrderInput(
                item_id=item.id, warehouse_id=warehouse.id,
                planned_quantity=Decimal(str(planned)), sequence=sequence,
            ))
        for sequence, output in enumerate(outputs, start=1):
            item, planned = output[0], output[1]
            is_scrap = output[2] if len(output) > 2 else False
            order.outputs.append(TransformationOrderOutput(
                item_id=item.id, warehouse_id=warehouse.id,
                planned_quantity=Decimal(str(planned)), is_scrap=is_scrap, sequence=sequence,
            ))
        self.db.add(order)
        self.db.commit()
        return order


@pytest.fixture
def builder(db_session: Session) -> InventoryBuilder:
    return InventoryBuilder(db_session)


@pytest.fixture
def warehouse(builder: InventoryBuilder) -> Warehouse:
    return builder.warehouse()


@pytest.fixture
def repack_scenario(builder: InventoryBuilder, warehouse: Warehouse) -> dict:
    """
    Item X (EA + BOX12, cost 2.00, 100 on hand) transformed into Y and Z.
    Order is PREPARING with one input line and two output lines.
    """
    x = builder.item("X", standard_cost="2.00")
    box12 = builder.package(x, "BOX12", 12)
    y = builder.item("Y")
    z = builder.item("Z")
    builder.stock(x, warehouse, 100)

    order = builder.order(warehouse, inputs=[(x, 36)], outputs=[(y, 30), (z, 10)])

    return {
        "order": order,
        "warehouse": warehouse,
        "x": x,
        "y": y,
        "z": z,
        "box12": box12,
        "input_line_id": order.inputs[0].id,
        "y_line_id": order.outputs[0].id,
        "z_line_id": order.outputs[1].id,
    }
