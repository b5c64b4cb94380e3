"""
API Integration Tests
Normalization and transformation endpoints through the FastAPI app
"""

from decimal import Decimal
from fastapi.testclient import TestClient


class TestNormalizationAPI:

    def test_normalize(self, client: TestClient, builder, api_headers):
        item = builder.item("X")
        box12 = builder.package(item, "BOX12", 12)

        response = client.post("/api/v1/inventory/normalize", headers=api_headers, json={
            "item_id": item.id, "packaging_id": box12.id, "input_qty": "3",
        })

        assert response.status_code == 200
        data = response.json()
        assert Decimal(data["normalized_qty"]) == Decimal("36")
        assert data["metadata"]["input_package_name"] == "BOX12"

    def test_normalize_unknown_item(self, client: TestClient, api_headers):
        response = client.post("/api/v1/inventory/normalize", headers=api_headers, json={
            "item_id": 404, "input_qty": "1",
        })

        assert response.status_code == 404
        data = response.json()
        assert data["error"] == "ItemNotFound"
        assert data["code"] == "ITEM_NOT_FOUND"

    def test_normalize_negative_quantity(self, client: TestClient, builder, api_headers):
        item = builder.item("X")

        response = client.post("/api/v1/inventory/normalize", headers=api_headers, json={
            "item_id": item.id, "input_qty": "-2",
        })

        assert response.status_code == 422
        assert response.json()["code"] == "INVALID_QUANTITY"

    def test_company_header_required(self, client: TestClient, builder):
        item = builder.item("X")
        response = client.post("/api/v1/inventory/normalize", json={"item_id": item.id, "input_qty": "1"})
        assert response.status_code == 422

    def test_batch(self, client: TestClient, builder, api_headers):
        item = builder.item("X")
        box12 = builder.package(item, "BOX12", 12)

        response = client.post("/api/v1/inventory/normalize/batch", headers=api_headers, json={
            "items": [
                {"item_id": item.id, "packaging_id": box12.id, "input_qty": "2", "unit_cost": "0.5"},
                {"item_id": item.id, "input_qty": "4"},
            ],
        })

        assert response.status_code == 200
        results = response.json()
        assert [Decimal(r["normalized_qty"]) for r in results] == [Decimal("24"), Decimal("4")]
        assert Decimal(results[0]["total_cost"]) == Decimal("12")

    def test_denormalize(self, client: TestClient):
        response = client.get("/api/v1/inventory/denormalize", params={"base_qty": "40", "conversion_factor": "12"})

        assert response.status_code == 200
        data = response.json()
        assert data["whole_packages"] == 3
        assert Decimal(data["remainder"]) == Decimal("4")

    def test_denormalize_bad_factor(self, client: TestClient):
        response = client.get("/api/v1/inventory/denormalize", params={"base_qty": "40", "conversion_factor": "0"})

        assert response.status_code == 422
        assert response.json()["code"] == "INVALID_CONVERSION_FACTOR"


class TestTransformationAPI:

    def test_order_lifecycle(self, client: TestClient, builder, warehouse, api_headers):
        x = builder.item("X", standard_cost="2.00")
        y = builder.item("Y")
        builder.stock(x, warehouse, 100)
        template = builder.template(inputs=[(x, 2)], outputs=[(y, 1)])

        response = client.post("/api/v1/transformations/orders", headers=api_headers, json={
            "template_id": template.id, "warehouse_id": warehouse.id, "planned_quantity": "10",
        })
        assert response.status_code == 201
        order = response.json()
        assert order["status"] == "DRAFT"
        order_id = order["id"]

        response = client.get(f"/api/v1/transformations/templates/{template.id}/lock")
        assert response.json() == {"is_locked": True, "usage_count": 1}

        response = client.post(f"/api/v1/transformations/orders/{order_id}/transition",
                               headers=api_headers, json={"to_status": "PREPARING"})
        assert response.status_code == 200
        assert response.json()["status"] == "PREPARING"

        response = client.get(f"/api/v1/transformations/orders/{order_id}/stock-availability")
        assert response.json()["is_available"] is True

        response = client.post(f"/api/v1/transformations/orders/{order_id}/execute", headers=api_headers, json={
            "inputs": [{"input_line_id": order["inputs"][0]["id"], "consumed_quantity": "20"}],
            "outputs": [{"output_line_id": order["outputs"][0]["id"], "produced_quantity": "10"}],
        })
        assert response.status_code == 200
        result = response.json()
        assert result["success"] is True
        assert Decimal(result["total_input_cost"]) == Decimal("40")
        assert Decimal(result["total_output_cost"]) == Decimal("40")

        response = client.get(f"/api/v1/transformations/orders/{order_id}")
        assert response.json()["status"] == "COMPLETED"

        response = client.get(f"/api/v1/transformations/orders/{order_id}/lineage")
        assert response.status_code == 200
        assert len(response.json()) == 1

    def test_execute_insufficient_stock(self, client: TestClient, repack_scenario, api_headers):
        scenario = repack_scenario
        order_id = scenario["order"].id

        response = client.post(f"/api/v1/transformations/orders/{order_id}/execute", headers=api_headers, json={
            "inputs": [{"input_line_id": scenario["input_line_id"], "consumed_quantity": "500"}],
            "outputs": [{"output_line_id": scenario["y_line_id"], "produced_quantity": "30"}],
        })

        assert response.status_code == 409
        data = response.json()
        assert data["code"] == "INSUFFICIENT_STOCK"
        assert data["details"]["items"][0]["item_code"] == "X"

        response = client.get(f"/api/v1/transformations/orders/{order_id}")
        assert response.json()["status"] == "PREPARING"

    def test_execute_wrong_state(self, client: TestClient, builder, warehouse, api_headers):
        x = builder.item("X")
        y = builder.item("Y")
        order = builder.order(warehouse, inputs=[(x, 1)], outputs=[(y, 1)], status="DRAFT")

        response = client.post(f"/api/v1/transformations/orders/{order.id}/execute", headers=api_headers,
                               json={"inputs": [], "outputs": []})

        assert response.status_code == 409
        assert response.json()["details"]["current_status"] == "DRAFT"

    def test_invalid_transition(self, client: TestClient, repack_scenario, api_headers):
        order_id = repack_scenario["order"].id

        response = client.post(f"/api/v1/transformations/orders/{order_id}/transition",
                               headers=api_headers, json={"to_status": "DRAFT"})

        assert response.status_code == 409
        assert response.json()["code"] == "INVALID_STATE"

    def test_order_not_found(self, client: TestClient):
        response = client.get("/api/v1/transformations/orders/999")
        assert response.status_code == 404
        assert response.json()["code"] == "ORDER_NOT_FOUND"

    def test_validate_template(self, client: TestClient, builder):
        x = builder.item("X")
        template = builder.template(inputs=[(x, 1)], outputs=[])

        response = client.get(f"/api/v1/transformations/templates/{template.id}/validate")

        assert response.status_code == 200
        assert response.json() == {"is_valid": False, "error": "Template has no outputs"}


def test_health(client: TestClient):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
