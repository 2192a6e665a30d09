"""
HTTP tests for the order and production group routers.
"""

from datetime import datetime
from unittest.mock import AsyncMock, patch

import pytest
from beanie import PydanticObjectId
from fastapi.testclient import TestClient

from app.core.auth.deps import get_current_user
from app.core.models.order import Order, OrderLine, OrderStatus
from app.core.models.production.production_group import ProductionGroup
from app.modules.orders.order_service import OrderService
from app.modules.production_groups.production_group_service import ProductionGroupService
from main import app
from tests.factories import make_user

COMPANY_ID = PydanticObjectId()


@pytest.fixture
def client():
    yield TestClient(app)
    app.dependency_overrides.clear()


def login_as(role: str, company_id=COMPANY_ID):
    user = make_user(role=role, company_id=company_id)
    app.dependency_overrides[get_current_user] = lambda: user
    return user


@pytest.fixture
def order(db) -> Order:
    return Order(
        id=PydanticObjectId(),
        order_code="ORD-20260310-AB12CD34",
        company_id=COMPANY_ID,
        sales_person_id=PydanticObjectId(),
        order_date=datetime(2026, 3, 10, 5, 30),
        products=[OrderLine(product_id=PydanticObjectId(), quantity=3, price=10, total=30)],
        total_amount=30,
    )


@pytest.fixture
def group(db) -> ProductionGroup:
    return ProductionGroup(id=PydanticObjectId(), name="Bread Line", company_id=COMPANY_ID, total_items=0)


# ===================
# ORDERS
# ===================

def test_sales_can_place_orders(client, order):
    login_as("Sales")
    with patch.object(OrderService, "create_order", new=AsyncMock(return_value=order)):
        response = client.post("/api/v1/orders", json={
            "order_date": "2026-03-10T11:00:00+05:30",
            "products": [{"product_id": str(order.products[0].product_id), "quantity": 3, "price": 10}],
        })

    assert response.status_code == 201
    assert response.json()["order_code"] == "ORD-20260310-AB12CD34"
    assert response.json()["total_amount"] == 30


def test_packing_cannot_place_orders(client):
    login_as("Packing")
    response = client.post("/api/v1/orders", json={
        "order_date": "2026-03-10T11:00:00", "products": [{"product_id": str(PydanticObjectId()), "quantity": 1}],
    })
    assert response.status_code == 403


def test_zero_quantity_is_422(client):
    login_as("Sales")
    response = client.post("/api/v1/orders", json={
        "order_date": "2026-03-10T11:00:00", "products": [{"product_id": str(PydanticObjectId()), "quantity": 0}],
    })
    assert response.status_code == 422


def test_unknown_status_is_422(client, order):
    login_as("Unit Head")
    response = client.patch(f"/api/v1/orders/{order.id}/status", json={"status": "shipped"})
    assert response.status_code == 422


def test_status_change(client, order):
    login_as("Accounts")
    order.status = OrderStatus.approved
    mock = AsyncMock(return_value=order)
    with patch.object(OrderService, "update_status", new=mock):
        response = client.patch(f"/api/v1/orders/{order.id}/status", json={"status": "approved"})

    assert response.status_code == 200
    assert response.json()["status"] == "approved"
    assert mock.await_args.args[0] == str(order.id)


def test_delete_requires_unit_head(client, order):
    login_as("Sales")
    response = client.delete(f"/api/v1/orders/{order.id}")
    assert response.status_code == 403


# ===================
# PRODUCTION GROUPS
# ===================

def test_create_group_uses_caller_company(client, group):
    login_as("Unit Manager")
    mock = AsyncMock(return_value=group)
    with patch.object(ProductionGroupService, "create_group", new=mock):
        response = client.post("/api/v1/production-groups", json={"name": "Bread Line"})

    assert response.status_code == 201
    assert response.json()["name"] == "Bread Line"
    assert mock.await_args.args[1] == COMPANY_ID


def test_blank_group_name_is_422(client):
    login_as("Unit Manager")
    response = client.post("/api/v1/production-groups", json={"name": "   "})
    assert response.status_code == 422


def test_list_groups(client, group):
    login_as("Unit Head")
    with patch.object(ProductionGroupService, "list_groups", new=AsyncMock(return_value=[group])):
        response = client.get("/api/v1/production-groups")

    assert response.status_code == 200
    assert [g["name"] for g in response.json()] == ["Bread Line"]


def test_manager_cannot_delete_group(client, group):
    login_as("Unit Manager")
    response = client.delete(f"/api/v1/production-groups/{group.id}")
    assert response.status_code == 403
