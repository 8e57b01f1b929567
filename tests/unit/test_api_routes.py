from __future__ import annotations

import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

sys.path.insert(0, str(Path(__file__).resolve().parents[2] / "src"))

from fakes import (
    AllowAllAuthorizer,
    DenyAllAuthorizer,
    FakePublisher,
    InMemoryStore,
    seeded_store,
    uow_factory_for,
)

import orderflow.api.dependencies as dependencies
from orderflow.api.main import app

WAITER = {"X-Actor-Id": "stf_waiter"}


@pytest.fixture
def store(monkeypatch) -> InMemoryStore:
    store = seeded_store()
    publisher = FakePublisher()
    monkeypatch.setattr(dependencies, "uow_factory", lambda: uow_factory_for(store))
    monkeypatch.setattr(dependencies, "authorizer", lambda: AllowAllAuthorizer())
    monkeypatch.setattr(dependencies, "publisher", lambda: publisher)
    return store


def _create_order(client: TestClient, table_id: str | None = "tbl_001", **extra) -> dict:
    response = client.post(
        "/v1/restaurants/rst_001/orders",
        json={"tableId": table_id, "staffId": "stf_waiter", **extra},
        headers=WAITER,
    )
    assert response.status_code == 201
    return response.json()


def _add_item(client: TestClient, order_id: str, menu_item_id: str = "itm_001") -> str:
    response = client.post(
        f"/v1/orders/{order_id}/items",
        json={"menuItemId": menu_item_id, "quantity": 1},
        headers=WAITER,
    )
    assert response.status_code == 201
    return response.json()["items"][-1]["itemId"]


def _move(client: TestClient, item_id: str, status: str):
    return client.post(
        f"/v1/order-items/{item_id}/status",
        json={"status": status},
        headers=WAITER,
    )


def test_order_lifecycle_over_http(store: InMemoryStore) -> None:
    client = TestClient(app)
    order = _create_order(client, servePolicy="PARTIAL", note="no onions")
    assert order["status"] == "PLACED"
    assert order["note"] == "no onions"

    item_id = _add_item(client, order["orderId"])
    assert _move(client, item_id, "PREPARING").json()["status"] == "PREPARING"
    assert _move(client, item_id, "READY").json()["status"] == "READY"
    served = _move(client, item_id, "SERVED")

    assert served.status_code == 200
    assert served.json()["status"] == "COMPLETED"
    table = client.get("/v1/restaurants/rst_001/tables/tbl_001", headers=WAITER).json()
    assert table["status"] == "FREE"

    events = client.get(f"/v1/orders/{order['orderId']}/events", headers=WAITER).json()
    assert events["orderId"] == order["orderId"]
    assert events["events"][0]["eventType"] == "CREATED"


def test_table_not_free_error_body(store: InMemoryStore) -> None:
    client = TestClient(app)
    _create_order(client)

    response = client.post(
        "/v1/restaurants/rst_001/orders",
        json={"tableId": "tbl_001", "staffId": "stf_waiter"},
        headers={**WAITER, "X-Request-Id": "req-42"},
    )

    assert response.status_code == 409
    body = response.json()
    assert body["error"]["code"] == "TABLE_NOT_FREE"
    assert body["error"]["details"]["table_id"] == "tbl_001"
    assert body["requestId"] == "req-42"


def test_invalid_item_transition_is_conflict(store: InMemoryStore) -> None:
    client = TestClient(app)
    item_id = _add_item(client, _create_order(client)["orderId"])

    response = _move(client, item_id, "SERVED")

    assert response.status_code == 409
    error = response.json()["error"]
    assert error["code"] == "INVALID_ITEM_TRANSITION"
    assert error["details"] == {"item_id": item_id, "current": "PENDING", "attempted": "SERVED"}


def test_add_item_to_started_order_is_not_modifiable(store: InMemoryStore) -> None:
    client = TestClient(app)
    order_id = _create_order(client)["orderId"]
    _move(client, _add_item(client, order_id), "PREPARING")

    response = client.post(
        f"/v1/orders/{order_id}/items",
        json={"menuItemId": "itm_002", "quantity": 1},
        headers=WAITER,
    )

    assert response.status_code == 409
    assert response.json()["error"]["code"] == "ORDER_NOT_MODIFIABLE"


def test_unavailable_menu_item_is_rejected(store: InMemoryStore) -> None:
    client = TestClient(app)
    order_id = _create_order(client)["orderId"]

    response = client.post(
        f"/v1/orders/{order_id}/items",
        json={"menuItemId": "itm_004", "quantity": 1},
        headers=WAITER,
    )

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "MENU_ITEM_UNAVAILABLE"


def test_missing_resources_are_404(store: InMemoryStore) -> None:
    client = TestClient(app)

    order = client.get("/v1/orders/ord_missing", headers=WAITER)
    item = _move(client, "itm_missing", "PREPARING")
    table = client.get("/v1/restaurants/rst_001/tables/tbl_404", headers=WAITER)

    assert (order.status_code, order.json()["error"]["code"]) == (404, "ORDER_NOT_FOUND")
    assert (item.status_code, item.json()["error"]["code"]) == (404, "ORDER_ITEM_NOT_FOUND")
    assert (table.status_code, table.json()["error"]["code"]) == (404, "TABLE_NOT_FOUND")


def test_malformed_body_and_missing_actor_are_validation_errors(store: InMemoryStore) -> None:
    client = TestClient(app)

    bad_body = client.post(
        "/v1/restaurants/rst_001/orders",
        json={"tableId": "tbl_001"},
        headers=WAITER,
    )
    no_actor = client.get("/v1/restaurants/rst_001/orders")
    bad_status = client.post(
        "/v1/restaurants/rst_001/tables/tbl_001/status",
        json={"status": "DIRTY"},
        headers=WAITER,
    )

    assert bad_body.status_code == 400
    assert bad_body.json()["error"]["code"] == "VALIDATION_ERROR"
    assert no_actor.status_code == 400
    assert no_actor.json()["error"]["code"] == "VALIDATION_ERROR"
    assert bad_status.status_code == 400
    assert bad_status.json()["error"]["details"]["field"] == "status"


def test_permission_denied_is_403(store: InMemoryStore, monkeypatch) -> None:
    monkeypatch.setattr(dependencies, "authorizer", lambda: DenyAllAuthorizer())
    client = TestClient(app)

    response = client.post(
        "/v1/restaurants/rst_001/orders",
        json={"tableId": "tbl_001", "staffId": "stf_waiter"},
        headers={"X-Actor-Id": "stf_nobody"},
    )

    assert response.status_code == 403
    assert response.json()["error"]["code"] == "PERMISSION_DENIED"


def test_order_status_transfer_and_listing(store: InMemoryStore) -> None:
    client = TestClient(app)
    first = _create_order(client, "tbl_001")["orderId"]
    second = _create_order(client, None, customerName="Takeaway Tom")["orderId"]

    transfer = client.post(
        f"/v1/orders/{first}/transfer",
        json={"staffId": "stf_waiter_2"},
        headers=WAITER,
    )
    cancel = client.post(f"/v1/orders/{second}/status", json={"status": "CANCELLED"}, headers=WAITER)
    invalid = client.post(f"/v1/orders/{first}/status", json={"status": "COMPLETED"}, headers=WAITER)
    active = client.get("/v1/restaurants/rst_001/orders", headers=WAITER)

    assert transfer.json()["staffId"] == "stf_waiter_2"
    assert cancel.json()["status"] == "CANCELLED"
    assert invalid.status_code == 409
    assert invalid.json()["error"]["code"] == "INVALID_ORDER_TRANSITION"
    assert [order["orderId"] for order in active.json()["orders"]] == [first]


def test_table_endpoints(store: InMemoryStore) -> None:
    client = TestClient(app)
    order_id = _create_order(client, "tbl_002")["orderId"]

    tables = client.get("/v1/restaurants/rst_001/tables", headers=WAITER).json()["tables"]
    reserve_busy = client.post(
        "/v1/restaurants/rst_001/tables/tbl_002/status",
        json={"status": "RESERVED"},
        headers=WAITER,
    )
    reserve_free = client.post(
        "/v1/restaurants/rst_001/tables/tbl_003/status",
        json={"status": "reserved"},
        headers=WAITER,
    )
    table_orders = client.get("/v1/restaurants/rst_001/tables/tbl_002/orders", headers=WAITER)

    assert {table["tableId"]: table["status"] for table in tables} == {
        "tbl_001": "FREE",
        "tbl_002": "OCCUPIED",
        "tbl_003": "FREE",
    }
    assert reserve_busy.status_code == 409
    assert reserve_busy.json()["error"]["details"]["order_id"] == order_id
    assert reserve_free.json()["status"] == "RESERVED"
    assert [order["orderId"] for order in table_orders.json()["orders"]] == [order_id]


def test_kitchen_view_endpoint(store: InMemoryStore) -> None:
    client = TestClient(app)
    order_id = _create_order(client)["orderId"]
    item_id = _add_item(client, order_id, "itm_002")
    _move(client, item_id, "PREPARING")

    response = client.get("/v1/restaurants/rst_001/kitchen/view", headers=WAITER)

    assert response.status_code == 200
    body = response.json()
    assert body["restaurantId"] == "rst_001"
    assert body["columns"]["pending"] == []
    (card,) = body["columns"]["preparing"]
    assert card["orderId"] == order_id
    assert card["heat"] == "GREEN"
    assert card["budgetSeconds"] == 18 * 60
    assert card["items"][0]["name"] == "Chicken Alfredo"
    assert card["items"][0]["hint"] == "ACTIVE"
