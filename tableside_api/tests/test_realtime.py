import uuid

import pytest
from starlette.websockets import WebSocketDisconnect

from conftest import API
from tableside.repositories.orders import OrderRepository
from tableside.services.realtime import broadcast_manager


def _orders_socket(client, token, restaurant_id):
    return client.websocket_connect(f"/ws/orders?token={token}&restaurant_id={restaurant_id}")


def test_staff_feed_snapshot_and_ping(client, owner, menu_item, place_order):
    order = place_order([{"menu_item_id": menu_item["id"], "quantity": 1}])
    with _orders_socket(client, owner["token"], owner["restaurant_id"]) as ws:
        snapshot = ws.receive_json()
        assert snapshot["type"] == "orders.snapshot"
        assert snapshot["channel"] == f"orders:{owner['restaurant_id']}"
        assert [o["id"] for o in snapshot["payload"]["orders"]] == [order["id"]]

        ws.send_text("ping")
        assert ws.receive_text() == "pong"


def test_staff_feed_receives_new_orders(client, owner, menu_item, place_order):
    with _orders_socket(client, owner["token"], owner["restaurant_id"]) as ws:
        assert ws.receive_json()["payload"]["orders"] == []

        order = place_order([{"menu_item_id": menu_item["id"], "quantity": 2}])
        event = ws.receive_json()
        assert event["type"] == "order.created"
        assert event["payload"]["order_id"] == order["id"]
        assert event["payload"]["status"] == "pending"

        client.patch(f"{API}/orders/{order['id']}/status", json={"status": "preparing"}, headers=owner["headers"])
        event = ws.receive_json()
        assert event["type"] == "order.updated"
        assert event["payload"]["previous_status"] == "pending"
        assert event["payload"]["status_changed"] is True


def test_staff_feed_rejects_bad_credentials(client, owner):
    with _orders_socket(client, "garbage", owner["restaurant_id"]) as ws:
        with pytest.raises(WebSocketDisconnect) as exc:
            ws.receive_json()
    assert exc.value.code == 4401


def test_staff_feed_rejects_outsiders(client, owner, register):
    outsider = register("outsider@tableside.io")
    with _orders_socket(client, outsider["token"], owner["restaurant_id"]) as ws:
        with pytest.raises(WebSocketDisconnect) as exc:
            ws.receive_json()
    assert exc.value.code == 4403


def test_staff_feed_unknown_restaurant(client, owner):
    with _orders_socket(client, owner["token"], uuid.uuid4()) as ws:
        with pytest.raises(WebSocketDisconnect) as exc:
            ws.receive_json()
    assert exc.value.code == 4404


def test_order_tracking_socket(client, owner, menu_item, place_order):
    order = place_order([{"menu_item_id": menu_item["id"], "quantity": 1}])
    with client.websocket_connect(f"/ws/public/{owner['slug']}/orders/{order['id']}") as ws:
        snapshot = ws.receive_json()
        assert snapshot["type"] == "order.snapshot"
        assert snapshot["payload"]["status_info"]["step"] == 1

        client.patch(f"{API}/orders/{order['id']}/status", json={"status": "ready"}, headers=owner["headers"])
        event = ws.receive_json()
        assert event["type"] == "order.updated"
        assert event["payload"]["status"] == "ready"


def test_order_tracking_unknown_order(client, owner):
    with client.websocket_connect(f"/ws/public/{owner['slug']}/orders/{uuid.uuid4()}") as ws:
        with pytest.raises(WebSocketDisconnect) as exc:
            ws.receive_json()
    assert exc.value.code == 4404


def test_table_socket(client, owner, menu_item, place_order):
    with client.websocket_connect(f"/ws/public/{owner['slug']}/tables/4") as ws:
        snapshot = ws.receive_json()
        assert snapshot["type"] == "table.snapshot"
        assert snapshot["payload"] == {"orders": []}
        assert snapshot["channel"] == f"table:{owner['restaurant_id']}:4"

        order = place_order([{"menu_item_id": menu_item["id"], "quantity": 1}], table_number=4)
        event = ws.receive_json()
        assert event["type"] == "order.created"
        assert event["payload"]["table_number"] == 4
        assert event["payload"]["order_id"] == order["id"]


def test_inventory_feed(client, owner):
    create = client.post(
        f"{API}/inventory/items",
        json={"name": "Salt", "unit": "kg", "quantity_in_stock": 1, "minimum_stock_level": 2},
        headers=owner["headers"],
    )
    salt = create.json()
    url = f"/ws/inventory?token={owner['token']}&restaurant_id={owner['restaurant_id']}"
    with client.websocket_connect(url) as ws:
        snapshot = ws.receive_json()
        assert snapshot["type"] == "inventory.snapshot"
        assert snapshot["channel"] == f"inventory:{owner['restaurant_id']}"
        assert [i["name"] for i in snapshot["payload"]["low_stock"]] == ["Salt"]

        client.post(f"{API}/inventory/items/{salt['id']}/adjust", json={"delta": 4}, headers=owner["headers"])
        event = ws.receive_json()
        assert event["type"] == "inventory.changed"
        assert event["payload"]["inventory_item_id"] == salt["id"]
        assert event["payload"]["quantity_in_stock"] == 5
        assert event["payload"]["is_low_stock"] is False


def test_closed_socket_leaves_topic(client, owner):
    topic = broadcast_manager.orders_topic(owner["restaurant_id"])
    with _orders_socket(client, owner["token"], owner["restaurant_id"]) as ws:
        ws.receive_json()
        assert broadcast_manager.subscriber_count(topic) == 1
    assert broadcast_manager.subscriber_count(topic) == 0


def test_failed_snapshot_leaves_topic(client, owner, monkeypatch):
    async def broken(self, restaurant_id):
        raise RuntimeError("database unavailable")

    monkeypatch.setattr(OrderRepository, "list_active", broken)
    topic = broadcast_manager.orders_topic(owner["restaurant_id"])
    with pytest.raises(RuntimeError):
        with _orders_socket(client, owner["token"], owner["restaurant_id"]) as ws:
            ws.receive_json()
    assert broadcast_manager.subscriber_count(topic) == 0
