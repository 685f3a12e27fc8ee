import uuid
from datetime import datetime, timezone

import pytest
from sqlalchemy import func, select, update

from conftest import API
from tableside.db.models.orders import Order
from tableside.db.models.restaurants import StaffNotification
from tableside.services.orders import can_transition, status_info


@pytest.mark.parametrize(
    "current,new,allowed",
    [
        ("pending", "preparing", True),
        ("pending", "ready", True),
        ("preparing", "completed", True),
        ("ready", "preparing", False),
        ("pending", "cancelled", True),
        ("ready", "cancelled", True),
        ("completed", "cancelled", False),
        ("cancelled", "pending", False),
    ],
)
def test_can_transition(current, new, allowed):
    assert can_transition(current, new) is allowed


def test_status_info_steps():
    assert status_info("pending").step == 1
    assert status_info("completed").label == "Completed"
    assert status_info("cancelled").step == 0


def test_place_dine_in_order_uses_menu_prices(client, owner, menu_item, table, place_order):
    order = place_order(
        [{"menu_item_id": menu_item["id"], "quantity": 2, "notes": "extra basil"}],
        customer_notes="window seat",
    )
    assert order["status"] == "pending"
    assert order["order_type"] == "dine_in"
    assert order["table_number"] == 4
    assert order["total_amount"] == 25.0
    line = order["items"][0]
    assert line["name"] == "Margherita"
    assert line["unit_price"] == 12.5
    assert line["line_total"] == 25.0
    assert line["notes"] == "extra basil"


def test_order_without_tables_configured_is_accepted(client, owner, menu_item, place_order):
    order = place_order([{"menu_item_id": menu_item["id"], "quantity": 1}], table_number=12)
    assert order["table_number"] == 12


def test_unknown_table_rejected_when_tables_exist(client, owner, menu_item, table):
    resp = client.post(
        f"{API}/public/restaurants/{owner['slug']}/orders",
        json={"table_number": 99, "items": [{"menu_item_id": menu_item["id"], "quantity": 1}]},
    )
    assert resp.status_code == 400
    assert resp.json()["error"]["message"] == "Table 99 does not exist"


def test_unknown_menu_item_rejected(client, owner):
    missing = str(uuid.uuid4())
    resp = client.post(
        f"{API}/public/restaurants/{owner['slug']}/orders",
        json={"table_number": 1, "items": [{"menu_item_id": missing, "quantity": 1}]},
    )
    assert resp.status_code == 400
    error = resp.json()["error"]
    assert error["type"] == "validation_error"
    assert error["details"] == {"menu_item_ids": [missing]}


def test_unavailable_item_rejected(client, owner, menu_item):
    client.patch(f"{API}/menu/items/{menu_item['id']}", json={"is_available": False}, headers=owner["headers"])
    resp = client.post(
        f"{API}/public/restaurants/{owner['slug']}/orders",
        json={"table_number": 1, "items": [{"menu_item_id": menu_item["id"], "quantity": 1}]},
    )
    assert resp.status_code == 400
    assert resp.json()["error"]["message"] == "Currently unavailable: Margherita"


def test_delivery_requires_customer_details(client, owner, menu_item):
    url = f"{API}/public/restaurants/{owner['slug']}/orders"
    items = [{"menu_item_id": menu_item["id"], "quantity": 1}]
    resp = client.post(url, json={"order_type": "delivery", "items": items, "customer_name": "Ann"})
    assert resp.status_code == 422

    resp = client.post(
        url,
        json={
            "order_type": "delivery",
            "items": items,
            "customer_name": "Ann",
            "customer_phone": "+1 555 0101",
            "delivery_address": "2 Side Street",
            "payment_proof_url": "https://api.example.com/storage/payment-proofs/x/proof.png",
        },
    )
    assert resp.status_code == 201
    body = resp.json()
    assert body["order_type"] == "delivery"
    assert body["table_number"] == 0


def test_dine_in_requires_table_number(client, owner, menu_item):
    resp = client.post(
        f"{API}/public/restaurants/{owner['slug']}/orders",
        json={"items": [{"menu_item_id": menu_item["id"], "quantity": 1}]},
    )
    assert resp.status_code == 422


def test_status_lifecycle(client, owner, menu_item, place_order):
    order = place_order([{"menu_item_id": menu_item["id"], "quantity": 1}])
    url = f"{API}/orders/{order['id']}/status"

    resp = client.patch(url, json={"status": "ready"}, headers=owner["headers"])
    assert resp.status_code == 200
    assert resp.json()["status"] == "ready"

    # same status again is a no-op
    assert client.patch(url, json={"status": "ready"}, headers=owner["headers"]).status_code == 200

    resp = client.patch(url, json={"status": "preparing"}, headers=owner["headers"])
    assert resp.status_code == 409
    assert resp.json()["error"]["details"] == {"current": "ready", "requested": "preparing"}

    assert client.patch(url, json={"status": "completed"}, headers=owner["headers"]).status_code == 200
    assert client.patch(url, json={"status": "cancelled"}, headers=owner["headers"]).status_code == 409


def test_unknown_status_value(client, owner, menu_item, place_order):
    order = place_order([{"menu_item_id": menu_item["id"], "quantity": 1}])
    resp = client.patch(f"{API}/orders/{order['id']}/status", json={"status": "delivered"}, headers=owner["headers"])
    assert resp.status_code == 422


def test_active_queue_and_summary(client, owner, menu_item, place_order):
    first = place_order([{"menu_item_id": menu_item["id"], "quantity": 1}])
    second = place_order([{"menu_item_id": menu_item["id"], "quantity": 2}])
    third = place_order([{"menu_item_id": menu_item["id"], "quantity": 4}])
    client.patch(f"{API}/orders/{first['id']}/status", json={"status": "completed"}, headers=owner["headers"])
    client.patch(f"{API}/orders/{third['id']}/status", json={"status": "cancelled"}, headers=owner["headers"])

    active = client.get(f"{API}/orders/active", headers=owner["headers"]).json()
    assert [o["id"] for o in active] == [second["id"]]

    summary = client.get(f"{API}/orders/summary", headers=owner["headers"]).json()
    assert summary["total_orders"] == 3
    assert summary["completed_orders"] == 1
    assert summary["active_orders"] == 1
    assert summary["total_revenue"] == 37.5
    assert summary["by_status"] == {"completed": 1, "pending": 1, "cancelled": 1}

    cancelled = client.get(f"{API}/orders", params={"status": "cancelled"}, headers=owner["headers"]).json()
    assert [o["id"] for o in cancelled] == [third["id"]]


def test_orders_are_isolated_between_restaurants(client, owner, menu_item, place_order, register):
    order = place_order([{"menu_item_id": menu_item["id"], "quantity": 1}])
    rival = register("rival@tableside.io", restaurant_name="Rival Diner")
    rival_id = str(rival["memberships"][0]["restaurant_id"])
    headers = {"Authorization": f"Bearer {rival['token']}", "X-Restaurant-ID": rival_id}

    assert client.get(f"{API}/orders", headers=headers).json() == []
    assert client.get(f"{API}/orders/{order['id']}", headers=headers).status_code == 404


def test_public_tracking_and_table_feed(client, owner, menu_item, place_order):
    order = place_order([{"menu_item_id": menu_item["id"], "quantity": 1}], table_number=7)
    client.patch(f"{API}/orders/{order['id']}/status", json={"status": "preparing"}, headers=owner["headers"])

    resp = client.get(f"{API}/public/restaurants/{owner['slug']}/orders/{order['id']}")
    assert resp.status_code == 200
    tracking = resp.json()
    assert tracking["restaurant_name"] == "Casa Verde"
    assert tracking["status_info"] == {
        "status": "preparing",
        "label": "Preparing",
        "description": "The kitchen is preparing your order.",
        "step": 2,
    }

    feed = client.get(f"{API}/public/restaurants/{owner['slug']}/tables/7/orders").json()
    assert [o["id"] for o in feed] == [order["id"]]
    assert client.get(f"{API}/public/restaurants/{owner['slug']}/tables/8/orders").json() == []


def test_receipts(client, owner, menu_item, place_order):
    order = place_order([{"menu_item_id": menu_item["id"], "quantity": 2}])
    url = f"{API}/orders/{order['id']}/receipt"
    short = order["id"][:8]

    text = client.get(url, headers=owner["headers"])
    assert text.status_code == 200
    assert text.headers["content-type"].startswith("text/plain")
    assert f'filename="receipt-{short}.txt"' in text.headers["content-disposition"]
    assert "Casa Verde" in text.text
    assert "Margherita" in text.text

    pdf = client.get(url, params={"format": "pdf"}, headers=owner["headers"])
    assert pdf.status_code == 200
    assert pdf.headers["content-type"] == "application/pdf"
    assert pdf.content.startswith(b"%PDF")


def test_assigned_staff_are_notified(client, owner, menu_item, table, add_staff, place_order):
    waiter = add_staff("waiter@tableside.io")
    client.post(
        f"{API}/assignments",
        json={"staff_user_id": waiter["id"], "table_id": table["id"]},
        headers=owner["headers"],
    )
    order = place_order([{"menu_item_id": menu_item["id"], "quantity": 1}])

    notes = client.get(f"{API}/staff/notifications", headers=waiter["headers"]).json()
    assert len(notes) == 1
    assert notes[0]["order_id"] == order["id"]
    assert notes[0]["type"] == "new_order"
    assert notes[0]["message"] == "New order at table 4 ($12.50)"

    resp = client.post(f"{API}/staff/notifications/{notes[0]['id']}/read", headers=waiter["headers"])
    assert resp.status_code == 200
    assert resp.json()["is_read"] is True
    assert client.get(f"{API}/staff/notifications", headers=waiter["headers"]).json() == []

    # the owner was not assigned to the table
    assert client.get(f"{API}/staff/notifications", headers=owner["headers"]).json() == []


def test_removed_staff_are_not_notified(client, owner, menu_item, table, add_staff, place_order, session_maker):
    kept = add_staff("kept@tableside.io")
    gone = add_staff("gone@tableside.io")
    for waiter in (kept, gone):
        client.post(
            f"{API}/assignments",
            json={"staff_user_id": waiter["id"], "table_id": table["id"]},
            headers=owner["headers"],
        )
    members = client.get(f"{API}/staff/members", headers=owner["headers"]).json()
    gone_member = next(m for m in members if m["email"] == "gone@tableside.io")
    assert client.delete(f"{API}/staff/members/{gone_member['id']}", headers=owner["headers"]).status_code == 204

    place_order([{"menu_item_id": menu_item["id"], "quantity": 1}])

    assert len(client.get(f"{API}/staff/notifications", headers=kept["headers"]).json()) == 1

    async def count_for(user_id: str) -> int:
        async with session_maker() as session:
            stmt = select(func.count()).select_from(StaffNotification).where(
                StaffNotification.staff_user_id == uuid.UUID(user_id)
            )
            return (await session.execute(stmt)).scalar_one()

    assert client.portal.call(count_for, gone["id"]) == 0


@pytest.fixture
def backdate(client, session_maker):
    """Move an order's created_at, running on the app's event loop."""

    async def _update(order_id: str, when: datetime) -> None:
        async with session_maker() as session:
            await session.execute(update(Order).where(Order.id == uuid.UUID(order_id)).values(created_at=when))
            await session.commit()

    def _backdate(order_id: str, when: datetime) -> None:
        client.portal.call(_update, order_id, when)

    return _backdate


def _ids(client, owner, **params):
    resp = client.get(f"{API}/orders", params=params, headers=owner["headers"])
    assert resp.status_code == 200, resp.text
    return {o["id"] for o in resp.json()}


def test_search_matches_table_number_and_id_fragments(client, owner, menu_item, place_order):
    line = [{"menu_item_id": menu_item["id"], "quantity": 1}]
    big_table = place_order(line, table_number=1234)
    small_table = place_order(line, table_number=7)
    placed = [big_table, small_table]

    def expected(term):
        # ids are random hex, so a digit run can also hit an id
        return {
            o["id"] for o in placed if term in o["id"].replace("-", "") or term in str(o["table_number"])
        }

    for term in ("234", "1234", "23"):
        found = _ids(client, owner, search=term)
        assert big_table["id"] in found
        assert found == expected(term)

    fragment = small_table["id"][:8]
    assert _ids(client, owner, search=fragment.upper()) == expected(fragment)

    summary = client.get(f"{API}/orders/summary", params={"search": "1234"}, headers=owner["headers"]).json()
    assert summary["total_orders"] == len(expected("1234"))


def test_search_wildcards_match_literally(client, owner, menu_item, place_order):
    place_order([{"menu_item_id": menu_item["id"], "quantity": 1}], table_number=5)
    assert _ids(client, owner, search="_") == set()
    assert _ids(client, owner, search="%") == set()


def test_date_range_includes_whole_final_day(client, owner, menu_item, place_order, backdate):
    line = [{"menu_item_id": menu_item["id"], "quantity": 1}]
    late_evening = place_order(line)
    next_morning = place_order(line)
    earlier = place_order(line)
    backdate(late_evening["id"], datetime(2026, 3, 10, 23, 30, tzinfo=timezone.utc))
    backdate(next_morning["id"], datetime(2026, 3, 11, 0, 30, tzinfo=timezone.utc))
    backdate(earlier["id"], datetime(2026, 3, 8, 12, 0, tzinfo=timezone.utc))

    assert _ids(client, owner, date_to="2026-03-10") == {late_evening["id"], earlier["id"]}
    assert _ids(client, owner, date_from="2026-03-10", date_to="2026-03-10") == {late_evening["id"]}
    assert _ids(client, owner, date_from="2026-03-11") == {next_morning["id"]}
    assert _ids(client, owner, date_from="2026-03-09", date_to="2026-03-11") == {
        late_evening["id"],
        next_morning["id"],
    }
