import uuid

from conftest import API


def _setup(client, owner):
    supplier = client.post(f"{API}/inventory/suppliers", json={"name": "Dairy Farm"}, headers=owner["headers"]).json()
    milk = client.post(
        f"{API}/inventory/items",
        json={"name": "Milk", "unit": "l", "quantity_in_stock": 2, "minimum_stock_level": 5, "supplier_id": supplier["id"]},
        headers=owner["headers"],
    ).json()
    butter = client.post(
        f"{API}/inventory/items", json={"name": "Butter", "unit": "kg", "quantity_in_stock": 1}, headers=owner["headers"]
    ).json()
    return supplier, milk, butter


def _create_po(client, owner, supplier, milk, butter):
    resp = client.post(
        f"{API}/procurement/purchase-orders",
        json={
            "supplier_id": supplier["id"],
            "notes": "Tuesday delivery",
            "items": [
                {"inventory_item_id": milk["id"], "quantity_ordered": 12, "unit_cost": 0.9},
                {"inventory_item_id": butter["id"], "quantity_ordered": 2, "unit_cost": 7.25},
            ],
        },
        headers=owner["headers"],
    )
    assert resp.status_code == 201, resp.text
    return resp.json()


def _stock(client, owner):
    return {i["name"]: i["quantity_in_stock"] for i in client.get(f"{API}/inventory/items", headers=owner["headers"]).json()}


def test_create_purchase_order(client, owner):
    supplier, milk, butter = _setup(client, owner)
    po = _create_po(client, owner, supplier, milk, butter)
    assert po["order_number"].startswith("PO-")
    assert po["status"] == "pending"
    assert po["total_amount"] == 25.3
    assert po["supplier_name"] == "Dairy Farm"
    assert po["created_by"] == owner["id"]
    assert {line["inventory_item_name"] for line in po["items"]} == {"Milk", "Butter"}

    fetched = client.get(f"{API}/procurement/purchase-orders/{po['id']}", headers=owner["headers"]).json()
    assert fetched["id"] == po["id"]


def test_purchase_order_with_foreign_item(client, owner):
    resp = client.post(
        f"{API}/procurement/purchase-orders",
        json={"items": [{"inventory_item_id": str(uuid.uuid4()), "quantity_ordered": 1, "unit_cost": 1}]},
        headers=owner["headers"],
    )
    assert resp.status_code == 400
    assert resp.json()["error"]["message"] == "Inventory item not found"


def test_receive_in_full_adds_stock(client, owner):
    supplier, milk, butter = _setup(client, owner)
    po = _create_po(client, owner, supplier, milk, butter)

    resp = client.post(f"{API}/procurement/purchase-orders/{po['id']}/receive", headers=owner["headers"])
    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "received"
    assert body["received_at"] is not None
    assert _stock(client, owner) == {"Butter": 3, "Milk": 14}

    again = client.post(f"{API}/procurement/purchase-orders/{po['id']}/receive", headers=owner["headers"])
    assert again.status_code == 409
    assert again.json()["error"]["message"] == "Purchase order is already received"


def test_partial_receive(client, owner):
    supplier, milk, butter = _setup(client, owner)
    po = _create_po(client, owner, supplier, milk, butter)
    milk_line = next(line for line in po["items"] if line["inventory_item_id"] == milk["id"])

    resp = client.post(
        f"{API}/procurement/purchase-orders/{po['id']}/receive",
        json={"items": [{"item_id": milk_line["id"], "quantity_received": 4}]},
        headers=owner["headers"],
    )
    assert resp.status_code == 200
    received = {line["inventory_item_id"]: line["quantity_received"] for line in resp.json()["items"]}
    assert received == {milk["id"]: 4, butter["id"]: 2}
    assert _stock(client, owner) == {"Butter": 3, "Milk": 6}


def test_receive_rejects_foreign_lines(client, owner):
    supplier, milk, butter = _setup(client, owner)
    po = _create_po(client, owner, supplier, milk, butter)
    resp = client.post(
        f"{API}/procurement/purchase-orders/{po['id']}/receive",
        json={"items": [{"item_id": str(uuid.uuid4()), "quantity_received": 1}]},
        headers=owner["headers"],
    )
    assert resp.status_code == 400
    assert _stock(client, owner) == {"Butter": 1, "Milk": 2}


def test_cancel_purchase_order(client, owner):
    supplier, milk, butter = _setup(client, owner)
    po = _create_po(client, owner, supplier, milk, butter)

    resp = client.post(f"{API}/procurement/purchase-orders/{po['id']}/cancel", headers=owner["headers"])
    assert resp.json()["status"] == "cancelled"
    assert client.post(
        f"{API}/procurement/purchase-orders/{po['id']}/receive", headers=owner["headers"]
    ).status_code == 409

    cancelled = client.get(
        f"{API}/procurement/purchase-orders", params={"status": "cancelled"}, headers=owner["headers"]
    ).json()
    assert [p["id"] for p in cancelled] == [po["id"]]
