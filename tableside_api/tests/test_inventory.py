from conftest import API


def _stock_item(client, owner, name="Flour", **extra):
    payload = {"name": name, "unit": "kg", "quantity_in_stock": 10, "minimum_stock_level": 4, "cost_per_unit": 1.5}
    payload.update(extra)
    resp = client.post(f"{API}/inventory/items", json=payload, headers=owner["headers"])
    assert resp.status_code == 201, resp.text
    return resp.json()


def test_suppliers(client, owner):
    resp = client.post(
        f"{API}/inventory/suppliers", json={"name": "Mill & Co", "email": "sales@mill.example"}, headers=owner["headers"]
    )
    assert resp.status_code == 201
    supplier = resp.json()

    resp = client.patch(
        f"{API}/inventory/suppliers/{supplier['id']}", json={"is_active": False}, headers=owner["headers"]
    )
    assert resp.json()["is_active"] is False
    assert client.get(f"{API}/inventory/suppliers", headers=owner["headers"]).json() == []
    everyone = client.get(
        f"{API}/inventory/suppliers", params={"include_inactive": True}, headers=owner["headers"]
    ).json()
    assert [s["name"] for s in everyone] == ["Mill & Co"]


def test_item_with_unknown_supplier(client, owner):
    resp = client.post(
        f"{API}/inventory/items",
        json={"name": "Rice", "supplier_id": "00000000-0000-0000-0000-000000000002"},
        headers=owner["headers"],
    )
    assert resp.status_code == 400
    assert resp.json()["error"]["message"] == "Supplier not found"


def test_stock_status_and_low_stock_list(client, owner):
    flour = _stock_item(client, owner)
    assert flour["stock_status"] == "In Stock"
    assert flour["is_low_stock"] is False

    salt = _stock_item(client, owner, name="Salt", quantity_in_stock=2)
    assert salt["stock_status"] == "Low Stock"
    empty = _stock_item(client, owner, name="Yeast", quantity_in_stock=0)
    assert empty["stock_status"] == "Out of Stock"

    low = client.get(f"{API}/inventory/items/low-stock", headers=owner["headers"]).json()
    assert [i["name"] for i in low] == ["Salt", "Yeast"]


def test_adjust_stock_floors_at_zero(client, owner):
    flour = _stock_item(client, owner)
    url = f"{API}/inventory/items/{flour['id']}/adjust"

    resp = client.post(url, json={"delta": 5.5, "reason": "delivery"}, headers=owner["headers"])
    assert resp.status_code == 200
    assert resp.json()["quantity_in_stock"] == 15.5

    resp = client.post(url, json={"delta": -100}, headers=owner["headers"])
    assert resp.json()["quantity_in_stock"] == 0
    assert resp.json()["stock_status"] == "Out of Stock"


def test_adjust_unknown_item(client, owner):
    resp = client.post(
        f"{API}/inventory/items/00000000-0000-0000-0000-000000000003/adjust",
        json={"delta": 1},
        headers=owner["headers"],
    )
    assert resp.status_code == 404


def test_update_item_metadata(client, owner):
    flour = _stock_item(client, owner)
    resp = client.patch(
        f"{API}/inventory/items/{flour['id']}",
        json={"minimum_stock_level": 20, "category": "Dry goods"},
        headers=owner["headers"],
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["category"] == "Dry goods"
    assert body["is_low_stock"] is True
    assert body["quantity_in_stock"] == 10


def test_waste_log_deducts_stock(client, owner, add_staff):
    flour = _stock_item(client, owner)
    waiter = add_staff("waiter@tableside.io")

    resp = client.post(
        f"{API}/inventory/waste",
        json={"inventory_item_id": flour["id"], "quantity": 3, "reason": " spilled "},
        headers=waiter["headers"],
    )
    assert resp.status_code == 201
    entry = resp.json()
    assert entry["reason"] == "spilled"
    assert entry["inventory_item_name"] == "Flour"
    assert entry["logged_by"] == waiter["id"]

    resp = client.post(
        f"{API}/inventory/waste",
        json={"inventory_item_id": flour["id"], "quantity": 50, "reason": "flood"},
        headers=owner["headers"],
    )
    assert resp.status_code == 201

    items = client.get(f"{API}/inventory/items", headers=owner["headers"]).json()
    assert items[0]["quantity_in_stock"] == 0

    log = client.get(f"{API}/inventory/waste", headers=owner["headers"]).json()
    assert {e["reason"] for e in log} == {"spilled", "flood"}


def test_waste_quantity_must_be_positive(client, owner):
    flour = _stock_item(client, owner)
    resp = client.post(
        f"{API}/inventory/waste",
        json={"inventory_item_id": flour["id"], "quantity": 0, "reason": "none"},
        headers=owner["headers"],
    )
    assert resp.status_code == 422


def test_wait_staff_cannot_adjust_stock(client, owner, add_staff):
    flour = _stock_item(client, owner)
    waiter = add_staff("waiter@tableside.io")
    resp = client.post(f"{API}/inventory/items/{flour['id']}/adjust", json={"delta": 1}, headers=waiter["headers"])
    assert resp.status_code == 403
