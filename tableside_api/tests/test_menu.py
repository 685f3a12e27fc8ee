from conftest import API


def _item(client, headers, name, price, **extra):
    resp = client.post(f"{API}/menu/items", json={"name": name, "price": price, **extra}, headers=headers)
    assert resp.status_code == 201, resp.text
    return resp.json()


def test_create_and_list_items(client, owner, menu_item):
    assert menu_item["price"] == 12.5
    assert menu_item["has_ar_model"] is False
    assert menu_item["is_available"] is True

    glb = _item(client, owner["headers"], "Tiramisu", 7, model_url="https://cdn.example.com/tiramisu.glb")
    assert glb["has_ar_model"] is True

    items = client.get(f"{API}/menu/items", headers=owner["headers"]).json()
    assert [i["name"] for i in items] == ["Margherita", "Tiramisu"]

    filtered = client.get(
        f"{API}/menu/items", params={"category_id": menu_item["category_id"]}, headers=owner["headers"]
    ).json()
    assert [i["name"] for i in filtered] == ["Margherita"]


def test_negative_price_rejected(client, owner):
    resp = client.post(f"{API}/menu/items", json={"name": "Free lunch", "price": -1}, headers=owner["headers"])
    assert resp.status_code == 422


def test_unknown_category_rejected(client, owner):
    resp = client.post(
        f"{API}/menu/items",
        json={"name": "Lost", "price": 1, "category_id": "00000000-0000-0000-0000-000000000001"},
        headers=owner["headers"],
    )
    assert resp.status_code == 404


def test_update_item_and_clear_category(client, owner, menu_item):
    url = f"{API}/menu/items/{menu_item['id']}"
    resp = client.patch(url, json={"price": 13, "is_available": False, "category_id": None}, headers=owner["headers"])
    assert resp.status_code == 200
    body = resp.json()
    assert body["price"] == 13
    assert body["is_available"] is False
    assert body["category_id"] is None


def test_reorder_items(client, owner):
    a = _item(client, owner["headers"], "A", 1, sort_order=0)
    b = _item(client, owner["headers"], "B", 1, sort_order=1)

    resp = client.put(
        f"{API}/menu/items/reorder",
        json={"items": [{"id": a["id"], "sort_order": 5}, {"id": b["id"], "sort_order": 2}]},
        headers=owner["headers"],
    )
    assert resp.status_code == 200
    assert resp.json()["details"] == {"updated": 2}

    items = client.get(f"{API}/menu/items", headers=owner["headers"]).json()
    assert [i["name"] for i in items] == ["B", "A"]


def test_delete_category_uncategorizes_items(client, owner, menu_item):
    resp = client.delete(f"{API}/menu/categories/{menu_item['category_id']}", headers=owner["headers"])
    assert resp.status_code == 204

    item = client.get(f"{API}/menu/items/{menu_item['id']}", headers=owner["headers"]).json()
    assert item["category_id"] is None
    assert client.get(f"{API}/menu/categories", headers=owner["headers"]).json() == []


def test_ingredient_links(client, owner, menu_item):
    stock = client.post(
        f"{API}/inventory/items", json={"name": "Mozzarella", "unit": "kg"}, headers=owner["headers"]
    ).json()
    url = f"{API}/menu/items/{menu_item['id']}/ingredients"

    link = client.post(url, json={"inventory_item_id": stock["id"], "quantity_required": 0.2}, headers=owner["headers"])
    assert link.status_code == 201
    assert link.json()["inventory_item_name"] == "Mozzarella"
    assert link.json()["unit"] == "kg"

    again = client.post(url, json={"inventory_item_id": stock["id"]}, headers=owner["headers"])
    assert again.status_code == 409

    assert [l["quantity_required"] for l in client.get(url, headers=owner["headers"]).json()] == [0.2]

    resp = client.delete(f"{url}/{link.json()['id']}", headers=owner["headers"])
    assert resp.status_code == 204
    assert client.get(url, headers=owner["headers"]).json() == []


def test_wait_staff_reads_but_cannot_edit_menu(client, owner, menu_item, add_staff):
    waiter = add_staff("waiter@tableside.io")
    assert client.get(f"{API}/menu/items", headers=waiter["headers"]).status_code == 200
    resp = client.patch(f"{API}/menu/items/{menu_item['id']}", json={"price": 1}, headers=waiter["headers"])
    assert resp.status_code == 403


def test_public_menu_groups_available_items(client, owner, menu_item):
    _item(client, owner["headers"], "Water", 2)
    _item(client, owner["headers"], "Hidden", 2, is_available=False)
    client.post(f"{API}/menu/categories", json={"name": "Empty"}, headers=owner["headers"])

    resp = client.get(f"{API}/public/restaurants/{owner['slug']}/menu")
    assert resp.status_code == 200
    sections = resp.json()
    assert [s["category"]["name"] if s["category"] else None for s in sections] == ["Mains", None]
    assert [i["name"] for i in sections[0]["items"]] == ["Margherita"]
    assert [i["name"] for i in sections[1]["items"]] == ["Water"]


def test_public_menu_unknown_slug(client):
    resp = client.get(f"{API}/public/restaurants/nowhere/menu")
    assert resp.status_code == 404
    assert resp.json()["error"]["message"] == "Restaurant not found"
