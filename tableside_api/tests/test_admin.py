import pytest

from conftest import API, auth_headers


@pytest.fixture
def admin(client, register):
    user = register("admin@tableside.io")
    resp = client.post(f"{API}/auth/claim-super-admin", headers=auth_headers(user["token"]))
    assert resp.status_code == 200
    user["headers"] = auth_headers(user["token"])
    return user


def test_admin_endpoints_require_super_admin(client, owner):
    for path in ("/admin/stats", "/admin/restaurants", "/admin/menu-items"):
        assert client.get(f"{API}{path}", headers=auth_headers(owner["token"])).status_code == 403


def test_platform_stats(client, owner, admin, menu_item, place_order):
    first = place_order([{"menu_item_id": menu_item["id"], "quantity": 2}])
    second = place_order([{"menu_item_id": menu_item["id"], "quantity": 1}])
    client.patch(f"{API}/orders/{second['id']}/status", json={"status": "cancelled"}, headers=owner["headers"])

    stats = client.get(f"{API}/admin/stats", headers=admin["headers"]).json()
    assert stats["total_restaurants"] == 1
    assert stats["active_restaurants"] == 1
    assert stats["restaurants_by_subscription"] == {"trial": 1}
    assert stats["total_users"] == 2
    assert stats["total_orders"] == 2
    assert stats["total_revenue"] == first["total_amount"]


def test_list_restaurants_with_revenue(client, owner, admin, register, menu_item, place_order):
    register("rival@tableside.io", restaurant_name="Rival Diner")
    place_order([{"menu_item_id": menu_item["id"], "quantity": 2}])

    rows = client.get(f"{API}/admin/restaurants", headers=admin["headers"]).json()
    by_slug = {r["slug"]: r for r in rows}
    assert by_slug["casa-verde"]["order_count"] == 1
    assert by_slug["casa-verde"]["revenue"] == 25.0
    assert by_slug["rival-diner"]["order_count"] == 0

    found = client.get(f"{API}/admin/restaurants", params={"search": "RIVAL"}, headers=admin["headers"]).json()
    assert [r["slug"] for r in found] == ["rival-diner"]


def test_deactivate_restaurant_hides_public_menu(client, owner, admin):
    resp = client.patch(
        f"{API}/admin/restaurants/{owner['restaurant_id']}",
        json={"is_active": False, "subscription_status": "expired", "subscription_plan": "professional"},
        headers=admin["headers"],
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["is_active"] is False
    assert body["subscription_status"] == "expired"
    assert body["subscription_plan"] == "professional"

    assert client.get(f"{API}/public/restaurants/{owner['slug']}").status_code == 404
    assert client.get(f"{API}/restaurants/current", headers=owner["headers"]).status_code == 404
    # super admins still see it
    admin_view = auth_headers(admin["token"], owner["restaurant_id"])
    assert client.get(f"{API}/restaurants/current", headers=admin_view).status_code == 200


def test_update_unknown_restaurant(client, admin):
    resp = client.patch(
        f"{API}/admin/restaurants/00000000-0000-0000-0000-000000000009",
        json={"is_active": True},
        headers=admin["headers"],
    )
    assert resp.status_code == 404


def test_all_menu_items(client, owner, admin, menu_item):
    items = client.get(f"{API}/admin/menu-items", headers=admin["headers"]).json()
    assert len(items) == 1
    assert items[0]["id"] == menu_item["id"]
    assert items[0]["restaurant_name"] == "Casa Verde"
    assert items[0]["restaurant_id"] == owner["restaurant_id"]
