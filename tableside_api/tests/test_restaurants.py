from conftest import API, auth_headers


def test_create_restaurant_derives_unique_slug(client, owner):
    headers = auth_headers(owner["token"])
    resp = client.post(f"{API}/restaurants", json={"name": "Casa Verde"}, headers=headers)
    assert resp.status_code == 201
    assert resp.json()["slug"] == "casa-verde-2"

    resp = client.post(f"{API}/restaurants", json={"name": "Café Roma!"}, headers=headers)
    assert resp.json()["slug"] == "cafe-roma"

    mine = client.get(f"{API}/restaurants/mine", headers=headers).json()
    assert {r["slug"] for r in mine} == {"casa-verde", "casa-verde-2", "cafe-roma"}


def test_explicit_slug_conflict(client, owner):
    resp = client.post(
        f"{API}/restaurants",
        json={"name": "Another", "slug": "casa-verde"},
        headers=auth_headers(owner["token"]),
    )
    assert resp.status_code == 409
    assert resp.json()["error"]["type"] == "conflict"


def test_current_requires_restaurant_header(client, owner):
    resp = client.get(f"{API}/restaurants/current", headers=auth_headers(owner["token"]))
    assert resp.status_code == 400
    assert resp.json()["error"]["message"] == "X-Restaurant-ID header is required."

    resp = client.get(f"{API}/restaurants/current", headers=owner["headers"])
    assert resp.status_code == 200
    assert resp.json()["name"] == "Casa Verde"
    assert resp.json()["subscription_status"] == "trial"


def test_outsider_cannot_read_restaurant(client, owner, register):
    outsider = register("outsider@tableside.io")
    resp = client.get(
        f"{API}/restaurants/current", headers=auth_headers(outsider["token"], owner["restaurant_id"])
    )
    assert resp.status_code == 403


def test_owner_updates_settings(client, owner):
    resp = client.patch(
        f"{API}/restaurants/current",
        json={"description": "Wood-fired pizza", "bank_name": "First Bank", "slug": "casa-verde-pizza"},
        headers=owner["headers"],
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["bank_name"] == "First Bank"
    assert body["slug"] == "casa-verde-pizza"

    public = client.get(f"{API}/public/restaurants/casa-verde-pizza")
    assert public.status_code == 200
    assert public.json()["description"] == "Wood-fired pizza"


def test_invalid_slug_rejected(client, owner):
    resp = client.patch(f"{API}/restaurants/current", json={"slug": "Not A Slug"}, headers=owner["headers"])
    assert resp.status_code == 422


def test_wait_staff_cannot_update_settings(client, owner, add_staff):
    waiter = add_staff("waiter@tableside.io")
    resp = client.patch(f"{API}/restaurants/current", json={"name": "Renamed"}, headers=waiter["headers"])
    assert resp.status_code == 403
    assert client.get(f"{API}/restaurants/current", headers=waiter["headers"]).status_code == 200


def test_share_link(client, owner):
    resp = client.get(f"{API}/restaurants/current/share-link", params={"table_number": 3}, headers=owner["headers"])
    assert resp.status_code == 200
    assert resp.json() == {
        "url": "https://menu.example.com/r/casa-verde?t=3",
        "slug": "casa-verde",
        "table_number": 3,
    }


def test_slugify():
    from tableside.services.restaurants import slugify

    assert slugify("Café Roma!") == "cafe-roma"
    assert slugify("  The  Big -- Grill ") == "the-big-grill"
    assert slugify("!!!") == "restaurant"
