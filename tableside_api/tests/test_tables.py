from conftest import API


def test_create_and_list_tables(client, owner, table):
    assert table["status"] == "available"
    dup = client.post(f"{API}/tables", json={"table_number": 4}, headers=owner["headers"])
    assert dup.status_code == 409
    assert dup.json()["error"]["message"] == "Table 4 already exists"

    client.post(f"{API}/tables", json={"table_number": 1, "location": "Window"}, headers=owner["headers"])
    tables = client.get(f"{API}/tables", headers=owner["headers"]).json()
    assert [t["table_number"] for t in tables] == [1, 4]


def test_delete_is_soft_and_frees_the_number(client, owner, table):
    resp = client.delete(f"{API}/tables/{table['id']}", headers=owner["headers"])
    assert resp.status_code == 204
    assert client.get(f"{API}/tables", headers=owner["headers"]).json() == []

    again = client.post(f"{API}/tables", json={"table_number": 4}, headers=owner["headers"])
    assert again.status_code == 201
    assert again.json()["id"] != table["id"]


def test_renumber_into_taken_number(client, owner, table):
    other = client.post(f"{API}/tables", json={"table_number": 5}, headers=owner["headers"]).json()
    resp = client.patch(f"{API}/tables/{other['id']}", json={"table_number": 4}, headers=owner["headers"])
    assert resp.status_code == 409


def test_wait_staff_may_only_change_status(client, owner, table, add_staff):
    waiter = add_staff("waiter@tableside.io")
    url = f"{API}/tables/{table['id']}"

    resp = client.patch(url, json={"status": "occupied"}, headers=waiter["headers"])
    assert resp.status_code == 200
    assert resp.json()["status"] == "occupied"

    resp = client.patch(url, json={"capacity": 8}, headers=waiter["headers"])
    assert resp.status_code == 403


def test_shift_times_must_differ(client, owner):
    resp = client.post(
        f"{API}/shifts",
        json={"name": "Broken", "start_time": "09:00:00", "end_time": "09:00:00"},
        headers=owner["headers"],
    )
    assert resp.status_code == 422

    resp = client.post(
        f"{API}/shifts",
        json={"name": "Dinner", "start_time": "17:00:00", "end_time": "23:00:00"},
        headers=owner["headers"],
    )
    assert resp.status_code == 201
    assert [s["name"] for s in client.get(f"{API}/shifts", headers=owner["headers"]).json()] == ["Dinner"]


def test_assignments(client, owner, table, add_staff, register):
    waiter = add_staff("waiter@tableside.io")
    shift = client.post(
        f"{API}/shifts",
        json={"name": "Lunch", "start_time": "11:00:00", "end_time": "15:00:00"},
        headers=owner["headers"],
    ).json()

    resp = client.post(
        f"{API}/assignments",
        json={"staff_user_id": waiter["id"], "table_id": table["id"], "shift_id": shift["id"]},
        headers=owner["headers"],
    )
    assert resp.status_code == 201
    body = resp.json()
    assert body["table_number"] == 4
    assert body["shift_name"] == "Lunch"
    assert body["is_active"] is True

    listed = client.get(
        f"{API}/assignments", params={"staff_user_id": waiter["id"]}, headers=owner["headers"]
    ).json()
    assert [a["id"] for a in listed] == [body["id"]]

    stranger = register("stranger@tableside.io")
    resp = client.post(
        f"{API}/assignments",
        json={"staff_user_id": stranger["id"], "table_id": table["id"]},
        headers=owner["headers"],
    )
    assert resp.status_code == 400
    assert resp.json()["error"]["message"] == "User is not a member of this restaurant's staff"
