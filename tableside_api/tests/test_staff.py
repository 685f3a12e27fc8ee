from conftest import API, auth_headers


def _invite(client, owner, email, role="wait_staff"):
    return client.post(f"{API}/staff/invitations", json={"email": email, "role": role}, headers=owner["headers"])


def test_invitation_accept_flow(client, owner, register):
    invite = _invite(client, owner, "Sam@Tableside.io", role="supervisor")
    assert invite.status_code == 201
    body = invite.json()
    assert body["email"] == "sam@tableside.io"
    assert body["status"] == "pending"
    assert body["token"]

    sam = register("sam@tableside.io")
    headers = auth_headers(sam["token"])
    pending = client.get(f"{API}/invitations/pending", headers=headers).json()
    assert [p["restaurant_name"] for p in pending] == ["Casa Verde"]
    assert pending[0]["token"] is None

    resp = client.post(f"{API}/invitations/{body['id']}/accept", headers=headers)
    assert resp.status_code == 200
    assert resp.json()["status"] == "accepted"

    me = client.get(f"{API}/auth/me", headers=headers).json()
    assert "supervisor" in me["roles"]
    assert [(m["slug"], m["role"]) for m in me["memberships"]] == [("casa-verde", "supervisor")]

    again = client.post(f"{API}/invitations/{body['id']}/accept", headers=headers)
    assert again.status_code == 409


def test_duplicate_pending_invitation(client, owner):
    assert _invite(client, owner, "twice@tableside.io").status_code == 201
    resp = _invite(client, owner, "twice@tableside.io")
    assert resp.status_code == 409
    assert resp.json()["error"]["message"] == "An invitation is already pending for this email"


def test_invitation_for_other_email_is_forbidden(client, owner, register):
    invite = _invite(client, owner, "intended@tableside.io").json()
    other = register("other@tableside.io")
    resp = client.post(
        f"{API}/invitations/accept", json={"token": invite["token"]}, headers=auth_headers(other["token"])
    )
    assert resp.status_code == 403
    assert resp.json()["error"]["type"] == "permission_denied"


def test_expired_invitation(client, owner, register, monkeypatch):
    monkeypatch.setenv("INVITATION_EXPIRE_DAYS", "-1")
    invite = _invite(client, owner, "late@tableside.io").json()
    late = register("late@tableside.io")
    headers = auth_headers(late["token"])

    assert client.get(f"{API}/invitations/pending", headers=headers).json() == []
    resp = client.post(f"{API}/invitations/accept", json={"token": invite["token"]}, headers=headers)
    assert resp.status_code == 400
    assert resp.json()["error"]["message"] == "Invitation has expired"

    listed = client.get(f"{API}/staff/invitations", params={"status": "expired"}, headers=owner["headers"]).json()
    assert [i["id"] for i in listed] == [invite["id"]]


def test_lapsed_invitation_can_be_reissued(client, owner, monkeypatch):
    monkeypatch.setenv("INVITATION_EXPIRE_DAYS", "-1")
    lapsed = _invite(client, owner, "lapsed@tableside.io").json()

    monkeypatch.setenv("INVITATION_EXPIRE_DAYS", "7")
    resp = _invite(client, owner, "lapsed@tableside.io")
    assert resp.status_code == 201, resp.text
    fresh = resp.json()
    assert fresh["status"] == "pending"

    listed = client.get(f"{API}/staff/invitations", headers=owner["headers"]).json()
    by_id = {i["id"]: i["status"] for i in listed}
    assert by_id == {lapsed["id"]: "expired", fresh["id"]: "pending"}
    # the reissued one blocks a third invite
    assert _invite(client, owner, "lapsed@tableside.io").status_code == 409


def test_decline_and_delete_invitation(client, owner, register):
    first = _invite(client, owner, "nope@tableside.io").json()
    nope = register("nope@tableside.io")
    resp = client.post(f"{API}/invitations/{first['id']}/decline", headers=auth_headers(nope["token"]))
    assert resp.json()["status"] == "declined"

    second = _invite(client, owner, "gone@tableside.io").json()
    assert client.delete(f"{API}/staff/invitations/{second['id']}", headers=owner["headers"]).status_code == 204
    statuses = {i["email"]: i["status"] for i in client.get(f"{API}/staff/invitations", headers=owner["headers"]).json()}
    assert statuses == {"nope@tableside.io": "declined"}


def test_members_update_and_remove(client, owner, add_staff):
    waiter = add_staff("waiter@tableside.io")
    members = client.get(f"{API}/staff/members", headers=owner["headers"]).json()
    assert [(m["email"], m["role"]) for m in members] == [("waiter@tableside.io", "wait_staff")]
    member_id = members[0]["id"]

    resp = client.patch(f"{API}/staff/members/{member_id}", json={"role": "supervisor"}, headers=owner["headers"])
    assert resp.status_code == 200
    assert resp.json()["role"] == "supervisor"

    # supervisors manage the menu but not the team
    assert client.get(f"{API}/staff/members", headers=waiter["headers"]).status_code == 200
    resp = client.delete(f"{API}/staff/members/{member_id}", headers=waiter["headers"])
    assert resp.status_code == 403

    assert client.delete(f"{API}/staff/members/{member_id}", headers=owner["headers"]).status_code == 204
    assert client.get(f"{API}/staff/members", headers=owner["headers"]).json() == []
    inactive = client.get(f"{API}/staff/members", params={"include_inactive": True}, headers=owner["headers"]).json()
    assert inactive[0]["is_active"] is False

    # a removed member loses access
    assert client.get(f"{API}/orders", headers=waiter["headers"]).status_code == 403


def test_wait_staff_cannot_invite(client, owner, add_staff):
    waiter = add_staff("waiter@tableside.io")
    resp = client.post(
        f"{API}/staff/invitations", json={"email": "friend@tableside.io"}, headers=waiter["headers"]
    )
    assert resp.status_code == 403
