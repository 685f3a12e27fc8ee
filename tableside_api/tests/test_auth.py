from conftest import API, auth_headers


def test_register_customer_gets_customer_role(client):
    resp = client.post(
        f"{API}/auth/register",
        json={"email": "diner@tableside.io", "password": "secret-pass", "full_name": "Dana Diner"},
    )
    assert resp.status_code == 201
    body = resp.json()
    assert body["email"] == "diner@tableside.io"
    assert body["roles"] == ["customer"]
    assert body["memberships"] == []


def test_register_with_restaurant_makes_owner(owner):
    assert "restaurant_owner" in owner["roles"]
    membership = owner["memberships"][0]
    assert membership["restaurant_name"] == "Casa Verde"
    assert membership["slug"] == "casa-verde"
    assert membership["role"] == "restaurant_owner"


def test_register_duplicate_email(client, register):
    register("dupe@tableside.io")
    resp = client.post(f"{API}/auth/register", json={"email": "dupe@tableside.io", "password": "another-pass"})
    assert resp.status_code == 400
    assert resp.json()["error"]["message"] == "User with this email already exists"


def test_register_short_password_is_validation_error(client):
    resp = client.post(f"{API}/auth/register", json={"email": "short@tableside.io", "password": "123"})
    assert resp.status_code == 422
    assert resp.json()["error"]["type"] == "validation_error"


def test_login_wrong_password(client, register):
    register("login@tableside.io")
    resp = client.post(f"{API}/auth/login", data={"username": "login@tableside.io", "password": "wrong-pass"})
    assert resp.status_code == 401


def test_me_requires_token(client):
    assert client.get(f"{API}/auth/me").status_code == 401
    resp = client.get(f"{API}/auth/me", headers=auth_headers("not-a-jwt"))
    assert resp.status_code == 401


def test_me_and_profile_update(client, register):
    user = register("profile@tableside.io")
    headers = auth_headers(user["token"])
    resp = client.patch(f"{API}/auth/me", json={"full_name": "Pat Profile"}, headers=headers)
    assert resp.status_code == 200
    assert client.get(f"{API}/auth/me", headers=headers).json()["full_name"] == "Pat Profile"


def test_refresh_issues_new_pair(client, register):
    register("refresh@tableside.io")
    tokens = client.post(
        f"{API}/auth/login", data={"username": "refresh@tableside.io", "password": "secret-pass"}
    ).json()

    resp = client.post(f"{API}/auth/refresh", json={"refresh_token": tokens["refresh_token"]})
    assert resp.status_code == 200
    assert resp.json()["token_type"] == "bearer"

    # an access token is not accepted as a refresh token
    resp = client.post(f"{API}/auth/refresh", json={"refresh_token": tokens["access_token"]})
    assert resp.status_code == 401


def test_password_reset_flow(client, register):
    register("forgot@tableside.io", password="old-password")
    issued = client.post(f"{API}/auth/forgot-password", json={"email": "forgot@tableside.io"})
    assert issued.status_code == 200
    token = issued.json()["reset_token"]
    assert token

    resp = client.post(f"{API}/auth/reset-password", json={"token": token, "new_password": "new-password"})
    assert resp.status_code == 200

    login = client.post(f"{API}/auth/login", data={"username": "forgot@tableside.io", "password": "new-password"})
    assert login.status_code == 200

    # the token stops working once the password changed
    reused = client.post(f"{API}/auth/reset-password", json={"token": token, "new_password": "third-password"})
    assert reused.status_code == 400


def test_forgot_password_unknown_email_does_not_leak(client):
    resp = client.post(f"{API}/auth/forgot-password", json={"email": "nobody@tableside.io"})
    assert resp.status_code == 200
    assert resp.json()["reset_token"] is None


def test_claim_super_admin_only_once(client, register):
    first = register("root@tableside.io")
    resp = client.post(f"{API}/auth/claim-super-admin", headers=auth_headers(first["token"]))
    assert resp.status_code == 200
    assert "super_admin" in resp.json()["roles"]

    second = register("other@tableside.io")
    resp = client.post(f"{API}/auth/claim-super-admin", headers=auth_headers(second["token"]))
    assert resp.status_code == 409


def test_logout(client):
    assert client.post(f"{API}/auth/logout").json() == {"message": "Logged out"}
