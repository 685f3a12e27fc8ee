from conftest import API


def test_health(client):
    resp = client.get(f"{API}/health")
    assert resp.status_code == 200
    assert resp.json()["message"] == "Healthy"
    assert resp.headers["X-Correlation-ID"]


def test_correlation_id_is_echoed(client):
    resp = client.get(f"{API}/health", headers={"X-Correlation-ID": "abc-123"})
    assert resp.headers["X-Correlation-ID"] == "abc-123"


def test_restaurant_echo(client):
    rid = "5b0c6f0e-8f3e-4c1b-9a53-0d3c8f0b8c11"
    resp = client.get(f"{API}/health/restaurant", headers={"X-Restaurant-ID": rid})
    assert resp.json() == {"restaurant_id": rid}


def test_error_envelope(client):
    resp = client.get(
        f"{API}/health/restaurant", headers={"X-Restaurant-ID": "not-a-uuid", "X-Correlation-ID": "corr-1"}
    )
    assert resp.status_code == 400
    body = resp.json()
    assert body["status"] == 400
    assert body["error"] == {
        "type": "http_error",
        "message": "X-Restaurant-ID header must be a valid UUID string.",
        "details": None,
    }
    assert body["correlation_id"] == "corr-1"
    assert body["restaurant_id"] == "not-a-uuid"
    assert body["path"] == "/api/v1/health/restaurant"
    assert body["method"] == "GET"


def test_websocket_info(client):
    info = client.get(f"{API}/websocket-info").json()
    assert info["security"]["close_codes"]["4403"] == "not staff"
    paths = [e["path"] for e in info["endpoints"]]
    assert "/ws/orders" in paths
    assert "/ws/inventory" in paths
