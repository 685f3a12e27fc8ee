import pytest

from conftest import API
from tableside.services import storage
from tableside.services.errors import DomainValidationError


def test_generate_file_name():
    name = storage.generate_file_name("png")
    stamp, rest = name.split("-", 1)
    assert stamp.isdigit()
    assert rest.endswith(".png")
    assert len(rest) == len("abcdefg.png")


async def test_save_rejects_bad_uploads(storage_dir):
    with pytest.raises(DomainValidationError):
        await storage.save_upload("menu-images", "virus.exe", b"MZ")
    with pytest.raises(DomainValidationError):
        await storage.save_upload("menu-images", "empty.png", b"")
    with pytest.raises(DomainValidationError):
        await storage.read_file("models", "../secrets.txt")


def test_upload_serve_and_delete(client, owner, storage_dir):
    resp = client.post(
        f"{API}/storage/menu-images",
        files={"file": ("pizza.png", b"\x89PNG fake image", "image/png")},
        headers=owner["headers"],
    )
    assert resp.status_code == 201, resp.text
    body = resp.json()
    assert body["bucket"] == "menu-images"
    assert body["path"].startswith(f"{owner['restaurant_id']}/")
    assert body["url"] == f"https://api.example.com/storage/menu-images/{body['path']}"
    assert body["size"] == len(b"\x89PNG fake image")
    assert (storage_dir / "menu-images" / body["path"]).is_file()

    served = client.get(f"/storage/menu-images/{body['path']}")
    assert served.status_code == 200
    assert served.content == b"\x89PNG fake image"
    assert served.headers["content-type"] == "image/png"
    assert served.headers["cache-control"] == "public, max-age=3600"

    deleted = client.delete(f"{API}/storage/menu-images/{body['path']}", headers=owner["headers"])
    assert deleted.status_code == 204
    assert client.get(f"/storage/menu-images/{body['path']}").status_code == 404
    assert client.delete(f"{API}/storage/menu-images/{body['path']}", headers=owner["headers"]).status_code == 404


def test_upload_rejects_wrong_extension(client, owner):
    resp = client.post(
        f"{API}/storage/models",
        files={"file": ("model.png", b"not a model", "image/png")},
        headers=owner["headers"],
    )
    assert resp.status_code == 400
    assert resp.json()["error"]["details"] == {"allowed": ["glb", "gltf", "usdz"]}


def test_cannot_delete_other_restaurants_files(client, owner):
    resp = client.delete(f"{API}/storage/menu-images/someone-else/photo.png", headers=owner["headers"])
    assert resp.status_code == 403


def test_payment_proof_upload_is_public(client, owner):
    resp = client.post(
        f"{API}/public/restaurants/{owner['slug']}/payment-proof",
        files={"file": ("transfer.pdf", b"%PDF-1.4 proof", "application/pdf")},
    )
    assert resp.status_code == 201
    body = resp.json()
    assert body["bucket"] == "payment-proofs"
    assert body["content_type"] == "application/pdf"
    assert client.get(f"/storage/payment-proofs/{body['path']}").content == b"%PDF-1.4 proof"

    missing = client.post(
        f"{API}/public/restaurants/nowhere/payment-proof",
        files={"file": ("transfer.pdf", b"%PDF", "application/pdf")},
    )
    assert missing.status_code == 404


def test_serve_unknown_bucket(client):
    assert client.get("/storage/secrets/file.txt").status_code == 404


def test_oversized_upload_rejected(client, owner, storage_dir, monkeypatch):
    monkeypatch.setenv("MAX_UPLOAD_BYTES", "10")
    resp = client.post(
        f"{API}/storage/menu-images",
        files={"file": ("big.png", b"x" * 11, "image/png")},
        headers=owner["headers"],
    )
    assert resp.status_code == 400
    assert resp.json()["error"]["details"] == {"max_bytes": 10}

    resp = client.post(
        f"{API}/public/restaurants/{owner['slug']}/payment-proof",
        files={"file": ("proof.pdf", b"%PDF-1.4 too long", "application/pdf")},
    )
    assert resp.status_code == 400
    assert not storage_dir.exists() or not any(storage_dir.rglob("*.*"))

    resp = client.post(
        f"{API}/storage/menu-images",
        files={"file": ("small.png", b"x" * 10, "image/png")},
        headers=owner["headers"],
    )
    assert resp.status_code == 201
