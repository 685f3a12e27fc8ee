import io
import zipfile

from conftest import API
from tableside.services.qr import qr_filename

PNG_MAGIC = b"\x89PNG\r\n\x1a\n"


def test_qr_filename():
    assert qr_filename("casa-verde") == "qr-casa-verde.png"
    assert qr_filename("casa-verde", 3) == "qr-casa-verde-table-3.png"


def test_menu_qr(client, owner, table):
    resp = client.get(f"{API}/qr/menu", headers=owner["headers"])
    assert resp.status_code == 200
    assert resp.headers["content-type"] == "image/png"
    assert 'filename="qr-casa-verde.png"' in resp.headers["content-disposition"]
    assert resp.content.startswith(PNG_MAGIC)

    resp = client.get(f"{API}/qr/menu", params={"table_number": 4}, headers=owner["headers"])
    assert 'filename="qr-casa-verde-table-4.png"' in resp.headers["content-disposition"]

    resp = client.get(f"{API}/qr/menu", params={"table_number": 9}, headers=owner["headers"])
    assert resp.status_code == 404


def test_tables_zip(client, owner, table):
    client.post(f"{API}/tables", json={"table_number": 1}, headers=owner["headers"])
    resp = client.get(f"{API}/qr/tables.zip", headers=owner["headers"])
    assert resp.status_code == 200
    assert resp.headers["content-type"] == "application/zip"

    archive = zipfile.ZipFile(io.BytesIO(resp.content))
    assert sorted(archive.namelist()) == ["qr-casa-verde-table-1.png", "qr-casa-verde-table-4.png"]
    assert archive.read("qr-casa-verde-table-1.png").startswith(PNG_MAGIC)


def test_tables_zip_without_tables(client, owner):
    assert client.get(f"{API}/qr/tables.zip", headers=owner["headers"]).status_code == 404
