import base64
import hashlib
import logging

from conftest import make_animated_gif_bytes, make_gradient_bytes, make_image_bytes


def upload(data: bytes, name="sample.png", content_type="image/png") -> dict:
    return {"file": (name, data, content_type)}


def test_root_and_health(client):
    r = client.get("/")
    assert r.status_code == 200
    assert r.json()["service"] == "imgforge"

    r2 = client.get("/health")
    assert r2.status_code == 200
    assert r2.json() == {"status": "healthy"}


def test_inspect_png(client):
    png = make_image_bytes(w=12, h=7)
    r = client.post("/images/inspect", files=upload(png))
    assert r.status_code == 200, r.text
    data = r.json()
    assert data["format"] == "png"
    assert data["mime_type"] == "image/png"
    assert (data["width"], data["height"]) == (12, 7)
    assert data["size"] == len(png)
    assert data["md5"] == hashlib.md5(png).hexdigest()
    assert data["full_name"] == data["name"] + ".png"
    assert data["animated"] is False


def test_inspect_ignores_declared_content_type(client):
    gif = make_animated_gif_bytes()
    r = client.post("/images/inspect", files=upload(gif, name="fake.png", content_type="image/png"))
    assert r.status_code == 200, r.text
    assert r.json()["format"] == "gif"
    assert r.json()["animated"] is True


def test_inspect_rejections(client):
    r = client.post("/images/inspect", files=upload(b"plain text", content_type="text/plain"))
    assert r.status_code == 415

    r2 = client.post("/images/inspect", files=upload(make_image_bytes(fmt="BMP")))
    assert r2.status_code == 415

    r3 = client.post("/images/inspect", files=upload(b"\x89PNG\r\n\x1a\n" + b"\x00" * 64))
    assert r3.status_code == 422


def test_import_data_url(client):
    png = make_image_bytes(w=3, h=9)
    body = {"url": "data:image/png;base64," + base64.b64encode(png).decode()}
    r = client.post("/images/import", json=body)
    assert r.status_code == 200, r.text
    assert (r.json()["width"], r.json()["height"]) == (3, 9)


def test_import_invalid_url(client):
    r = client.post("/images/import", json={"url": "ftp://example.com/a.png"})
    assert r.status_code == 400


def test_fingerprint(client):
    png = make_gradient_bytes()
    r = client.post("/images/fingerprint", files=upload(png))
    assert r.status_code == 200, r.text
    assert r.json()["algorithm"] == "phash_dct"
    assert len(r.json()["hex"]) == 16

    r2 = client.post("/images/fingerprint", params={"algorithm": "SHA256"}, files=upload(png))
    assert r2.status_code == 200
    assert r2.json() == {"algorithm": "sha256", "hex": hashlib.sha256(png).hexdigest()}

    r3 = client.post("/images/fingerprint", params={"algorithm": "nope"}, files=upload(png))
    assert r3.status_code == 404


def test_convert(client):
    png = make_image_bytes(w=40, h=20)
    form = {"format": "webp", "width": "10", "height": "10"}
    r = client.post("/processing/convert", files=upload(png), data=form)
    assert r.status_code == 200, r.text
    assert r.headers["content-type"] == "image/webp"
    assert r.headers["x-image-width"] == "10"
    assert r.headers["x-image-height"] == "10"
    assert r.content[8:12] == b"WEBP"


def test_convert_without_changes_returns_upload(client):
    png = make_image_bytes(w=5, h=5)
    r = client.post("/processing/convert", files=upload(png))
    assert r.status_code == 200
    assert r.content == png
    assert r.headers["content-type"] == "image/png"


def test_convert_max_width(client):
    png = make_image_bytes(w=40, h=20)
    r = client.post("/processing/convert", files=upload(png), data={"max_width": "8"})
    assert r.status_code == 200, r.text
    assert (r.headers["x-image-width"], r.headers["x-image-height"]) == ("8", "4")


def test_convert_errors(client):
    png = make_image_bytes(w=4, h=4)
    r = client.post("/processing/convert", files=upload(png), data={"format": "xyz"})
    assert r.status_code == 415

    r2 = client.post("/processing/convert", files=upload(png), data={"format": "bmp"})
    assert r2.status_code == 415

    r3 = client.post("/processing/convert", files=upload(png), data={"width": "0"})
    assert r3.status_code == 422

    r4 = client.post("/processing/convert", files=upload(png), data={"height": "100000"})
    assert r4.status_code == 422


def test_store_refuses_duplicate(client, tmp_path, monkeypatch):
    monkeypatch.setenv("SUPABASE_STORAGE_LOCAL_DIR", str(tmp_path))
    png = make_image_bytes(w=9, h=9, color=(1, 2, 3))
    r = client.post("/images/store", files=upload(png))
    assert r.status_code == 201, r.text
    data = r.json()
    assert data["path"] == "images/" + data["image"]["full_name"]
    assert (tmp_path / data["path"]).read_bytes() == png

    r2 = client.post("/images/store", files=upload(png))
    assert r2.status_code == 409


def test_access_log(client, caplog):
    caplog.set_level(logging.INFO, logger="imgforge.access")
    client.get("/health")
    assert any('"GET /health" 200' in record.getMessage() for record in caplog.records)


def test_list_algorithms(client):
    r = client.get("/images/algorithms")
    assert r.status_code == 200
    names = r.json()["algorithms"]
    assert names == sorted(names)
    assert {"phash_dct", "phash_average", "phash_median", "dhash", "ahash", "md5"} <= set(names)


def test_fingerprint_truncated_image(client):
    png = make_gradient_bytes(w=200, h=200)
    r = client.post("/images/fingerprint", files=upload(png[: len(png) // 2]))
    assert r.status_code == 422


def test_import_malformed_url(client):
    r = client.post("/images/import", json={"url": "http://[::1/a.png"})
    assert r.status_code == 400
