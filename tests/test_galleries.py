import asyncio

import pytest

from studio_site.routes import galleries as gallery_routes
from studio_site.schemas import GalleryCreate


@pytest.fixture
def two_galleries(client, storage):
    async def _seed():
        wedding = await storage.create_gallery(GalleryCreate(access_code="sposi-2025"))
        other = await storage.create_gallery(GalleryCreate(access_code="battesimo-2025"))
        await storage.create_photos(wedding.id, [f"https://cdn.example.com/w{n}.jpg" for n in range(2)])
        await storage.create_photos(other.id, ["https://cdn.example.com/b0.jpg"])
        return wedding, other
    return asyncio.run(_seed())


@pytest.fixture
def fake_upload(monkeypatch):
    uploaded = []

    async def _upload(content, gallery_id, max_retries=3):
        uploaded.append(content)
        return {"url": f"https://cdn.example.com/{gallery_id}/{len(uploaded)}.jpg", "public_id": str(len(uploaded))}

    monkeypatch.setattr(gallery_routes, "upload_photo", _upload)
    return uploaded


def test_unknown_access_code_is_404(client):
    resp = client.get("/api/galleries/access/nope")
    assert resp.status_code == 404
    assert resp.json() == {"error": "Galleria non trovata"}


def test_access_code_returns_only_own_photos(client, two_galleries):
    wedding, _ = two_galleries
    resp = client.get("/api/galleries/access/sposi-2025")
    assert resp.status_code == 200

    body = resp.json()
    assert body["id"] == wedding.id
    assert body["accessCode"] == "sposi-2025"
    assert [p["url"] for p in body["photos"]] == [
        "https://cdn.example.com/w0.jpg",
        "https://cdn.example.com/w1.jpg",
    ]
    assert all(p["galleryId"] == wedding.id for p in body["photos"])


def test_admin_creates_gallery_with_generated_code(admin_client):
    resp = admin_client.post("/api/galleries", json={})
    assert resp.status_code == 201
    code = resp.json()["accessCode"]
    assert len(code) >= 12

    opened = admin_client.get(f"/api/galleries/access/{code}").json()
    assert opened["photos"] == []


def test_admin_creates_gallery_with_chosen_code(admin_client):
    resp = admin_client.post("/api/galleries", json={"accessCode": "famiglia-rossi"})
    assert resp.status_code == 201
    assert resp.json()["accessCode"] == "famiglia-rossi"

    duplicate = admin_client.post("/api/galleries", json={"accessCode": "famiglia-rossi"})
    assert duplicate.status_code == 500


def test_upload_photos(admin_client, fake_upload):
    gallery = admin_client.post("/api/galleries", json={"accessCode": "matrimonio"}).json()
    files = [
        ("files", ("a.jpg", b"first", "image/jpeg")),
        ("files", ("b.png", b"second", "image/png")),
    ]
    resp = admin_client.post(f"/api/galleries/{gallery['id']}/photos", files=files)
    assert resp.status_code == 201, resp.text
    assert len(resp.json()) == 2
    assert fake_upload == [b"first", b"second"]

    opened = admin_client.get("/api/galleries/access/matrimonio").json()
    assert len(opened["photos"]) == 2


def test_upload_rejects_non_images(admin_client, fake_upload):
    gallery = admin_client.post("/api/galleries", json={}).json()
    resp = admin_client.post(
        f"/api/galleries/{gallery['id']}/photos",
        files=[("files", ("notes.txt", b"hello", "text/plain"))],
    )
    assert resp.status_code == 400
    assert fake_upload == []


def test_upload_to_unknown_gallery_is_404(admin_client, fake_upload):
    resp = admin_client.post("/api/galleries/999/photos", files=[("files", ("a.jpg", b"x", "image/jpeg"))])
    assert resp.status_code == 404


def test_upload_fails_when_every_upload_fails(admin_client, monkeypatch):
    async def _broken(content, gallery_id, max_retries=3):
        raise RuntimeError("cloudinary down")

    monkeypatch.setattr(gallery_routes, "upload_photo", _broken)
    gallery = admin_client.post("/api/galleries", json={"accessCode": "vuota"}).json()
    resp = admin_client.post(f"/api/galleries/{gallery['id']}/photos", files=[("files", ("a.jpg", b"x", "image/jpeg"))])
    assert resp.status_code == 500
    assert admin_client.get("/api/galleries/access/vuota").json()["photos"] == []


def test_gallery_management_requires_admin(client, fake_upload):
    assert client.post("/api/galleries", json={}).status_code == 401
    resp = client.post("/api/galleries/1/photos", files=[("files", ("a.jpg", b"x", "image/jpeg"))])
    assert resp.status_code == 401
    assert fake_upload == []
