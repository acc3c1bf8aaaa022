import asyncio

from studio_site.schemas import AdminLogCreate, UserCreate


def test_stats_count_faqs_galleries_and_pending_reviews(admin_client):
    assert admin_client.get("/api/admin/stats").json() == {
        "faqCount": 0,
        "galleryCount": 0,
        "pendingReviewsCount": 0,
    }

    for question in ("Uno?", "Due?"):
        admin_client.post("/api/faqs", json={"question": question, "answer": "Si"})
    admin_client.post("/api/galleries", json={})
    first = admin_client.post("/api/reviews", json={"author": "A", "content": "ok"}).json()
    admin_client.post("/api/reviews", json={"author": "B", "content": "ok"})
    admin_client.patch(f"/api/reviews/{first['id']}", json={"status": "approved"})

    assert admin_client.get("/api/admin/stats").json() == {
        "faqCount": 2,
        "galleryCount": 1,
        "pendingReviewsCount": 1,
    }


def test_logs_filter_by_admin(admin_client, admin_user, storage):
    async def _other_admin_action():
        other = await storage.create_user(UserCreate(username="second", password_hash="x"))
        await storage.create_admin_log(AdminLogCreate(admin_id=other.id, action="manual"))
        return other

    other = asyncio.run(_other_admin_action())
    admin_client.post("/api/faq-categories", json={"name": "Info"})

    everything = admin_client.get("/api/admin/logs").json()
    assert [entry["action"] for entry in everything] == ["manual", "faq_category.create id=1"]

    mine = admin_client.get("/api/admin/logs", params={"adminId": admin_user.id}).json()
    assert [entry["adminId"] for entry in mine] == [admin_user.id]

    theirs = admin_client.get("/api/admin/logs", params={"adminId": other.id}).json()
    assert [entry["action"] for entry in theirs] == ["manual"]


def test_health_endpoints(client):
    assert client.get("/health").json() == {"status": "healthy"}
    assert client.get("/health/db").json()["database"] == "connected"
