from datetime import date, datetime, timedelta, timezone

import pytest

from studio_site.schemas import FaqCategoryCreate, FaqCreate, GalleryCreate, ReviewCreate, UserCreate
from studio_site.storage import StoreError


def test_updates_return_none_for_missing_rows(run_store):
    async def scenario(storage):
        return (
            await storage.update_review(42, {"status": "approved"}),
            await storage.update_faq(42, {"answer": "x"}),
            await storage.update_faq_category(42, {"name": "x"}),
            await storage.update_availability_date(42, False),
            await storage.update_availability_time_slot(42, False),
        )

    assert run_store(scenario) == (None, None, None, None, None)


def test_review_update_refreshes_updated_at(run_store):
    async def scenario(storage):
        review = await storage.create_review(ReviewCreate(author="A", content="bello"))
        updated = await storage.update_review(review.id, {"status": "approved", "modified_content": "molto bello"})
        return review, updated

    review, updated = run_store(scenario)
    assert review.status == "pending"
    assert updated.status == "approved"
    assert updated.modified_content == "molto bello"
    assert updated.updated_at is not None


def test_faq_filter_uses_presence_not_truthiness(run_store):
    async def scenario(storage):
        category = await storage.create_faq_category(FaqCategoryCreate(name="Generale"))
        await storage.create_faq(FaqCreate(question="A?", answer="a", category_id=category.id))
        await storage.create_faq(FaqCreate(question="B?", answer="b"))
        return (
            len(await storage.get_faqs()),
            len(await storage.get_faqs(category.id)),
            len(await storage.get_faqs(0)),
        )

    assert run_store(scenario) == (2, 1, 0)


def test_aggregator_nests_slots_per_date(run_store):
    async def scenario(storage):
        later = await storage.create_availability_date(date(2025, 6, 10))
        await storage.create_availability_date(date(2025, 6, 1))
        await storage.create_availability_time_slot(later.id, "14:00", "15:00")
        await storage.create_availability_time_slot(later.id, "08:00", "09:00", is_available=False)
        return await storage.get_availability_dates(date(2025, 6, 1), date(2025, 6, 30))

    days = run_store(scenario)
    assert [d.date for d in days] == [date(2025, 6, 1), date(2025, 6, 10)]
    assert days[0].time_slots == []
    assert [(s.start_time, s.is_available) for s in days[1].time_slots] == [("08:00", False), ("14:00", True)]


def test_constraint_violation_raises_store_error(run_store):
    async def scenario(storage):
        await storage.create_gallery(GalleryCreate(access_code="unico"))
        await storage.create_gallery(GalleryCreate(access_code="unico"))

    with pytest.raises(StoreError) as exc_info:
        run_store(scenario)
    assert exc_info.value.operation == "create_gallery"


def test_sessions_expire_and_are_purged(run_store):
    now = datetime.now(timezone.utc)

    async def scenario(storage):
        user = await storage.create_user(UserCreate(username="admin", password_hash="x"))
        live = await storage.create_session(user.id, now + timedelta(hours=1))
        dead = await storage.create_session(user.id, now - timedelta(hours=1))
        found_live = await storage.get_active_session(live.sid, now)
        found_dead = await storage.get_active_session(dead.sid, now)
        purged = await storage.delete_expired_sessions(now)
        still_live = await storage.get_active_session(live.sid, now)
        return found_live, found_dead, purged, still_live

    found_live, found_dead, purged, still_live = run_store(scenario)
    assert found_live is not None
    assert found_dead is None
    assert purged == 1
    assert still_live is not None


def test_admin_stats_on_empty_store(run_store):
    async def scenario(storage):
        return await storage.get_admin_stats()

    stats = run_store(scenario)
    assert (stats.faq_count, stats.gallery_count, stats.pending_reviews_count) == (0, 0, 0)


def test_audited_mutation_writes_log_in_same_transaction(run_store):
    async def scenario(storage):
        admin = await storage.create_user(UserCreate(username="admin", password_hash="x"))
        faq = await storage.create_faq(FaqCreate(question="Q?", answer="A"), admin_id=admin.id)
        deleted = await storage.delete_faq(faq.id, admin_id=admin.id)
        missing = await storage.delete_faq(faq.id, admin_id=admin.id)
        logs = await storage.get_admin_logs(admin.id)
        return faq, deleted, missing, [log.action for log in logs]

    faq, deleted, missing, actions = run_store(scenario)
    assert (deleted, missing) == (True, False)
    assert actions == [f"faq.create id={faq.id}", f"faq.delete id={faq.id}"]


def test_rejected_audit_entry_undoes_the_mutation(run_store):
    async def scenario(storage):
        review = await storage.create_review(ReviewCreate(author="A", content="bello"))
        with pytest.raises(StoreError):
            # No user with this id: the log row violates its foreign key
            await storage.update_review(review.id, {"status": "approved"}, admin_id=999)
        with pytest.raises(StoreError):
            await storage.create_gallery(GalleryCreate(access_code="orfana"), admin_id=999)
        return (
            await storage.get_pending_reviews(),
            await storage.get_gallery_by_access_code("orfana"),
            await storage.get_admin_logs(),
        )

    pending, gallery, logs = run_store(scenario)
    assert [r.status for r in pending] == ["pending"]
    assert gallery is None
    assert logs == []
