"""
Data access layer.
One async method per entity operation; every method runs in its own session,
so each insert/update/select is a single implicit transaction. Mutations that
take an admin_id write their AdminLog entry inside that same transaction.
"""
from contextlib import asynccontextmanager
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional
import logging
import secrets

from sqlalchemy import delete, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from studio_site.models import (
    AdminLog,
    AdminSession,
    AvailabilityDate,
    AvailabilityTimeSlot,
    Faq,
    FaqCategory,
    Gallery,
    Photo,
    Review,
    User,
)
from studio_site.schemas import (
    AdminLogCreate,
    AdminStatsResponse,
    AvailabilityDateResponse,
    AvailabilityDateWithSlotsResponse,
    AvailabilityTimeSlotResponse,
    FaqCategoryCreate,
    FaqCreate,
    GalleryCreate,
    ReviewCreate,
    UserCreate,
)

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class StoreError(Exception):
    """The store was unreachable or rejected an operation."""

    def __init__(self, operation: str, message: str):
        super().__init__(f"{operation}: {message}")
        self.operation = operation
        self.message = message


class DatabaseStorage:
    """Store client handed to the routers through app.state."""

    def __init__(self, session_factory: async_sessionmaker):
        self._session_factory = session_factory

    @asynccontextmanager
    async def _session(self, operation: str):
        """Open a session and translate driver failures into StoreError."""
        async with self._session_factory() as session:
            try:
                yield session
            except (SQLAlchemyError, OSError) as e:
                await session.rollback()
                logger.error(f"Store operation '{operation}' failed: {str(e)}", exc_info=True)
                raise StoreError(operation, str(e)) from e

    def _audit(self, session: AsyncSession, admin_id: Optional[int], action: str) -> None:
        """Stage an AdminLog row so it commits (or rolls back) with the mutation."""
        if admin_id is not None:
            session.add(AdminLog(admin_id=admin_id, action=action))

    async def _insert(self, session: AsyncSession, obj, admin_id: Optional[int] = None, action: str = ""):
        """
        Insert a row and, when admin_id is given, its audit entry in one commit.
        `action` is a format string receiving the new row as `obj`.
        """
        session.add(obj)
        if admin_id is not None:
            # Flush for the generated id used in the log entry
            await session.flush()
            self._audit(session, admin_id, action.format(obj=obj))
        await session.commit()
        # Pick up server-generated id and timestamps
        await session.refresh(obj)
        return obj

    async def _update(
        self,
        session: AsyncSession,
        model,
        id: int,
        fields: Dict[str, Any],
        touch: bool = False,
        admin_id: Optional[int] = None,
        action: str = "",
    ):
        result = await session.execute(select(model).where(model.id == id))
        obj = result.scalar_one_or_none()
        if obj is None:
            return None

        for name, value in fields.items():
            setattr(obj, name, value)
        if touch:
            obj.updated_at = utcnow()
        self._audit(session, admin_id, action.format(obj=obj))

        await session.commit()
        await session.refresh(obj)
        return obj

    async def _delete(self, session: AsyncSession, model, id: int, admin_id: Optional[int] = None, action: str = "") -> bool:
        result = await session.execute(delete(model).where(model.id == id))
        deleted = bool(result.rowcount)
        if deleted:
            self._audit(session, admin_id, action.format(id=id))
        await session.commit()
        return deleted

    # User methods

    async def get_user(self, id: int) -> Optional[User]:
        async with self._session("get_user") as session:
            result = await session.execute(select(User).where(User.id == id))
            return result.scalar_one_or_none()

    async def get_user_by_username(self, username: str) -> Optional[User]:
        async with self._session("get_user_by_username") as session:
            result = await session.execute(select(User).where(User.username == username))
            return result.scalar_one_or_none()

    async def create_user(self, data: UserCreate) -> User:
        async with self._session("create_user") as session:
            return await self._insert(session, User(username=data.username, password_hash=data.password_hash))

    # Session methods

    async def create_session(self, user_id: int, expires_at: datetime) -> AdminSession:
        async with self._session("create_session") as session:
            record = AdminSession(sid=secrets.token_urlsafe(32), user_id=user_id, expires_at=expires_at)
            return await self._insert(session, record)

    async def get_active_session(self, sid: str, now: Optional[datetime] = None) -> Optional[AdminSession]:
        """Return the session if it exists and has not expired."""
        now = now or utcnow()
        async with self._session("get_active_session") as session:
            result = await session.execute(
                select(AdminSession).where(AdminSession.sid == sid, AdminSession.expires_at > now)
            )
            return result.scalar_one_or_none()

    async def delete_session(self, sid: str) -> None:
        async with self._session("delete_session") as session:
            await session.execute(delete(AdminSession).where(AdminSession.sid == sid))
            await session.commit()

    async def delete_expired_sessions(self, now: Optional[datetime] = None) -> int:
        now = now or utcnow()
        async with self._session("delete_expired_sessions") as session:
            result = await session.execute(delete(AdminSession).where(AdminSession.expires_at <= now))
            await session.commit()
            return result.rowcount or 0

    # Gallery methods

    async def create_gallery(self, data: GalleryCreate, admin_id: Optional[int] = None) -> Gallery:
        access_code = data.access_code or secrets.token_urlsafe(12)
        async with self._session("create_gallery") as session:
            return await self._insert(
                session, Gallery(access_code=access_code), admin_id, "gallery.create id={obj.id}"
            )

    async def get_gallery(self, id: int) -> Optional[Gallery]:
        async with self._session("get_gallery") as session:
            result = await session.execute(select(Gallery).where(Gallery.id == id))
            return result.scalar_one_or_none()

    async def get_gallery_by_access_code(self, code: str) -> Optional[Gallery]:
        async with self._session("get_gallery_by_access_code") as session:
            result = await session.execute(select(Gallery).where(Gallery.access_code == code))
            return result.scalar_one_or_none()

    async def get_photos_by_gallery_id(self, gallery_id: int) -> List[Photo]:
        async with self._session("get_photos_by_gallery_id") as session:
            result = await session.execute(
                select(Photo).where(Photo.gallery_id == gallery_id).order_by(Photo.id)
            )
            return list(result.scalars().all())

    async def create_photos(self, gallery_id: int, urls: List[str], admin_id: Optional[int] = None) -> List[Photo]:
        """Insert a batch of photos into one gallery in a single transaction."""
        photos = [Photo(gallery_id=gallery_id, url=url) for url in urls]
        async with self._session("create_photos") as session:
            session.add_all(photos)
            self._audit(session, admin_id, f"gallery.photos id={gallery_id} count={len(photos)}")
            await session.commit()
            for photo in photos:
                await session.refresh(photo)
            return photos

    # FAQ methods

    async def create_faq_category(self, data: FaqCategoryCreate, admin_id: Optional[int] = None) -> FaqCategory:
        async with self._session("create_faq_category") as session:
            return await self._insert(
                session, FaqCategory(**data.model_dump()), admin_id, "faq_category.create id={obj.id}"
            )

    async def update_faq_category(
        self, id: int, fields: Dict[str, Any], admin_id: Optional[int] = None
    ) -> Optional[FaqCategory]:
        async with self._session("update_faq_category") as session:
            return await self._update(
                session, FaqCategory, id, fields, admin_id=admin_id, action="faq_category.update id={obj.id}"
            )

    async def delete_faq_category(self, id: int, admin_id: Optional[int] = None) -> bool:
        async with self._session("delete_faq_category") as session:
            return await self._delete(session, FaqCategory, id, admin_id, "faq_category.delete id={id}")

    async def get_faq_categories(self) -> List[FaqCategory]:
        async with self._session("get_faq_categories") as session:
            result = await session.execute(select(FaqCategory).order_by(FaqCategory.order))
            return list(result.scalars().all())

    async def create_faq(self, data: FaqCreate, admin_id: Optional[int] = None) -> Faq:
        async with self._session("create_faq") as session:
            return await self._insert(session, Faq(**data.model_dump()), admin_id, "faq.create id={obj.id}")

    async def update_faq(self, id: int, fields: Dict[str, Any], admin_id: Optional[int] = None) -> Optional[Faq]:
        async with self._session("update_faq") as session:
            return await self._update(session, Faq, id, fields, admin_id=admin_id, action="faq.update id={obj.id}")

    async def delete_faq(self, id: int, admin_id: Optional[int] = None) -> bool:
        async with self._session("delete_faq") as session:
            return await self._delete(session, Faq, id, admin_id, "faq.delete id={id}")

    async def get_faqs(self, category_id: Optional[int] = None) -> List[Faq]:
        query = select(Faq)
        if category_id is not None:
            query = query.where(Faq.category_id == category_id)

        async with self._session("get_faqs") as session:
            result = await session.execute(query.order_by(Faq.order))
            return list(result.scalars().all())

    # Admin methods

    async def get_admin_stats(self) -> AdminStatsResponse:
        async with self._session("get_admin_stats") as session:
            faq_count = await session.scalar(select(func.count(Faq.id)))
            gallery_count = await session.scalar(select(func.count(Gallery.id)))
            pending_reviews_count = await session.scalar(
                select(func.count(Review.id)).where(Review.status == "pending")
            )

        return AdminStatsResponse(
            faq_count=faq_count or 0,
            gallery_count=gallery_count or 0,
            pending_reviews_count=pending_reviews_count or 0,
        )

    async def create_admin_log(self, data: AdminLogCreate) -> AdminLog:
        async with self._session("create_admin_log") as session:
            return await self._insert(session, AdminLog(admin_id=data.admin_id, action=data.action))

    async def get_admin_logs(self, admin_id: Optional[int] = None) -> List[AdminLog]:
        query = select(AdminLog)
        if admin_id is not None:
            query = query.where(AdminLog.admin_id == admin_id)

        async with self._session("get_admin_logs") as session:
            result = await session.execute(query.order_by(AdminLog.created_at, AdminLog.id))
            return list(result.scalars().all())

    # Review methods

    async def create_review(self, data: ReviewCreate) -> Review:
        async with self._session("create_review") as session:
            return await self._insert(session, Review(author=data.author, content=data.content))

    async def get_approved_reviews(self) -> List[Review]:
        async with self._session("get_approved_reviews") as session:
            result = await session.execute(
                select(Review).where(Review.status == "approved").order_by(Review.created_at, Review.id)
            )
            return list(result.scalars().all())

    async def get_pending_reviews(self) -> List[Review]:
        async with self._session("get_pending_reviews") as session:
            result = await session.execute(
                select(Review).where(Review.status == "pending").order_by(Review.created_at, Review.id)
            )
            return list(result.scalars().all())

    async def update_review(self, id: int, fields: Dict[str, Any], admin_id: Optional[int] = None) -> Optional[Review]:
        """Apply a partial moderation update; fields not given keep their stored value."""
        async with self._session("update_review") as session:
            return await self._update(
                session, Review, id, fields, touch=True,
                admin_id=admin_id, action="review.update id={obj.id} status={obj.status}",
            )

    # Availability methods

    async def create_availability_date(
        self, day: date, is_available: bool = True, admin_id: Optional[int] = None
    ) -> AvailabilityDate:
        async with self._session("create_availability_date") as session:
            return await self._insert(
                session, AvailabilityDate(date=day, is_available=is_available),
                admin_id, "availability.create id={obj.id} date={obj.date}",
            )

    async def update_availability_date(
        self, id: int, is_available: bool, admin_id: Optional[int] = None
    ) -> Optional[AvailabilityDate]:
        async with self._session("update_availability_date") as session:
            return await self._update(
                session, AvailabilityDate, id, {"is_available": is_available}, touch=True,
                admin_id=admin_id, action="availability.update id={obj.id} is_available={obj.is_available}",
            )

    async def get_availability_dates(self, start_date: date, end_date: date) -> List[AvailabilityDateWithSlotsResponse]:
        """
        Return every calendar day in [start_date, end_date] with its time slots.

        Dates are ordered ascending; each day's slots are fetched with a
        separate query and ordered by start time.
        """
        async with self._session("get_availability_dates") as session:
            result = await session.execute(
                select(AvailabilityDate)
                .where(AvailabilityDate.date >= start_date, AvailabilityDate.date <= end_date)
                .order_by(AvailabilityDate.date)
            )
            dates = list(result.scalars().all())

        dates_with_slots = []
        for day in dates:
            slots = await self.get_availability_time_slots(day.id)
            dates_with_slots.append(
                AvailabilityDateWithSlotsResponse(
                    **AvailabilityDateResponse.model_validate(day).model_dump(),
                    time_slots=[AvailabilityTimeSlotResponse.model_validate(slot) for slot in slots],
                )
            )

        return dates_with_slots

    async def create_availability_time_slot(
        self,
        date_id: int,
        start_time: str,
        end_time: str,
        is_available: bool = True,
        admin_id: Optional[int] = None,
    ) -> AvailabilityTimeSlot:
        slot = AvailabilityTimeSlot(
            date_id=date_id,
            start_time=start_time,
            end_time=end_time,
            is_available=is_available,
        )
        async with self._session("create_availability_time_slot") as session:
            return await self._insert(
                session, slot, admin_id,
                "timeslot.create id={obj.id} date_id={obj.date_id} {obj.start_time}-{obj.end_time}",
            )

    async def update_availability_time_slot(
        self, id: int, is_available: bool, admin_id: Optional[int] = None
    ) -> Optional[AvailabilityTimeSlot]:
        async with self._session("update_availability_time_slot") as session:
            return await self._update(
                session, AvailabilityTimeSlot, id, {"is_available": is_available}, touch=True,
                admin_id=admin_id, action="timeslot.update id={obj.id} is_available={obj.is_available}",
            )

    async def get_availability_time_slots(self, date_id: int) -> List[AvailabilityTimeSlot]:
        async with self._session("get_availability_time_slots") as session:
            result = await session.execute(
                select(AvailabilityTimeSlot)
                .where(AvailabilityTimeSlot.date_id == date_id)
                .order_by(AvailabilityTimeSlot.start_time)
            )
            return list(result.scalars().all())
