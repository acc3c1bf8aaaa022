"""
Pydantic schemas for request and response data validation.
JSON uses camelCase keys; request bodies accept camelCase or snake_case.
"""
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel
from datetime import date, datetime
from typing import List, Literal, Optional
import re

TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


class ApiModel(BaseModel):
    """Base for all API schemas: camelCase aliases, readable from ORM objects."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,  # Enable conversion from SQLAlchemy models
    )


def _check_time(value: Optional[str]) -> Optional[str]:
    if value is not None and not TIME_PATTERN.match(value):
        raise ValueError("Time must use the HH:MM format")
    return value


def _not_null(value):
    # Optional only so the field can be omitted; an explicit null is invalid
    if value is None:
        raise ValueError("Field cannot be null")
    return value


# Auth

class LoginRequest(ApiModel):
    username: str = Field(min_length=1)
    password: str = Field(min_length=1)


class UserCreate(ApiModel):
    username: str
    password_hash: str


class AdminUserResponse(ApiModel):
    id: int
    username: str


class LoginResponse(AdminUserResponse):
    token: str


# Reviews

class ReviewCreate(ApiModel):
    """
    Public review submission.
    Has no status field, so new reviews always start as pending.
    """
    author: str = Field(min_length=1, max_length=200)
    content: str = Field(min_length=1)


class ReviewUpdate(ApiModel):
    """Admin moderation of a review."""
    status: Literal["approved", "rejected"]
    modified_content: Optional[str] = None


class ReviewResponse(ApiModel):
    id: int
    author: str
    content: str
    modified_content: Optional[str] = None
    status: str
    created_at: datetime
    updated_at: datetime


# FAQ

class FaqCategoryCreate(ApiModel):
    name: str = Field(min_length=1, max_length=200)
    order: int = 0


class FaqCategoryUpdate(ApiModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    order: Optional[int] = None

    @field_validator("name", "order")
    @classmethod
    def reject_null(cls, v):
        return _not_null(v)


class FaqCategoryResponse(ApiModel):
    id: int
    name: str
    order: int


class FaqCreate(ApiModel):
    category_id: Optional[int] = None
    question: str = Field(min_length=1)
    answer: str = Field(min_length=1)
    order: int = 0


class FaqUpdate(ApiModel):
    category_id: Optional[int] = None
    question: Optional[str] = Field(default=None, min_length=1)
    answer: Optional[str] = Field(default=None, min_length=1)
    order: Optional[int] = None

    @field_validator("question", "answer", "order")
    @classmethod
    def reject_null(cls, v):
        return _not_null(v)


class FaqResponse(ApiModel):
    id: int
    category_id: Optional[int] = None
    question: str
    answer: str
    order: int


# Admin

class AdminStatsResponse(ApiModel):
    faq_count: int
    gallery_count: int
    pending_reviews_count: int


class AdminLogCreate(ApiModel):
    admin_id: int
    action: str


class AdminLogResponse(ApiModel):
    id: int
    admin_id: int
    action: str
    created_at: datetime


# Galleries

class GalleryCreate(ApiModel):
    """Access code is generated when omitted."""
    access_code: Optional[str] = Field(default=None, min_length=4, max_length=100)


class GalleryResponse(ApiModel):
    id: int
    access_code: str


class PhotoResponse(ApiModel):
    id: int
    gallery_id: int
    url: str


class GalleryWithPhotosResponse(GalleryResponse):
    photos: List[PhotoResponse]


# Availability

class AvailabilityDateCreate(ApiModel):
    date: date


class AvailabilityUpdate(ApiModel):
    """Body of both availability patch routes."""
    is_available: bool


class AvailabilityTimeSlotCreate(ApiModel):
    start_time: str
    end_time: str
    is_available: bool = True

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_time_format(cls, v):
        return _check_time(v)

    @model_validator(mode="after")
    def validate_time_order(self):
        if self.end_time <= self.start_time:
            raise ValueError("endTime must be after startTime")
        return self


class AvailabilityTimeSlotResponse(ApiModel):
    id: int
    date_id: int
    start_time: str
    end_time: str
    is_available: bool
    created_at: datetime
    updated_at: datetime


class AvailabilityDateResponse(ApiModel):
    id: int
    date: date
    is_available: bool
    created_at: datetime
    updated_at: datetime


class AvailabilityDateWithSlotsResponse(AvailabilityDateResponse):
    """Calendar day with its time slots, as returned by the public calendar."""
    time_slots: List[AvailabilityTimeSlotResponse] = []


# Chat

class ChatMessageIn(ApiModel):
    author: str = Field(min_length=1, max_length=100)
    text: str = Field(min_length=1, max_length=2000)


class ChatMessageOut(ChatMessageIn):
    type: Literal["message"] = "message"
    sent_at: datetime
