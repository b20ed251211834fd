from datetime import datetime
from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Wire models: camelCase on the wire, snake_case in Python; both accepted on input."""

    class Config:
        alias_generator = to_camel
        populate_by_name = True


class AnnouncementCreate(CamelModel):
    content: str | None = None
    active: bool | None = None

    def to_fields(self) -> dict:
        return {"content": self.content, "active": self.active}


class TestimonialCreate(CamelModel):
    """Public testimonial form. The text may arrive as testimonialContent or content."""
    full_name: str | None = None
    testimonial_content: str | None = None
    content: str | None = None
    email: str | None = None
    location: str | None = None
    category: str | None = None
    rating: int | None = Field(default=None, ge=1, le=5)
    photo_url: str | None = None
    active: bool | None = None

    def to_fields(self) -> dict:
        return {
            "full_name": self.full_name,
            "content": self.testimonial_content if self.testimonial_content is not None else self.content,
            "email": self.email,
            "location": self.location,
            "category": self.category,
            "rating": self.rating,
            "photo_url": self.photo_url,
            "active": self.active,
        }


class SubmissionUpdate(CamelModel):
    """Direct edit: only content and the active flag; status changes go through approve/reject."""
    content: str | None = None
    testimonial_content: str | None = None
    active: bool | None = None

    def content_value(self) -> str | None:
        return self.testimonial_content if self.testimonial_content is not None else self.content


class SubmissionResponse(CamelModel):
    id: str
    status: str
    active: bool
    created_at: datetime
    updated_at: datetime | None
    published_at: datetime | None
    rejection_reason: str | None


class AnnouncementResponse(SubmissionResponse):
    content: str


class TestimonialResponse(SubmissionResponse):
    full_name: str
    testimonial_content: str
    email: str | None
    location: str | None
    category: str | None
    rating: int | None
    photo_url: str | None


def _common(item) -> dict:
    return {
        "id": item.id,
        "status": item.status,
        "active": bool(item.active) if item.active is not None else True,
        "created_at": item.created_at,
        "updated_at": item.updated_at,
        "published_at": item.published_at,
        "rejection_reason": item.rejection_reason,
    }


def announcement_out(item) -> dict:
    return AnnouncementResponse(content=item.content, **_common(item)).model_dump(by_alias=True, mode="json")


def testimonial_out(item) -> dict:
    return TestimonialResponse(
        full_name=item.full_name,
        testimonial_content=item.content,
        email=item.email,
        location=item.location,
        category=item.category,
        rating=item.rating,
        photo_url=item.photo_url,
        **_common(item),
    ).model_dump(by_alias=True, mode="json")
