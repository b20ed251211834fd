"""Submissions: user-authored announcements and testimonials, moderated pending -> approved/rejected."""
import uuid
import enum
from dataclasses import dataclass
from datetime import datetime
from sqlalchemy import Column, String, Text, DateTime, Boolean, Integer
from bulletin.database import Base


class SubmissionStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class SubmissionMixin:
    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    content = Column(Text, nullable=False)
    active = Column(Boolean, nullable=False, default=True)
    status = Column(String(20), nullable=False, default=SubmissionStatus.PENDING.value)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=True, default=datetime.utcnow)
    published_at = Column(DateTime, nullable=True)  # first set on approval, never cleared
    rejection_reason = Column(Text, nullable=True)


class Announcement(SubmissionMixin, Base):
    __tablename__ = "announcements"


class Testimonial(SubmissionMixin, Base):
    __tablename__ = "testimonials"

    full_name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=True)
    location = Column(String(255), nullable=True)
    category = Column(String(100), nullable=True)
    rating = Column(Integer, nullable=True)  # 1..5
    photo_url = Column(String(512), nullable=True)


@dataclass(frozen=True)
class SubmissionKind:
    """Which table a store/moderation call works on, and what a valid submission needs."""
    name: str
    plural: str
    model: type
    required_fields: tuple[str, ...] = ("content",)

    @property
    def label(self) -> str:
        return self.name.capitalize()


ANNOUNCEMENTS = SubmissionKind("announcement", "announcements", Announcement)
TESTIMONIALS = SubmissionKind("testimonial", "testimonials", Testimonial, ("content", "full_name"))

SUBMISSION_KINDS = (ANNOUNCEMENTS, TESTIMONIALS)
