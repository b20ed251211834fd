from bulletin.models.submission import (
    Announcement,
    Testimonial,
    SubmissionStatus,
    SubmissionKind,
    ANNOUNCEMENTS,
    TESTIMONIALS,
    SUBMISSION_KINDS,
)

__all__ = [
    "Announcement", "Testimonial", "SubmissionStatus", "SubmissionKind",
    "ANNOUNCEMENTS", "TESTIMONIALS", "SUBMISSION_KINDS",
]
