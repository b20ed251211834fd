"""
Submission persistence (announcements and testimonials share one code path, keyed by SubmissionKind).
Every public function ensures the table shape first, then runs parameterized ORM queries.
"Not found" is a None return; bad input raises ValidationError.
"""
import uuid
from datetime import datetime

from sqlalchemy import desc
from sqlalchemy.orm import Session

from bulletin.config import get_settings
from bulletin.errors import ValidationError
from bulletin.models.submission import SubmissionKind, SubmissionStatus
from bulletin.services.schema_manager import ensure_schema

STATUS_FILTER_ALL = "all"

# Columns a public submission may set; everything else is managed here or by moderation
_CREATE_FIELDS = ("content", "full_name", "email", "location", "category", "rating", "photo_url", "active")


def parse_id(raw: str) -> str:
    """Canonical UUID string, or ValidationError for anything that cannot be one."""
    try:
        return str(uuid.UUID(str(raw)))
    except (ValueError, TypeError, AttributeError):
        raise ValidationError("Invalid id format", f"expected a UUID, got {str(raw)[:40]!r}") from None


def _prepare(db: Session, kind: SubmissionKind) -> None:
    ensure_schema(db.get_bind(), kind.model)


def _blank(value) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def list_submissions(
    db: Session,
    kind: SubmissionKind,
    status: str | None = None,
    active: bool | None = None,
) -> list:
    """
    All rows newest first; status filters to one state.
    'approved' is the ticker feed: capped to ticker_limit, most recently published first.
    """
    _prepare(db, kind)
    model = kind.model
    q = db.query(model)
    status = (status or "").strip().lower() or None
    if status and status != STATUS_FILTER_ALL:
        if status not in {s.value for s in SubmissionStatus}:
            raise ValidationError("Invalid status filter", "status must be pending, approved, rejected or all")
        q = q.filter(model.status == status)
    if active is not None:
        q = q.filter(model.active == active)
    if status == SubmissionStatus.APPROVED.value:
        return (
            q.order_by(desc(model.published_at), desc(model.created_at))
            .limit(get_settings().ticker_limit)
            .all()
        )
    return q.order_by(desc(model.created_at)).all()


def get_submission(db: Session, kind: SubmissionKind, submission_id: str):
    submission_id = parse_id(submission_id)
    _prepare(db, kind)
    return db.query(kind.model).filter(kind.model.id == submission_id).first()


def create_submission(db: Session, kind: SubmissionKind, fields: dict):
    """Insert a new pending submission. Missing/blank required fields -> ValidationError."""
    values = {
        k: v.strip() if isinstance(v, str) else v
        for k, v in fields.items()
        if k in _CREATE_FIELDS and hasattr(kind.model, k)
    }
    missing = [f for f in kind.required_fields if _blank(values.get(f))]
    if missing:
        raise ValidationError("Missing required fields", ", ".join(missing))
    _prepare(db, kind)
    # optional text fields: empty string means "not given"
    values = {k: (None if v == "" else v) for k, v in values.items()}
    if values.get("active") is None:
        values.pop("active", None)
    now = datetime.utcnow()
    item = kind.model(
        **values,
        status=SubmissionStatus.PENDING.value,
        created_at=now,
        updated_at=now,
        published_at=None,
        rejection_reason=None,
    )
    db.add(item)
    db.commit()
    db.refresh(item)
    return item


def update_submission(
    db: Session,
    kind: SubmissionKind,
    submission_id: str,
    content: str | None = None,
    active: bool | None = None,
):
    """
    Coalesce-merge of the directly editable fields (content, active).
    Nothing supplied -> None without touching the row.
    """
    submission_id = parse_id(submission_id)
    if content is None and active is None:
        return None
    if content is not None and _blank(content):
        raise ValidationError("Content cannot be empty")
    _prepare(db, kind)
    item = db.query(kind.model).filter(kind.model.id == submission_id).first()
    if not item:
        return None
    if content is not None:
        item.content = content.strip()
    if active is not None:
        item.active = active
    item.updated_at = datetime.utcnow()
    db.commit()
    db.refresh(item)
    return item


def delete_submission(db: Session, kind: SubmissionKind, submission_id: str) -> str | None:
    submission_id = parse_id(submission_id)
    _prepare(db, kind)
    item = db.query(kind.model).filter(kind.model.id == submission_id).first()
    if not item:
        return None
    db.delete(item)
    db.commit()
    return submission_id
