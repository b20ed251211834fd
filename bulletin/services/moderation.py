"""
Moderation: the only code allowed to change a submission's status.

    pending  -> approved | rejected
    approved -> rejected | approved (re-approve refreshes published_at)
    rejected -> approved | rejected
Nothing moves back to pending; that state exists only at creation.
Persistence goes through the store's session; unknown ids return None.
"""
import logging
from datetime import datetime

from sqlalchemy.orm import Session

from bulletin.errors import InvalidTransitionError
from bulletin.models.submission import SubmissionKind, SubmissionStatus
from bulletin.repositories.submission_repository import get_submission

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS = {
    SubmissionStatus.PENDING: {SubmissionStatus.APPROVED, SubmissionStatus.REJECTED},
    SubmissionStatus.APPROVED: {SubmissionStatus.APPROVED, SubmissionStatus.REJECTED},
    SubmissionStatus.REJECTED: {SubmissionStatus.APPROVED, SubmissionStatus.REJECTED},
}


def check_transition(current: str, target: SubmissionStatus) -> None:
    try:
        current_status = SubmissionStatus(current)
    except ValueError:
        # legacy rows with an unexpected value are treated as still awaiting review
        current_status = SubmissionStatus.PENDING
    if target not in ALLOWED_TRANSITIONS[current_status]:
        raise InvalidTransitionError(f"Cannot move submission from {current_status.value} to {target.value}")


def approve(db: Session, kind: SubmissionKind, submission_id: str, now: datetime | None = None):
    item = get_submission(db, kind, submission_id)
    if not item:
        return None
    check_transition(item.status, SubmissionStatus.APPROVED)
    now = now or datetime.utcnow()
    item.status = SubmissionStatus.APPROVED.value
    item.published_at = now  # most recent approval wins
    item.updated_at = now
    db.commit()
    db.refresh(item)
    logger.info("%s %s approved", kind.label, item.id)
    return item


def reject(
    db: Session,
    kind: SubmissionKind,
    submission_id: str,
    reason: str | None = None,
    now: datetime | None = None,
):
    """Reject; a missing reason clears whatever reason an earlier rejection left. published_at is kept."""
    item = get_submission(db, kind, submission_id)
    if not item:
        return None
    check_transition(item.status, SubmissionStatus.REJECTED)
    now = now or datetime.utcnow()
    item.status = SubmissionStatus.REJECTED.value
    item.rejection_reason = (reason or "").strip() or None
    item.updated_at = now
    db.commit()
    db.refresh(item)
    logger.info("%s %s rejected", kind.label, item.id)
    return item
