from datetime import datetime, timedelta
import uuid

import pytest

from bulletin.errors import ValidationError
from bulletin.models.submission import ANNOUNCEMENTS, TESTIMONIALS
from bulletin.repositories import submission_repository as store
from bulletin.services import moderation


def test_create_is_pending_and_unpublished(db):
    item = store.create_submission(db, ANNOUNCEMENTS, {"content": "  Summer sale starts Monday  "})
    assert uuid.UUID(item.id)
    assert item.content == "Summer sale starts Monday"
    assert item.status == "pending"
    assert item.published_at is None
    assert item.rejection_reason is None
    assert item.active is True
    assert item.created_at is not None and item.updated_at == item.created_at


def test_create_ignores_client_supplied_status(db):
    item = store.create_submission(
        db, ANNOUNCEMENTS, {"content": "hi", "status": "approved", "published_at": datetime.utcnow()}
    )
    assert item.status == "pending"
    assert item.published_at is None


@pytest.mark.parametrize("fields", [{}, {"content": ""}, {"content": "   "}, {"content": None}])
def test_create_requires_content(db, fields):
    with pytest.raises(ValidationError) as exc:
        store.create_submission(db, ANNOUNCEMENTS, fields)
    assert exc.value.details == "content"


def test_testimonial_requires_full_name(db):
    with pytest.raises(ValidationError) as exc:
        store.create_submission(db, TESTIMONIALS, {"content": "Great service"})
    assert exc.value.details == "full_name"


def test_testimonial_profile_fields(db):
    item = store.create_submission(
        db,
        TESTIMONIALS,
        {"full_name": "Ada", "content": "Great service", "rating": 5, "location": "", "email": "ada@example.com"},
    )
    assert item.full_name == "Ada"
    assert item.rating == 5
    assert item.location is None
    assert item.email == "ada@example.com"


def test_list_all_newest_first(db):
    first = store.create_submission(db, ANNOUNCEMENTS, {"content": "one"})
    second = store.create_submission(db, ANNOUNCEMENTS, {"content": "two"})
    moderation.reject(db, ANNOUNCEMENTS, first.id)
    for status_filter in (None, "all", ""):
        ids = [x.id for x in store.list_submissions(db, ANNOUNCEMENTS, status_filter)]
        assert ids == [second.id, first.id]


def test_list_filters_by_status(db):
    a = store.create_submission(db, ANNOUNCEMENTS, {"content": "a"})
    b = store.create_submission(db, ANNOUNCEMENTS, {"content": "b"})
    moderation.reject(db, ANNOUNCEMENTS, b.id, "spam")
    assert [x.id for x in store.list_submissions(db, ANNOUNCEMENTS, "pending")] == [a.id]
    assert [x.id for x in store.list_submissions(db, ANNOUNCEMENTS, "REJECTED")] == [b.id]


def test_list_rejects_unknown_status(db):
    with pytest.raises(ValidationError):
        store.list_submissions(db, ANNOUNCEMENTS, "archived")


def test_approved_list_capped_and_ordered_by_publish_time(db):
    base = datetime(2025, 1, 1, 12, 0, 0)
    items = [store.create_submission(db, ANNOUNCEMENTS, {"content": f"item {i}"}) for i in range(7)]
    # publish in reverse creation order, one minute apart
    for offset, item in enumerate(reversed(items)):
        moderation.approve(db, ANNOUNCEMENTS, item.id, now=base + timedelta(minutes=offset))

    approved = store.list_submissions(db, ANNOUNCEMENTS, "approved")
    assert len(approved) == 5
    published = [x.published_at for x in approved]
    assert published == sorted(published, reverse=True)
    assert approved[0].id == items[0].id


def test_approved_ties_broken_by_created_at(db):
    same_time = datetime(2025, 3, 1, 9, 0, 0)
    older = store.create_submission(db, ANNOUNCEMENTS, {"content": "older"})
    older.created_at = datetime(2025, 1, 1)
    newer = store.create_submission(db, ANNOUNCEMENTS, {"content": "newer"})
    newer.created_at = datetime(2025, 2, 1)
    db.commit()
    moderation.approve(db, ANNOUNCEMENTS, older.id, now=same_time)
    moderation.approve(db, ANNOUNCEMENTS, newer.id, now=same_time)
    assert [x.id for x in store.list_submissions(db, ANNOUNCEMENTS, "approved")] == [newer.id, older.id]


def test_active_filter(db):
    shown = store.create_submission(db, ANNOUNCEMENTS, {"content": "shown"})
    hidden = store.create_submission(db, ANNOUNCEMENTS, {"content": "hidden", "active": False})
    moderation.approve(db, ANNOUNCEMENTS, shown.id)
    moderation.approve(db, ANNOUNCEMENTS, hidden.id)
    assert [x.id for x in store.list_submissions(db, ANNOUNCEMENTS, "approved", active=True)] == [shown.id]


def test_update_merges_supplied_fields(db):
    item = store.create_submission(db, ANNOUNCEMENTS, {"content": "draft"})
    before = item.updated_at
    updated = store.update_submission(db, ANNOUNCEMENTS, item.id, active=False)
    assert updated.content == "draft"
    assert updated.active is False
    assert updated.updated_at >= before

    updated = store.update_submission(db, ANNOUNCEMENTS, item.id, content="final")
    assert updated.content == "final"
    assert updated.active is False
    assert updated.status == "pending"


def test_update_without_fields_is_noop(db):
    item = store.create_submission(db, ANNOUNCEMENTS, {"content": "draft"})
    before = item.updated_at
    assert store.update_submission(db, ANNOUNCEMENTS, item.id) is None
    db.expire_all()
    assert store.get_submission(db, ANNOUNCEMENTS, item.id).updated_at == before


def test_update_unknown_id(db):
    assert store.update_submission(db, ANNOUNCEMENTS, str(uuid.uuid4()), content="x") is None


def test_update_rejects_blank_content(db):
    item = store.create_submission(db, ANNOUNCEMENTS, {"content": "draft"})
    with pytest.raises(ValidationError):
        store.update_submission(db, ANNOUNCEMENTS, item.id, content="  ")


def test_delete(db):
    item = store.create_submission(db, ANNOUNCEMENTS, {"content": "bye"})
    assert store.delete_submission(db, ANNOUNCEMENTS, item.id) == item.id
    assert store.get_submission(db, ANNOUNCEMENTS, item.id) is None
    assert store.delete_submission(db, ANNOUNCEMENTS, item.id) is None


def test_ids_are_canonicalised(db):
    item = store.create_submission(db, ANNOUNCEMENTS, {"content": "x"})
    assert store.get_submission(db, ANNOUNCEMENTS, item.id.upper()).id == item.id


@pytest.mark.parametrize("bad_id", ["42", "not-a-uuid", "", "../etc/passwd"])
def test_malformed_id_is_validation_error(db, bad_id):
    with pytest.raises(ValidationError):
        store.get_submission(db, ANNOUNCEMENTS, bad_id)
    with pytest.raises(ValidationError):
        store.delete_submission(db, ANNOUNCEMENTS, bad_id)
    with pytest.raises(ValidationError):
        store.update_submission(db, ANNOUNCEMENTS, bad_id, content="x")
