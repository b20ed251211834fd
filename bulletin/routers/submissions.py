"""
Submission endpoints. build_router() makes one router per resource root:
- GET    /api/<plural>?status=pending|approved|rejected|all   list (approved = ticker feed, max 5)
- GET    /api/<plural>?active=true                            legacy ticker feed: bare array
- GET    /api/<plural>/{id}
- POST   /api/<plural>                                        public submission, always pending
- PATCH  /api/<plural>/{id}                                   edit content and/or active
- POST   /api/<plural>/{id}/approve
- POST   /api/<plural>/{id}/reject                            body { "reason": "..." } optional
- DELETE /api/<plural>/{id}
Any other method/path under the root answers 405.
Moderation endpoints carry no auth here; access control belongs to the deployment in front.
"""
import json
import logging
from typing import Callable

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from bulletin.database import get_db
from bulletin.models.submission import SubmissionKind, SubmissionStatus, ANNOUNCEMENTS, TESTIMONIALS
from bulletin.repositories import submission_repository as store
from bulletin.schemas.submission import (
    AnnouncementCreate,
    TestimonialCreate,
    SubmissionUpdate,
    announcement_out,
    testimonial_out,
)
from bulletin.services import moderation

logger = logging.getLogger(__name__)

_ALL_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE"]


async def _read_reason(request: Request) -> str | None:
    """Reject body is optional; anything that is not { "reason": "<text>" } counts as no reason."""
    raw = await request.body()
    if not raw:
        return None
    try:
        data = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError):
        return None
    if not isinstance(data, dict) or not isinstance(data.get("reason"), str):
        return None
    return data["reason"].strip() or None


def build_router(kind: SubmissionKind, create_schema: type, serialize: Callable) -> APIRouter:
    router = APIRouter(prefix=f"/api/{kind.plural}", tags=[kind.plural])
    not_found = f"{kind.label} not found"

    @router.get("")
    @router.get("/", include_in_schema=False)
    def list_items(
        status_filter: str | None = Query(None, alias="status"),
        active: bool | None = None,
        db: Session = Depends(get_db),
    ):
        if active and status_filter is None:
            # legacy widget contract: bare array of what the ticker should show
            items = store.list_submissions(db, kind, SubmissionStatus.APPROVED.value, active=True)
            return JSONResponse(content=[serialize(x) for x in items])
        items = store.list_submissions(db, kind, status_filter, active=active)
        return {"success": True, kind.plural: [serialize(x) for x in items]}

    @router.post("", status_code=status.HTTP_201_CREATED)
    @router.post("/", status_code=status.HTTP_201_CREATED, include_in_schema=False)
    def create_item(body: create_schema, db: Session = Depends(get_db)):
        item = store.create_submission(db, kind, body.to_fields())
        logger.info("%s %s submitted", kind.label, item.id)
        return {
            "success": True,
            "message": f"{kind.label} submitted and awaiting review",
            kind.name: serialize(item),
        }

    @router.get("/{submission_id}")
    def get_item(submission_id: str, db: Session = Depends(get_db)):
        item = store.get_submission(db, kind, submission_id)
        if not item:
            raise HTTPException(status_code=404, detail=not_found)
        return {"success": True, kind.name: serialize(item)}

    @router.patch("/{submission_id}")
    def update_item(submission_id: str, body: SubmissionUpdate, db: Session = Depends(get_db)):
        item = store.update_submission(db, kind, submission_id, content=body.content_value(), active=body.active)
        if not item:
            raise HTTPException(status_code=404, detail=f"{not_found} or nothing to update")
        return {"success": True, "message": f"{kind.label} updated", kind.name: serialize(item)}

    @router.post("/{submission_id}/approve")
    def approve_item(submission_id: str, db: Session = Depends(get_db)):
        item = moderation.approve(db, kind, submission_id)
        if not item:
            raise HTTPException(status_code=404, detail=not_found)
        return {"success": True, "message": f"{kind.label} approved", kind.name: serialize(item)}

    @router.post("/{submission_id}/reject")
    async def reject_item(submission_id: str, request: Request, db: Session = Depends(get_db)):
        reason = await _read_reason(request)
        item = await run_in_threadpool(moderation.reject, db, kind, submission_id, reason)
        if not item:
            raise HTTPException(status_code=404, detail=not_found)
        return {"success": True, "message": f"{kind.label} rejected", kind.name: serialize(item)}

    @router.delete("/{submission_id}")
    def delete_item(submission_id: str, db: Session = Depends(get_db)):
        deleted_id = store.delete_submission(db, kind, submission_id)
        if not deleted_id:
            raise HTTPException(status_code=404, detail=not_found)
        return {"success": True, "message": f"{kind.label} deleted", "id": deleted_id}

    # must stay last: only reached when nothing above matched both path and method
    @router.api_route("/{rest:path}", methods=_ALL_METHODS, include_in_schema=False)
    def unsupported(rest: str):
        raise HTTPException(status_code=status.HTTP_405_METHOD_NOT_ALLOWED, detail="Method not allowed")

    return router


announcements_router = build_router(ANNOUNCEMENTS, AnnouncementCreate, announcement_out)
testimonials_router = build_router(TESTIMONIALS, TestimonialCreate, testimonial_out)
