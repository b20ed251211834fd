"""Drop-in ticker script for host pages: GET /widget/ticker.js"""
from fastapi import APIRouter, Request, Response
from bulletin.config import get_settings
from bulletin.ticker.widget import build_widget_js

router = APIRouter(prefix="/widget", tags=["widget"])


@router.get("/ticker.js")
def ticker_script(request: Request, feed: str | None = None):
    """
    Optional ?feed= overrides the configured feed URL (e.g. /api/testimonials?status=approved).
    Relative feed URLs are made absolute against this server, since the script runs on other origins.
    """
    feed_url = feed or get_settings().ticker_feed_url
    if feed_url.startswith("/"):
        feed_url = str(request.base_url).rstrip("/") + feed_url
    return Response(
        content=build_widget_js(feed_url),
        media_type="application/javascript",
        headers={"Cache-Control": "public, max-age=300"},
    )
