import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from bulletin.config import get_settings
from bulletin.database import engine
from bulletin.errors import register_exception_handlers
from bulletin.models.submission import SUBMISSION_KINDS
from bulletin.routers import submissions, widget
from bulletin.services.schema_manager import ensure_schema

settings = get_settings()

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # cold start: bring every submission table up to date before the first request
    for kind in SUBMISSION_KINDS:
        if not ensure_schema(engine, kind.model):
            logger.warning("Schema for %s is incomplete; continuing in degraded mode", kind.plural)
    yield


app = FastAPI(title="Bulletin API", version="1.0.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.frontend_url, *[o.strip() for o in settings.host_origins.split(",") if o.strip()]],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

app.include_router(submissions.announcements_router)
app.include_router(submissions.testimonials_router)
app.include_router(widget.router)


@app.get("/")
def root():
    return {"message": "Bulletin API", "docs": "/docs"}
