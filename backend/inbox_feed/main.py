"""
FastAPI app entrypoint.

Inbox feed: event ingress -> per-subject consumers -> fanout / vote reaction / settings,
hourly auto-archive sweep, and the user feed read API.
"""
import logging
from contextlib import asynccontextmanager
from pathlib import Path

from apscheduler.schedulers.background import BackgroundScheduler
from dotenv import load_dotenv
from fastapi import FastAPI

# Load .env from backend/ before any app code
load_dotenv(Path(__file__).resolve().parent.parent / ".env")

from inbox_feed.api.routes import events, feed
from inbox_feed.config import settings
from inbox_feed.core.constants import AUTO_ARCHIVE_JOB_ID
from inbox_feed.db.session import SessionLocal
from inbox_feed.events.consumer import FeedConsumer
from inbox_feed.events.handlers import FeedEventHandlers
from inbox_feed.scheduler.auto_archive_job import run_auto_archive_job
from inbox_feed.services.core_api import CoreClient
from inbox_feed.services.fanout import FanoutProcessor
from inbox_feed.services.inbox_api import InboxClient
from inbox_feed.services.push import HttpPushPublisher

logger = logging.getLogger(__name__)

# Scheduler: auto-archive expired feed items every AUTO_ARCHIVE_INTERVAL_SECONDS
_scheduler = BackgroundScheduler()


@asynccontextmanager
async def lifespan(app: FastAPI):
    content = CoreClient()
    inbox = InboxClient()
    fanout = FanoutProcessor(inbox, content, HttpPushPublisher())
    handlers = FeedEventHandlers(SessionLocal, fanout, inbox)
    consumer = FeedConsumer(
        handlers.by_subject(),
        max_pending=settings.consumer_max_pending,
        ack_wait_seconds=settings.consumer_ack_wait_seconds,
    )
    consumer.start()
    app.state.consumer = consumer
    app.state.content = content

    _scheduler.add_job(
        run_auto_archive_job,
        "interval",
        seconds=settings.auto_archive_interval_seconds,
        id=AUTO_ARCHIVE_JOB_ID,
        max_instances=1,
        coalesce=True,
        replace_existing=True,
    )
    _scheduler.start()
    app.state.scheduler = _scheduler
    logger.info(
        "Inbox feed ready: consumers for %s, auto archive every %ss",
        ", ".join(consumer.subjects),
        settings.auto_archive_interval_seconds,
    )
    yield
    _scheduler.shutdown(wait=False)
    consumer.stop(timeout=settings.consumer_ack_wait_seconds)


app = FastAPI(title="Inbox Feed", version="0.1.0", lifespan=lifespan)

app.include_router(events.router, tags=["events"])
app.include_router(feed.router, tags=["feed"])


@app.get("/", include_in_schema=False)
def root():
    """Root: point to API docs and health."""
    return {"message": "Inbox Feed API", "docs": "/docs", "health": "/health"}


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}
