# interview_tracker/main.py
import asyncio
import contextlib
import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, HTTPException, Query, status
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text
from sqlalchemy.orm import Session

from .config import settings
from .database import Base, SessionLocal, engine, get_db
from .errors import AuthError, register_error_handlers
from .jobs.reminders import mark_due_reminders_sent, reminder_sweep_loop
from .logging_config import configure_logging
from .routers import applications, auth, dashboard, stages, templates
from .schemas import Envelope
from .seed import seed_templates

configure_logging(settings.LOG_LEVEL)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Create tables if they don't exist; alembic owns real migrations
    Base.metadata.create_all(bind=engine)
    if settings.SEED_TEMPLATES:
        db = SessionLocal()
        try:
            seed_templates(db)
        finally:
            db.close()

    sweep_task = None
    if settings.REMINDER_SWEEP_ENABLED:
        sweep_task = asyncio.create_task(reminder_sweep_loop(settings.REMINDER_SWEEP_INTERVAL_MINUTES))
    logger.info("Starting %s", settings.APP_NAME)

    yield

    if sweep_task is not None:
        sweep_task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await sweep_task
    logger.info("Shutting down %s", settings.APP_NAME)


app = FastAPI(title=settings.APP_NAME, version="1.0.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.CLIENT_URL],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
register_error_handlers(app)

app.include_router(auth.router)
app.include_router(applications.router)
app.include_router(stages.router)
app.include_router(templates.router)
app.include_router(dashboard.router)


@app.get("/health", response_model=Envelope[dict], tags=["monitoring"])
def health_check(db: Session = Depends(get_db)):
    """
    Checks if the application is healthy, including the database connection.
    """
    try:
        db.execute(text("SELECT 1"))
        return {"message": "Service is healthy", "data": {"status": "ok", "database": "ok"}}
    except Exception:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Database connection error"
        )


@app.post("/cron/reminders", response_model=Envelope[dict], tags=["cron"])
def sweep_reminders_cron(cron_secret: str = Query(...), db: Session = Depends(get_db)):
    """External trigger for the reminder sweep, for deployments that disable the in-process loop."""
    if cron_secret != (settings.CRON_SECRET or settings.SECRET_KEY):
        raise AuthError("Invalid cron secret")
    processed = mark_due_reminders_sent(db)
    return {"message": "Reminders processed", "data": {"processed": processed}}
